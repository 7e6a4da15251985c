from dataclasses import dataclass
from typing import Optional

from sszgen.errors import CyclicTypeError, UnsupportedShapeError
from sszgen.types import TypeIdentity

@dataclass(frozen = True)
class SizeClass:
    fixed_size: Optional[int] = None

    @property
    def dynamic(self):
        return self.fixed_size is None

    def __repr__(self):
        return 'Variable' if self.dynamic else f'Fixed({self.fixed_size})'

VARIABLE = SizeClass()

def fixed(size):
    return SizeClass(size)

class Classifier:
    def __init__(self, types):
        self.types = {t.name: t for t in types}
        self.arena = {}
        self.in_progress = []

    def classify_type(self, descriptor):
        if descriptor.name in self.arena:
            return self.arena[descriptor.name]

        if descriptor.name in self.in_progress:
            start = self.in_progress.index(descriptor.name)
            raise CyclicTypeError(self.in_progress[start:] + [descriptor.name])

        self.in_progress.append(descriptor.name)
        try:
            total = 0
            for field in descriptor.fields:
                size_class = self.classify_field(descriptor, field)
                if total is not None:
                    total = None if size_class.dynamic else total + size_class.fixed_size
        finally:
            self.in_progress.pop()

        result = VARIABLE if total is None else fixed(total)
        self.arena[descriptor.name] = result
        return result

    def classify_field(self, descriptor, field):
        try:
            return self.classify_shape(field.type)
        except UnsupportedShapeError as e:
            raise UnsupportedShapeError(f'{descriptor.name}.{field.name}: {e}') from None

    def classify_shape(self, shape):
        if shape.identity is TypeIdentity.INTEGER:
            if shape.signed:
                raise UnsupportedShapeError(f'signed integer type {shape.name} is not supported')
            return fixed(shape.fixed_size)
        elif shape.identity is TypeIdentity.BOOLEAN:
            return fixed(1)
        elif shape.identity is TypeIdentity.BITVECTOR:
            return fixed(shape.fixed_size)
        elif shape.identity is TypeIdentity.BITLIST:
            return VARIABLE
        elif shape.identity is TypeIdentity.STRUCT:
            if shape.name not in self.types:
                raise UnsupportedShapeError(f'struct {shape.name} is not declared in this package')
            return self.classify_type(self.types[shape.name])
        elif shape.identity in {TypeIdentity.ARRAY, TypeIdentity.BYTES}:
            element = self.classify_shape(shape.subtype)
            if shape.n_elements is None or element.dynamic:
                return VARIABLE
            return fixed(shape.n_elements * element.fixed_size)
        else:
            raise UnsupportedShapeError(f'type {shape.name} is not supported')

    def classify_all(self, descriptors):
        """Classify every descriptor, nested types first, and return the arena."""
        for descriptor in descriptors:
            self.classify_type(descriptor)
        return dict(self.arena)
