import enum
from dataclasses import dataclass
from typing import Tuple

BYTES_PER_LENGTH_OFFSET = 4

class TypeIdentity(enum.Enum):
    INTEGER = 1
    BOOLEAN = 2
    BYTES = 3
    STRUCT = 4
    ARRAY = 5
    BITVECTOR = 6
    BITLIST = 7
    STRING = 8
    FLOAT = 9
    ANY = 10

class Type:
    def __init__(self, name, identity, fixed_size = None, signed = False, subtype = None, n_elements = None, n_bits = None):
        self.name = name
        self.identity = identity
        self.fixed_size = fixed_size
        self.subtype = None
        self.n_elements = None
        self.n_bits = None
        self.signed = None

        if self.identity in {TypeIdentity.ARRAY, TypeIdentity.BYTES}:
            assert subtype
            self.subtype = subtype
            self.n_elements = n_elements

        if self.identity in {TypeIdentity.BITVECTOR, TypeIdentity.BITLIST}:
            self.n_bits = n_bits

        if self.identity is TypeIdentity.INTEGER:
            self.signed = signed

    @property
    def is_list(self):
        return self.identity in {TypeIdentity.ARRAY, TypeIdentity.BYTES} and self.n_elements is None

    def __repr__(self):
        return self.name

    def __eq__(self, other):
        return isinstance(other, Type) and self.name == other.name and self.identity is other.identity

    def __hash__(self):
        return hash((self.name, self.identity))

class TypeRegistry:
    def __init__(self):
        self.types = {
            'uint8': Type('uint8', TypeIdentity.INTEGER, fixed_size = 1),
            'uint16': Type('uint16', TypeIdentity.INTEGER, fixed_size = 2),
            'uint32': Type('uint32', TypeIdentity.INTEGER, fixed_size = 4),
            'uint64': Type('uint64', TypeIdentity.INTEGER, fixed_size = 8),
            'uint128': Type('uint128', TypeIdentity.INTEGER, fixed_size = 16),
            'uint256': Type('uint256', TypeIdentity.INTEGER, fixed_size = 32),

            'int8': Type('int8', TypeIdentity.INTEGER, fixed_size = 1, signed = True),
            'int16': Type('int16', TypeIdentity.INTEGER, fixed_size = 2, signed = True),
            'int32': Type('int32', TypeIdentity.INTEGER, fixed_size = 4, signed = True),
            'int64': Type('int64', TypeIdentity.INTEGER, fixed_size = 8, signed = True),

            'byte': Type('byte', TypeIdentity.INTEGER, fixed_size = 1),
            'bool': Type('bool', TypeIdentity.BOOLEAN, fixed_size = 1),

            'float32': Type('float32', TypeIdentity.FLOAT, fixed_size = 4),
            'float64': Type('float64', TypeIdentity.FLOAT, fixed_size = 8),
            'string': Type('string', TypeIdentity.STRING),
            'any': Type('any', TypeIdentity.ANY),
        }

        # Parametrized builtins, only usable through parse_type().
        self.generics = {'bitvector', 'bitlist'}

    def get_type(self, name):
        return self.types[name] if name in self.types else None

    def register_type(self, type):
        self.types[type.name] = type

    def register_alias(self, name, type):
        self.types[name] = type

    def is_known_type(self, name):
        return name in self.types or name in self.generics

    def parse_type(self, base, param = None, sizes = ()):
        """Build the shape spelled as base<param>[n]...[m].

        Returns None when base is not a known type name and raises
        ValueError when the spelling is not a valid shape.
        """
        if base == 'bitvector':
            if param is None:
                raise ValueError('bitvector needs a bit count, e.g. bitvector<64>')
            if param <= 0:
                raise ValueError('bitvector must have at least one bit')
            result = Type(f'bitvector<{param}>', TypeIdentity.BITVECTOR,
                    fixed_size = (param + 7) // 8,
                    n_bits = param)
        elif base == 'bitlist':
            if param is not None and param <= 0:
                raise ValueError('bitlist limit must be positive')
            result = Type('bitlist' if param is None else f'bitlist<{param}>',
                    TypeIdentity.BITLIST,
                    n_bits = param)
        else:
            result = self.get_type(base)
            if not result:
                return None
            if param is not None:
                raise ValueError(f'{base} does not take a parameter')

        for size in sizes:
            if size is not None and size <= 0:
                raise ValueError('array length must be positive')

            suffix = f'[{size}]' if size is not None else '[]'
            identity = TypeIdentity.BYTES if result.name == 'byte' else TypeIdentity.ARRAY

            result = Type(result.name + suffix, identity,
                    subtype = result,
                    n_elements = size)

        return result

@dataclass(frozen = True)
class FieldDescriptor:
    name: str
    type: Type
    line: int = 0
    column: int = 0

@dataclass(frozen = True)
class TypeDescriptor:
    name: str
    package: str
    fields: Tuple[FieldDescriptor, ...]
    filename: str = ''
    line: int = 0

    @property
    def exported(self):
        return not self.name.startswith('_')
