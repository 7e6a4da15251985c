from sszgen.types import BYTES_PER_LENGTH_OFFSET

class FieldPlan:
    def __init__(self, index, field, size_class, offset, slot = None):
        self.index = index
        self.field = field
        self.size_class = size_class
        # Static position in the fixed region: the value itself for fixed
        # fields, the 4-byte offset slot for variable ones.
        self.offset = offset
        self.slot = slot

    @property
    def name(self):
        return self.field.name

    @property
    def type(self):
        return self.field.type

    @property
    def dynamic(self):
        return self.size_class.dynamic

    def __repr__(self):
        if self.dynamic:
            return f'{self.name}@{self.offset} (slot {self.slot})'
        return f'{self.name}@{self.offset} ({self.size_class})'

class EncodingPlan:
    def __init__(self, descriptor, fields, fixed_size):
        self.descriptor = descriptor
        self.fields = fields
        self.fixed_size = fixed_size
        self.dynamic_fields = [f for f in fields if f.dynamic]

    @property
    def name(self):
        return self.descriptor.name

    @property
    def is_fixed(self):
        return len(self.dynamic_fields) == 0

    def __repr__(self):
        return f'EncodingPlan({self.name}, fixed={self.fixed_size}) {self.fields}'

def synthesize(descriptor, classifier):
    fields = []
    cursor = 0
    n_dynamic = 0

    for i, field in enumerate(descriptor.fields):
        size_class = classifier.classify_field(descriptor, field)

        if size_class.dynamic:
            fields.append(FieldPlan(i, field, size_class, cursor, n_dynamic))
            n_dynamic += 1
            cursor += BYTES_PER_LENGTH_OFFSET
        else:
            fields.append(FieldPlan(i, field, size_class, cursor))
            cursor += size_class.fixed_size

    return EncodingPlan(descriptor, fields, cursor)
