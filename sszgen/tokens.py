class PackageTag:
    def __init__(self, line, column, name):
        self.line = line
        self.column = column
        self.name = name

    def __repr__(self):
        return 'Package(' + self.name + ')'

class Struct:
    def __init__(self, line, column, name, members):
        self.line = line
        self.column = column
        self.name = name
        self.members = members

    def __repr__(self):
        return 'Struct(' + self.name + ') { ' + str(self.members) + ' }'

class StructMember:
    def __init__(self, line, column, typename, name):
        self.line = line
        self.column = column
        self.typename = typename
        self.type = None
        self.name = name

    def __repr__(self):
        return str(self.type or self.typename) + ' ' + self.name

class TypeAlias:
    def __init__(self, line, column, name, typename):
        self.line = line
        self.column = column
        self.name = name
        self.typename = typename
        self.type = None

    def __repr__(self):
        return 'TypeAlias(' + self.name + ' = ' + str(self.typename) + ')'

class TypeName:
    def __init__(self, line, column, base, param = None, sizes = ()):
        self.line = line
        self.column = column
        self.base = base
        self.param = param
        self.sizes = tuple(sizes)

    @property
    def name(self):
        out = self.base
        if self.param is not None:
            out += f'<{self.param}>'
        for size in self.sizes:
            out += f'[{size}]' if size is not None else '[]'
        return out

    def __repr__(self):
        return self.name

class EofToken:
    def __init__(self, line, column):
        self.line = line
        self.column = column
