import keyword
import sys

from lark.lark import Lark
from lark.visitors import Transformer, v_args
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedToken

from sszgen.tokens import *
from sszgen.types import *

grammar = r'''
start: package (struct | alias)*

package: "package" NAME ("." NAME)* ";"
struct: "struct" NAME "{" struct_member* "}"
alias: "type" NAME "=" type_name ";"

struct_member: type_name NAME ";"

type_name: NAME type_param? type_size*
type_param: "<" INT ">"
type_size: "[" INT "]"
         | "[" "]"

NAME: CNAME

%import common.INT
%import common.CNAME
%import common.CPP_COMMENT
%import common.C_COMMENT

%import common.WS
%ignore WS
%ignore CPP_COMMENT
%ignore C_COMMENT
'''

RESERVED_NAMES = [
        'uint8', 'uint16', 'uint32', 'uint64', 'uint128', 'uint256',
        'int8', 'int16', 'int32', 'int64',
        'byte', 'bool', 'float32', 'float64', 'string', 'any',
        'bitvector', 'bitlist']

class IdlTransformer(Transformer):
    def start(self, items):
        return items

    @v_args(meta = True)
    def package(self, meta, items):
        return PackageTag(meta.line, meta.column, '.'.join(items))

    @v_args(meta = True)
    def struct(self, meta, items):
        return Struct(meta.line, meta.column, items[0], items[1:])

    @v_args(meta = True)
    def alias(self, meta, items):
        return TypeAlias(meta.line, meta.column, items[0], items[1])

    @v_args(meta = True)
    def struct_member(self, meta, items):
        return StructMember(meta.line, meta.column, items[0], items[1])

    @v_args(meta = True)
    def type_name(self, meta, items):
        param = None
        sizes = []

        for kind, value in items[1:]:
            if kind == 'param':
                param = value
            else:
                sizes.append(value)

        return TypeName(meta.line, meta.column, items[0], param, sizes)

    def type_param(self, items):
        return ('param', items[0])

    def type_size(self, items):
        return ('size', items[0] if len(items) > 0 else None)

    def NAME(self, token):
        return str(token)

    def INT(self, token):
        return int(token)

def token_name_to_human_readable(token):
    if token == 'NAME':
        return 'a name'
    elif token == 'INT':
        return 'a number'
    elif token == 'LBRACE':
        return 'a left brace'
    elif token == 'RBRACE':
        return 'a right brace'
    elif token == 'LSQB':
        return 'an array' # this is more descriptive than "a left square bracket"
    elif token == 'RSQB':
        return 'a right square bracket'
    elif token == 'LESSTHAN':
        return 'a type parameter'
    elif token == 'MORETHAN':
        return 'a closing angle bracket'
    elif token == 'SEMICOLON':
        return 'a semicolon'
    elif token == 'EQUAL':
        return 'an equals sign'
    elif token == 'DOT':
        return 'a dot'
    elif token == 'PACKAGE':
        return '"package"'
    elif token == 'STRUCT':
        return '"struct"'
    elif token == 'TYPE':
        return '"type"'
    elif token == '$END':
        return 'the end of the file'
    else:
        return token

def expected_to_human_readable(expected):
    return ', '.join(sorted(
            [token_name_to_human_readable(i if type(i) is str else i.name)
                for i in set(expected)]))

class CompilationUnit:
    def __init__(self, filename, source):
        self.filename = filename
        self.source = source
        self.lines = source.split('\n')
        self.tokens = None
        self.package = None
        self.errors = []
        self.eof = EofToken(len(self.lines), len(self.lines[-1]) + 1)

    def report_message(self, token, mesg_type, mesg1, mesg2 = ''):
        line_no = token.line if token.line and token.line > 0 else self.eof.line
        column = token.column if token.column and token.column > 0 else 1
        line = self.lines[line_no - 1] if line_no <= len(self.lines) else ''

        n_tabs = line.count('\t')
        line = line.replace('\t', '        ')
        line_number = str(line_no)

        n_spaces = len(line_number) + ((column + n_tabs * 7) - 1) + 5
        spaces = n_spaces * ' '

        print(f'{self.filename}:{line_no}:{column}: {mesg_type}: {mesg1}', file = sys.stderr)
        print(f'  {line_number} | {line}', file = sys.stderr)
        print(f'{spaces}^', file = sys.stderr)

        if len(mesg2) > 0:
            print(f'{spaces}{mesg2}', file = sys.stderr)

        if mesg_type == 'error':
            self.errors.append(f'{self.filename}:{line_no}:{column}: {mesg1}')

    def process(self):
        parser = Lark(grammar, propagate_positions = True, parser = 'lalr')
        parsed = None

        try:
            parsed = parser.parse(self.source)
        except UnexpectedToken as e:
            if e.token.type == '$END':
                self.report_message(self.eof, 'error',
                        'unexpected end of file',
                        f'was expecting {expected_to_human_readable(e.expected)} here')
            else:
                self.report_message(e, 'error',
                        f'unexpected token \'{e.token}\'',
                        f'was expecting {expected_to_human_readable(e.expected)} here')
        except UnexpectedCharacters as e:
            self.report_message(e, 'error',
                    f'unexpected character \'{self.lines[e.line - 1][e.column - 1]}\'',
                    f'was expecting {expected_to_human_readable(e.allowed)} here')
        except UnexpectedEOF as e:
            self.report_message(self.eof, 'error',
                    'unexpected end of file',
                    f'was expecting {expected_to_human_readable(e.expected)} here')

        if parsed is None:
            return False

        self.tokens = IdlTransformer().transform(parsed)
        self.package = self.tokens[0]
        return True

    def declare(self, registry, aliases):
        for t in self.tokens[1:]:
            if t.name in RESERVED_NAMES or registry.is_known_type(t.name) or t.name in aliases:
                self.report_message(t, 'error', f'redefinition of \'{t.name}\'', '')
                continue

            if type(t) is Struct:
                registry.register_type(Type(t.name, TypeIdentity.STRUCT))
            elif type(t) is TypeAlias:
                aliases[t.name] = (self, t)

    def resolve_typename(self, typename, registry, aliases, resolving = ()):
        if typename.base in aliases and not registry.is_known_type(typename.base):
            unit, alias = aliases[typename.base]

            if alias.name in resolving:
                self.report_message(typename, 'error',
                        f'type alias \'{alias.name}\' refers to itself',
                        'via ' + ' -> '.join(resolving + (alias.name,)))
                return None

            unit.resolve_alias(alias, registry, aliases, resolving)

            # The alias reported its own error.
            if not registry.is_known_type(typename.base):
                return None

        try:
            result = registry.parse_type(typename.base, typename.param, typename.sizes)
        except ValueError as e:
            self.report_message(typename, 'error',
                    f'invalid type \'{typename.name}\'', str(e))
            return None

        if not result:
            self.report_message(typename, 'error',
                    'unknown type', f'{typename.base} is not a known type')

        return result

    def resolve_alias(self, alias, registry, aliases, resolving = ()):
        if alias.type is not None:
            return

        alias.type = self.resolve_typename(alias.typename, registry, aliases,
                resolving + (alias.name,))

        if alias.type:
            registry.register_alias(alias.name, alias.type)
        else:
            alias.type = False

    def verify_member(self, m, known_names, registry, aliases):
        if keyword.iskeyword(m.name):
            self.report_message(m, 'error',
                    f'\'{m.name}\' is a reserved word', 'choose a different field name')

        if m.name in known_names:
            self.report_message(m, 'error',
                    f'name \'{m.name}\' is already in use by a different member', '')

        known_names.append(m.name)

        m.type = self.resolve_typename(m.typename, registry, aliases)

    def verify_struct(self, struct, registry, aliases):
        known_names = []
        for m in struct.members:
            self.verify_member(m, known_names, registry, aliases)

    def verify(self, registry, aliases):
        for i in self.tokens[1:]:
            if type(i) is Struct:
                self.verify_struct(i, registry, aliases)
            elif type(i) is TypeAlias:
                self.resolve_alias(i, registry, aliases)
            else:
                self.report_message(i, 'error',
                        'unexpected token at top level', '')

    def structs(self):
        return [t for t in self.tokens[1:] if type(t) is Struct]
