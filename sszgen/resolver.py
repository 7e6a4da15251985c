"""Loads one schema package into immutable type descriptors.

A package is a directory of ``*.ssz`` files sharing one ``package``
declaration. Files may start with ``// sszgen:build <expr>`` lines (``#``
works as well); a file whose constraint does not hold for the active build
tags is skipped.

Only ``*.ssz`` files are read, so generated ``.py`` modules next to the
schema are never considered. The ``# sszgen:build !nosszgen`` guard the
generator writes marks its output; with ``nosszgen`` active by default it
also keeps generated text out of a run when it is saved under a ``.ssz``
name.
"""

import logging
import os
import re

from lark.lark import Lark
from lark.visitors import Transformer
from lark.exceptions import LarkError

from sszgen.errors import DeclarationError, MultiplePackagesError, NoPackageError
from sszgen.parser import CompilationUnit
from sszgen.types import FieldDescriptor, TypeDescriptor, TypeRegistry

logger = logging.getLogger(__name__)

SCHEMA_SUFFIX = '.ssz'
DEFAULT_TAGS = ('nosszgen',)

BUILD_PREFIX = re.compile(r'^(?://|#)\s*sszgen:build\s+(.*)$')

constraint_grammar = r'''
?start: or_expr
?or_expr: and_expr ("||" and_expr)*
?and_expr: not_expr ("&&" not_expr)*
?not_expr: "!" not_expr -> negate
         | atom
?atom: TAG -> tag
     | "(" or_expr ")"

TAG: /[A-Za-z0-9_.]+/

%import common.WS_INLINE
%ignore WS_INLINE
'''

constraint_parser = Lark(constraint_grammar, parser = 'lalr')

class ConstraintEvaluator(Transformer):
    def __init__(self, tags):
        super().__init__()
        self.tags = set(tags)

    def or_expr(self, items):
        return any(items)

    def and_expr(self, items):
        return all(items)

    def negate(self, items):
        return not items[0]

    def tag(self, items):
        return str(items[0]) in self.tags

def evaluate_constraint(expr, tags):
    tree = constraint_parser.parse(expr)
    return ConstraintEvaluator(tags).transform(tree)

def build_constraints(source):
    constraints = []

    for line in source.split('\n'):
        line = line.strip()
        if not line:
            continue
        if not line.startswith(('//', '#')):
            break

        match = BUILD_PREFIX.match(line)
        if match:
            constraints.append(match.group(1).strip())

    return constraints

def should_build(filename, source, tags):
    for expr in build_constraints(source):
        try:
            if not evaluate_constraint(expr, tags):
                return False
        except LarkError as e:
            raise DeclarationError(f'{filename}: malformed build constraint \'{expr}\'',
                    [str(e)]) from e
    return True

class Package:
    def __init__(self, name, directory, types):
        self.name = name
        self.directory = directory
        self.types = types

    def lookup(self, name):
        for t in self.types:
            if t.name == name:
                return t
        return None

    def __repr__(self):
        return f'Package({self.name}, {len(self.types)} types)'

def load_package(directory, tags = DEFAULT_TAGS):
    if not os.path.isdir(directory):
        raise NoPackageError(f'no schema package found in {directory}')

    units = []
    for entry in sorted(os.listdir(directory)):
        path = os.path.join(directory, entry)
        if not entry.endswith(SCHEMA_SUFFIX) or not os.path.isfile(path):
            continue

        try:
            with open(path, 'r', encoding = 'utf-8') as f:
                source = f.read()
        except UnicodeDecodeError as e:
            raise DeclarationError(f'{path}: schema files must be UTF-8 encoded ({e.reason} at byte {e.start})',
                    [str(e)]) from e

        if not should_build(path, source, tags):
            logger.debug('skipping %s: excluded by build constraints', path)
            continue

        units.append(CompilationUnit(path, source))

    if len(units) == 0:
        raise NoPackageError(f'no schema package found in {directory}')

    for unit in units:
        unit.process()

    parsed = [unit for unit in units if unit.tokens is not None]
    names = sorted({unit.package.name for unit in parsed})
    if len(names) > 1:
        raise MultiplePackagesError(
                f'at most one package can be processed at the same time (found {", ".join(names)})')

    package_name = names[0] if names else os.path.basename(os.path.abspath(directory))

    registry = TypeRegistry()
    aliases = {}
    for unit in parsed:
        unit.declare(registry, aliases)
    for unit in parsed:
        unit.verify(registry, aliases)

    diagnostics = [e for unit in units for e in unit.errors]
    if diagnostics:
        raise DeclarationError(f'package {package_name} has errors', diagnostics)

    types = []
    for unit in parsed:
        for struct in unit.structs():
            fields = tuple(FieldDescriptor(m.name, m.type, m.line, m.column)
                    for m in struct.members)
            types.append(TypeDescriptor(struct.name, package_name, fields,
                    unit.filename, struct.line))

    logger.debug('loaded package %s from %d files: %d struct types',
            package_name, len(units), len(types))

    return Package(package_name, directory, types)
