from sszgen.parser import CompilationUnit, expected_to_human_readable
from sszgen.tokens import PackageTag, Struct, TypeAlias


SOURCE = '''// Beacon chain types.
package beacon.types;

type Root = byte[32];

/* A vote target. */
struct Checkpoint {
    uint64 epoch;
    Root root;
}

struct Bits {
    bitvector<64> flags;
    bitlist<2048> votes;
    byte[32][] roots;
}
'''


def test_parses_declarations():
    unit = CompilationUnit('schema.ssz', SOURCE)

    assert unit.process()
    assert isinstance(unit.package, PackageTag)
    assert unit.package.name == 'beacon.types'

    kinds = [type(t) for t in unit.tokens[1:]]
    assert kinds == [TypeAlias, Struct, Struct]

    checkpoint = unit.structs()[0]
    assert checkpoint.name == 'Checkpoint'
    assert [m.name for m in checkpoint.members] == ['epoch', 'root']
    assert checkpoint.members[0].line == 8


def test_type_names_keep_parameters_and_sizes():
    unit = CompilationUnit('schema.ssz', SOURCE)
    unit.process()

    bits = unit.structs()[1]
    names = [m.typename for m in bits.members]

    assert [n.name for n in names] == ['bitvector<64>', 'bitlist<2048>', 'byte[32][]']
    assert names[0].param == 64
    assert names[2].sizes == (32, None)


def test_syntax_error_is_reported(capsys):
    unit = CompilationUnit('broken.ssz', 'package p;\nstruct A {\n    uint64 x\n}\n')

    assert not unit.process()
    assert len(unit.errors) == 1
    assert unit.errors[0].startswith('broken.ssz:4:1:')
    assert "unexpected token '}'" in unit.errors[0]

    err = capsys.readouterr().err
    assert 'was expecting a semicolon here' in err
    assert '  4 | }' in err


def test_missing_package_is_a_syntax_error():
    unit = CompilationUnit('nopkg.ssz', 'struct A {}\n')

    assert not unit.process()
    assert unit.errors


def test_unexpected_end_of_file():
    unit = CompilationUnit('eof.ssz', 'package p;\nstruct A {\n')

    assert not unit.process()
    assert 'unexpected end of file' in unit.errors[0]


def test_expected_tokens_are_human_readable():
    assert expected_to_human_readable(['SEMICOLON', 'LSQB']) == 'a semicolon, an array'
