import struct

import pytest

from sszgen.process import Config
from sszgen.runtime import (BufferTooShort, DecodeOverrun, InvalidBitfield, InvalidBoolean,
                            InvalidLength, InvalidOffset)


FOO = '''package sszgen_testpkg;

struct Foo {
    uint64 a;
    byte[] b;
}
'''

BEACON = '''package sszgen_testpkg;

type Root = byte[32];

struct Checkpoint {
    uint64 epoch;
    Root root;
}

struct Attestation {
    bitlist<2048> aggregation_bits;
    Checkpoint source;
    Checkpoint[2] votes;
    uint64[] indices;
    byte[][] blobs;
    bool final;
}

struct Pair {
    byte[] left;
    byte[] right;
}
'''


def test_scenario_foo(compile_schema):
    gen = compile_schema(FOO)
    value = gen.models.Foo(a=1, b=bytes([9, 9]))

    encoded = gen.marshal_foo(value)

    assert encoded == b'\x01' + b'\x00' * 7 + b'\x0c\x00\x00\x00' + b'\x09\x09'
    assert gen.size_foo(value) == 8 + 4 + 2
    assert gen.unmarshal_foo(encoded) == value


def test_empty_list_encodes_to_fixed_region(compile_schema):
    gen = compile_schema(FOO)
    value = gen.models.Foo(a=7, b=b'')

    encoded = gen.marshal_foo(value)

    assert len(encoded) == 12
    assert gen.size_foo(value) == 12
    assert gen.unmarshal_foo(encoded) == value


def test_fixed_type_has_constant_size(compile_schema):
    gen = compile_schema(BEACON)
    Checkpoint = gen.models.Checkpoint
    value = Checkpoint(epoch=2 ** 64 - 1, root=b'\xaa' * 32)

    assert 'return 40\n' in gen.code
    assert gen.size_checkpoint(value) == 40

    encoded = gen.marshal_checkpoint(value)
    assert encoded == b'\xff' * 8 + b'\xaa' * 32
    assert gen.unmarshal_checkpoint(encoded) == value


def make_attestation(models):
    Checkpoint = models.Checkpoint

    return models.Attestation(
        aggregation_bits=b'\x0b',
        source=Checkpoint(epoch=3, root=b'\x11' * 32),
        votes=[Checkpoint(epoch=1, root=b'\x01' * 32), Checkpoint(epoch=2, root=b'\x02' * 32)],
        indices=[1, 2, 3],
        blobs=[b'ab', b'', b'xyz'],
        final=True,
    )


def test_round_trip_with_nested_and_variable_fields(compile_schema):
    gen = compile_schema(BEACON)
    value = make_attestation(gen.models)

    encoded = gen.marshal_attestation(value)

    # 4 + 40 + 80 + 4 + 4 + 1 bytes of fixed region.
    assert gen.size_attestation(value) == 133 + 1 + 24 + (12 + 5)
    assert len(encoded) == gen.size_attestation(value)
    assert gen.unmarshal_attestation(encoded) == value


def test_offsets_point_at_payloads(compile_schema):
    gen = compile_schema(BEACON)
    encoded = gen.marshal_attestation(make_attestation(gen.models))

    offsets = [struct.unpack_from('<I', encoded, pos)[0] for pos in (0, 124, 128)]

    assert offsets == [133, 134, 158]
    assert offsets == sorted(offsets)
    assert encoded[132] == 1
    assert encoded[133:134] == b'\x0b'
    assert encoded[134:158] == struct.pack('<3Q', 1, 2, 3)


def test_buffer_too_short(compile_schema):
    gen = compile_schema(FOO)

    with pytest.raises(BufferTooShort):
        gen.unmarshal_foo(b'\x00' * 11)

    with pytest.raises(BufferTooShort):
        gen.unmarshal_foo(b'')


def test_buffer_too_short_for_fixed_type(compile_schema):
    gen = compile_schema(BEACON)

    with pytest.raises(BufferTooShort):
        gen.unmarshal_checkpoint(b'\x00' * 39)


def test_trailing_bytes_on_fixed_type(compile_schema):
    gen = compile_schema(BEACON)

    with pytest.raises(DecodeOverrun):
        gen.unmarshal_checkpoint(b'\x00' * 41)


@pytest.mark.parametrize('first, second', [
    (9, 10),     # first offset does not match the fixed region
    (8, 7),      # decreasing
    (8, 100),    # past the end of the buffer
])
def test_invalid_offsets(compile_schema, first, second):
    gen = compile_schema(BEACON)
    encoded = bytearray(gen.marshal_pair(gen.models.Pair(left=b'xy', right=b'z')))

    assert struct.unpack_from('<II', encoded, 0) == (8, 10)

    struct.pack_into('<II', encoded, 0, first, second)

    with pytest.raises(InvalidOffset):
        gen.unmarshal_pair(bytes(encoded))


def test_equal_offsets_mean_empty_payload(compile_schema):
    gen = compile_schema(BEACON)
    value = gen.models.Pair(left=b'', right=b'abc')

    encoded = gen.marshal_pair(value)

    assert struct.unpack_from('<II', encoded, 0) == (8, 8)
    assert gen.unmarshal_pair(encoded) == value


def test_element_errors_surface(compile_schema):
    gen = compile_schema(BEACON)
    encoded = bytearray(gen.marshal_attestation(make_attestation(gen.models)))

    bad_bool = bytearray(encoded)
    bad_bool[132] = 2
    with pytest.raises(InvalidBoolean):
        gen.unmarshal_attestation(bytes(bad_bool))

    bad_bits = bytearray(encoded)
    bad_bits[133] = 0
    with pytest.raises(InvalidBitfield):
        gen.unmarshal_attestation(bytes(bad_bits))

    # Move the blobs offset so the indices segment is 23 bytes long.
    overrun = bytearray(encoded)
    struct.pack_into('<I', overrun, 128, 157)
    with pytest.raises(DecodeOverrun):
        gen.unmarshal_attestation(bytes(overrun))


def test_marshal_rejects_wrong_lengths(compile_schema):
    gen = compile_schema(BEACON)

    with pytest.raises(InvalidLength):
        gen.marshal_checkpoint(gen.models.Checkpoint(epoch=0, root=b'short'))

    value = make_attestation(gen.models)
    value.votes = value.votes[:1]
    with pytest.raises(InvalidLength):
        gen.marshal_attestation(value)


@pytest.mark.parametrize('epoch', [-1, 2 ** 64])
def test_marshal_rejects_out_of_range_integers(compile_schema, epoch):
    gen = compile_schema(BEACON)

    with pytest.raises(InvalidLength):
        gen.marshal_checkpoint(gen.models.Checkpoint(epoch=epoch, root=b'\x00' * 32))

    value = make_attestation(gen.models)
    value.indices = [1, epoch]
    with pytest.raises(InvalidLength):
        gen.marshal_attestation(value)


def test_struct_names_do_not_shadow_builtins(compile_schema):
    gen = compile_schema('''package sszgen_testpkg;

struct bytes {
    byte[] data;
}

struct len {
    bytes inner;
    uint8[] items;
}
''')
    models = gen.models
    value = models.len(inner=models.bytes(data=b'abc'), items=[1, 2])

    encoded = gen.marshal_len(value)

    assert len(encoded) == gen.size_len(value)
    assert gen.unmarshal_len(encoded) == value


def test_collections_round_trip(compile_schema):
    gen = compile_schema('''package sszgen_testpkg;

struct Inner {
    uint16 id;
    byte[] data;
}

struct Collections {
    uint8[3] small;
    uint16[2][2] grid;
    uint256 big;
    bitvector<12> flags;
    uint32[][] nested;
    Inner[] inners;
    byte[][2] halves;
    bool[] switches;
    bitlist tail;
}
''')
    models = gen.models
    value = models.Collections(
        small=[1, 2, 3],
        grid=[[1, 2], [3, 4]],
        big=2 ** 255 + 5,
        flags=b'\xff\x0f',
        nested=[[1], [], [2, 3]],
        inners=[models.Inner(id=5, data=b'abc'), models.Inner(id=6, data=b'')],
        halves=[b'left', b'right'],
        switches=[True, False, True],
        tail=b'\x01',
    )

    encoded = gen.marshal_collections(value)

    assert len(encoded) == gen.size_collections(value)
    assert gen.unmarshal_collections(encoded) == value


def test_memoryview_input(compile_schema):
    gen = compile_schema(FOO)
    value = gen.models.Foo(a=5, b=b'hello')

    assert gen.unmarshal_foo(memoryview(gen.marshal_foo(value))) == value


def test_single_type_imports_nested_routines(write_schema):
    code = Config(dir=write_schema(BEACON), type='Attestation').process()
    header = code.split('def ')[0]

    assert 'def marshal_attestation(obj):' in code
    assert 'def marshal_checkpoint(obj):' not in code
    assert 'def size_pair(obj):' not in code
    assert 'import sszgen_testpkg as _package' in header
    assert '_package.marshal_checkpoint(' in code
    assert '_package.unmarshal_checkpoint(' in code
    assert '_package.Attestation(' in code


def test_types_are_emitted_in_lexical_order(compile_schema):
    gen = compile_schema(BEACON)

    positions = [gen.code.index(f'def size_{name}(obj):') for name in ('attestation', 'checkpoint', 'pair')]

    assert positions == sorted(positions)
