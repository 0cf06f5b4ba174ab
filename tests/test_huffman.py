import io
import random

import pytest

import huffman as huff
from bitio import BitInputStream, BitOutputStream


def counts(data):
    return huff.read_for_counts(BitInputStream(io.BytesIO(data)))


def code_strings(data):
    root = huff.make_tree_from_counts(counts(data))
    return {s: huff.code_string(c) for s, c in huff.make_codings_from_tree(root).items()}


def walk(node):
    yield node
    if not node.is_leaf():
        yield from walk(node.left)
        yield from walk(node.right)


# Frequency counting

def test_counts_force_eof():
    freqs = counts(b"aaab")
    assert len(freqs) == huff.ALPH_SIZE + 1
    assert freqs[ord("a")] == 3
    assert freqs[ord("b")] == 1
    assert freqs[huff.PSEUDO_EOF] == 1
    assert sum(freqs) == 5


def test_counts_empty_input():
    freqs = counts(b"")
    assert freqs[huff.PSEUDO_EOF] == 1
    assert sum(freqs) == 1


# Tree and codes

def test_tree_for_aaab():
    root = huff.make_tree_from_counts(counts(b"aaab"))
    assert root.weight == 5
    assert code_strings(b"aaab") == {ord("a"): "1", ord("b"): "00", huff.PSEUDO_EOF: "01"}


def test_equal_weights_break_by_creation_order():
    assert code_strings(b"\x01\x02") == {huff.PSEUDO_EOF: "0", 1: "10", 2: "11"}


def test_empty_input_gets_two_leaves():
    root = huff.make_tree_from_counts(counts(b""))
    assert not root.is_leaf()
    assert root.left.symbol == 0 and root.left.weight == 0
    assert root.right.symbol == huff.PSEUDO_EOF
    assert code_strings(b"") == {0: "0", huff.PSEUDO_EOF: "1"}


def test_single_symbol_gets_one_bit_codes():
    assert code_strings(b"AAAA") == {huff.PSEUDO_EOF: "0", ord("A"): "1"}


def test_tree_shape_invariants():
    data = b"the quick brown fox jumps over the lazy dog" * 3
    root = huff.make_tree_from_counts(counts(data))
    assert root.weight == len(data) + 1
    leaves = [n for n in walk(root) if n.is_leaf()]
    assert sorted(n.symbol for n in leaves) == sorted(set(data) | {huff.PSEUDO_EOF})
    for node in walk(root):
        if not node.is_leaf():
            assert node.left is not None and node.right is not None
            assert node.weight == node.left.weight + node.right.weight


def test_codes_are_prefix_free():
    rng = random.Random(3)
    data = bytes(rng.choice(b"abcdeeeeffffffffgh\x00\xff") for _ in range(2000))
    codes = list(code_strings(data).values())
    for i, a in enumerate(codes):
        for j, b in enumerate(codes):
            if i != j:
                assert not b.startswith(a)


# Header codec

def test_header_round_trip_keeps_codes():
    data = b"mississippi river banks"
    root = huff.make_tree_from_counts(counts(data))
    buf = io.BytesIO()
    out = BitOutputStream(buf, close_stream=False)
    huff.write_header(root, out)
    out.close()
    assert out.bits_written == huff.header_size_bits(root)

    rebuilt = huff.read_tree_header(BitInputStream(io.BytesIO(buf.getvalue())))
    assert huff.make_codings_from_tree(rebuilt) == huff.make_codings_from_tree(root)
    assert all(n.weight == 0 for n in walk(rebuilt))


def test_header_stream_ends_early():
    with pytest.raises(huff.MalformedHeader):
        huff.decompress_bytes(b"\xfa\xce\x82\x01")
    with pytest.raises(huff.MalformedHeader):
        huff.decompress_bytes(b"\xfa\xce\x82\x01\x00")


def test_header_leaf_value_out_of_range():
    # leaf flag followed by 511
    with pytest.raises(huff.MalformedHeader):
        huff.decompress_bytes(b"\xfa\xce\x82\x01\xff\xc0")


def test_header_nested_too_deep():
    with pytest.raises(huff.MalformedHeader):
        huff.decompress_bytes(b"\xfa\xce\x82\x01" + b"\x00" * 40)


# Byte layout

def test_exact_bytes_for_aaab():
    assert huff.compress_bytes(b"aaab") == bytes.fromhex("face8201262c0261e2")
    assert huff.compressed_size_bits(b"aaab") == 71


def test_exact_bytes_for_empty_input():
    assert huff.compress_bytes(b"") == bytes.fromhex("face8201401804")
    assert huff.compressed_size_bits(b"") == 54


def test_size_bits_matches_output_length():
    data = bytes(range(256)) * 3 + b"zzzz"
    assert (huff.compressed_size_bits(data) + 7) // 8 == len(huff.compress_bytes(data))


# Round trips

@pytest.mark.parametrize("data", [
    b"",
    b"a",
    b"aaab",
    b"\x00",
    b"\xff" * 100,
    bytes(range(256)),
    b"Lorem ipsum dolor sit amet " * 200,
])
def test_round_trip(data):
    assert huff.decompress_bytes(huff.compress_bytes(data)) == data


def test_round_trip_random():
    rng = random.Random(42)
    for size in (1, 17, 1000, 5000):
        data = bytes(rng.randrange(256) for _ in range(size))
        assert huff.decompress_bytes(huff.compress_bytes(data)) == data


def test_skewed_data_shrinks():
    data = b"A" * 5000 + b"B" * 50
    assert len(huff.compress_bytes(data)) < len(data) // 4


# Failure modes

def test_bad_magic_writes_nothing():
    compressed = bytearray(huff.compress_bytes(b"hello"))
    compressed[0] ^= 0x01
    buf = io.BytesIO()
    with pytest.raises(huff.BadMagicNumber):
        huff.decompress(BitInputStream(io.BytesIO(bytes(compressed))), BitOutputStream(buf, close_stream=False))
    assert buf.getvalue() == b""


def test_too_short_for_magic():
    with pytest.raises(huff.BadMagicNumber):
        huff.decompress_bytes(b"\xfa\xce")


def test_errors_are_value_errors():
    assert issubclass(huff.BadMagicNumber, huff.HuffError)
    assert issubclass(huff.MalformedHeader, huff.HuffError)
    assert issubclass(huff.TruncatedStream, huff.HuffError)
    assert issubclass(huff.HuffError, ValueError)


def test_every_truncation_fails():
    data = b"hello huffman world, " * 3
    full = huff.compress_bytes(data)
    root = huff.make_tree_from_counts(counts(data))
    header_end = (huff.BITS_PER_INT + huff.header_size_bits(root) + 7) // 8

    for cut in range(len(full)):
        if cut < 4:
            expected = huff.BadMagicNumber
        elif cut < header_end:
            expected = huff.MalformedHeader
        else:
            expected = huff.TruncatedStream
        with pytest.raises(expected):
            huff.decompress_bytes(full[:cut])


def test_truncated_output_is_a_prefix():
    data = b"abracadabra" * 20
    full = huff.compress_bytes(data)
    buf = io.BytesIO()
    with pytest.raises(huff.TruncatedStream):
        huff.decompress(BitInputStream(io.BytesIO(full[:len(full) // 2])), BitOutputStream(buf, close_stream=False))
    partial = buf.getvalue()
    assert partial
    assert data.startswith(partial)


# Reporting

def test_describe_header():
    info = huff.describe_header(huff.compress_bytes(b"aaab"))
    assert info == {
        "leaves": 3,
        "header_bits": 32,
        "codes": {ord("a"): "1", ord("b"): "00", huff.PSEUDO_EOF: "01"},
    }


def test_debug_reports_to_stderr(capsys):
    compressed = huff.compress_bytes(b"aaab", debug=huff.DEBUG_HIGH)
    err = capsys.readouterr().err
    assert "compress: read 64 bits, wrote 71 bits, 3 leaves" in err
    assert "97\t3\t1" in err

    huff.decompress_bytes(compressed, debug=huff.DEBUG_LOW)
    err = capsys.readouterr().err
    assert "decompress: read 71 bits, wrote 32 bits, 3 leaves" in err


def test_no_debug_is_quiet(capsys):
    huff.decompress_bytes(huff.compress_bytes(b"quiet"))
    assert capsys.readouterr().err == ""


def test_lone_leaf_tree_is_rejected():
    # header "1 001100001" (a single leaf for 'a') then payload bits 111111
    data = b"\xfa\xce\x82\x01\x98\x7f"
    buf = io.BytesIO()
    with pytest.raises(huff.MalformedHeader, match="single leaf"):
        huff.decompress(BitInputStream(io.BytesIO(data)), BitOutputStream(buf, close_stream=False))
    assert buf.getvalue() == b""
    with pytest.raises(huff.MalformedHeader):
        huff.describe_header(data)
