import heapq
import io
import itertools
import sys

from bitio import EOF, BitInputStream, BitOutputStream

BITS_PER_WORD = 8
BITS_PER_INT = 32
ALPH_SIZE = 1 << BITS_PER_WORD
PSEUDO_EOF = ALPH_SIZE              # end-of-stream marker, never written as a literal
HUFF_NUMBER = 0xface8200
HUFF_TREE = HUFF_NUMBER | 1         # magic number for the tree-header format
LEAF_BITS = BITS_PER_WORD + 1       # enough for 0..PSEUDO_EOF
DEBUG_HIGH = 4
DEBUG_LOW = 1


class HuffError(ValueError):
    """Base class for anything that makes a compressed stream unreadable."""


class BadMagicNumber(HuffError):
    pass


class MalformedHeader(HuffError):
    pass


class TruncatedStream(HuffError):
    pass


class HuffmanNode: # Node for Huffman tree
    def __init__(self, symbol, weight, left=None, right=None, order=0):
        self.symbol = symbol    # 0..256 for leaves, None for internal nodes
        self.weight = weight
        self.left = left
        self.right = right
        self.order = order      # creation order, breaks weight ties in the heap

    def is_leaf(self):
        return self.left is None and self.right is None

    def __lt__(self, other):
        return (self.weight, self.order) < (other.weight, other.order)

    def __repr__(self):
        if self.is_leaf():
            return f"Leaf({self.symbol}, {self.weight})"
        return f"Internal({self.weight}, {self.left!r}, {self.right!r})"


def code_string(code):
    bits, length = code
    return format(bits, f"0{length}b")


def read_for_counts(bit_in):
    freqs = [0] * (ALPH_SIZE + 1)
    while True:
        val = bit_in.read_bits(BITS_PER_WORD)
        if val == EOF:
            break
        freqs[val] += 1
    freqs[PSEUDO_EOF] = 1 # forced, never counted
    return freqs


def make_tree_from_counts(freqs):
    counter = itertools.count()
    priority_queue = [HuffmanNode(symbol, weight, order=next(counter))
                      for symbol, weight in enumerate(freqs)
                      if weight > 0 and symbol != PSEUDO_EOF]
    priority_queue.append(HuffmanNode(PSEUDO_EOF, 1, order=next(counter)))

    # only PSEUDO_EOF present (empty input): pad so the root is internal and every code has a bit
    if len(priority_queue) == 1:
        priority_queue.append(HuffmanNode(0, 0, order=next(counter)))

    heapq.heapify(priority_queue)
    while len(priority_queue) > 1:
        left = heapq.heappop(priority_queue)
        right = heapq.heappop(priority_queue)
        merged_node = HuffmanNode(None, left.weight + right.weight, left, right, order=next(counter))
        heapq.heappush(priority_queue, merged_node)

    return priority_queue[0] # root of the tree


def make_codings_from_tree(root):
    codes = {}
    # explicit stack of (node, bits, length); right pushed first so left is visited first
    stack = [(root, 0, 0)]
    while stack:
        node, bits, length = stack.pop()
        if node.is_leaf():
            codes[node.symbol] = (bits, length)
            continue
        stack.append((node.right, (bits << 1) | 1, length + 1))
        stack.append((node.left, bits << 1, length + 1))
    return codes


def write_header(node, bit_out):
    # pre-order: 0 for internal, 1 + symbol for leaf
    if node.is_leaf():
        bit_out.write_bits(1, 1)
        bit_out.write_bits(LEAF_BITS, node.symbol)
        return
    bit_out.write_bits(1, 0)
    write_header(node.left, bit_out)
    write_header(node.right, bit_out)


def read_tree_header(bit_in, depth=0):
    bit = bit_in.read_bits(1)
    if bit == EOF:
        raise MalformedHeader("stream ended inside tree header")
    if bit == 0:
        # 257 leaves can never need a deeper path than ALPH_SIZE
        if depth >= ALPH_SIZE:
            raise MalformedHeader("tree header nested too deep")
        left = read_tree_header(bit_in, depth + 1)
        right = read_tree_header(bit_in, depth + 1)
        return HuffmanNode(None, 0, left, right)

    value = bit_in.read_bits(LEAF_BITS)
    if value == EOF:
        raise MalformedHeader("stream ended inside leaf value")
    if value > PSEUDO_EOF:
        raise MalformedHeader(f"leaf value {value} out of range")
    return HuffmanNode(value, 0)


def read_tree(bit_in):
    root = read_tree_header(bit_in)
    # a lone leaf has no path, so no payload bit could ever reach it
    if root.is_leaf():
        raise MalformedHeader("tree header is a single leaf")
    return root


def read_magic(bit_in):
    bits = bit_in.read_bits(BITS_PER_INT)
    if bits != HUFF_TREE:
        shown = "end of stream" if bits == EOF else hex(bits)
        raise BadMagicNumber(f"illegal header starts with {shown}")


def write_compressed_bits(codings, bit_in, bit_out):
    bit_in.reset()
    while True:
        val = bit_in.read_bits(BITS_PER_WORD)
        if val == EOF:
            break
        bits, length = codings[val]
        bit_out.write_bits(length, bits)
    bits, length = codings[PSEUDO_EOF]
    bit_out.write_bits(length, bits)


def read_compressed_bits(root, bit_in, bit_out):
    current = root
    while True:
        bit = bit_in.read_bits(1)
        if bit == EOF:
            raise TruncatedStream("bad input, no PSEUDO_EOF")
        current = current.right if bit else current.left

        if current.is_leaf():
            if current.symbol == PSEUDO_EOF:
                return
            bit_out.write_bits(BITS_PER_WORD, current.symbol)
            current = root # back to the root for the next symbol


def _report(verb, bits_read, bits_written, leaves):
    print(f"{verb}: read {bits_read} bits, wrote {bits_written} bits, {leaves} leaves",
          file=sys.stderr)


def compress(bit_in, bit_out, debug=0):
    """
    Compress bit_in into bit_out. bit_in is read twice, so it must support reset().
    """
    freqs = read_for_counts(bit_in)
    counted_bits = bit_in.bits_read
    tree = make_tree_from_counts(freqs)
    codings = make_codings_from_tree(tree)

    if debug >= DEBUG_HIGH:
        for symbol in sorted(codings):
            print(f"{symbol}\t{freqs[symbol]}\t{code_string(codings[symbol])}", file=sys.stderr)

    bit_out.write_bits(BITS_PER_INT, HUFF_TREE)
    write_header(tree, bit_out)
    write_compressed_bits(codings, bit_in, bit_out)
    if debug >= DEBUG_LOW:
        # reset() cleared the counter, so add the counting pass back in
        _report("compress", counted_bits + bit_in.bits_read, bit_out.bits_written, len(codings))
    bit_out.close()


def decompress(bit_in, bit_out, debug=0):
    """
    Decompress bit_in into bit_out. Raises a HuffError subclass on corrupt input;
    whatever was written to bit_out by then should be discarded.
    """
    read_magic(bit_in)
    root = read_tree(bit_in)
    read_compressed_bits(root, bit_in, bit_out)
    if debug >= DEBUG_LOW:
        _report("decompress", bit_in.bits_read, bit_out.bits_written, count_leaves(root))
    bit_out.close()


def count_leaves(node):
    if node.is_leaf():
        return 1
    return count_leaves(node.left) + count_leaves(node.right)


def compress_bytes(data: bytes, debug: int = 0) -> bytes:
    buf = io.BytesIO()
    compress(BitInputStream(io.BytesIO(data)), BitOutputStream(buf, close_stream=False), debug)
    return buf.getvalue()


def decompress_bytes(data: bytes, debug: int = 0) -> bytes:
    buf = io.BytesIO()
    decompress(BitInputStream(io.BytesIO(data)), BitOutputStream(buf, close_stream=False), debug)
    return buf.getvalue()


def compressed_size_bits(data: bytes) -> int:
    """
    Exact size of compress_bytes(data) in bits, before padding to a byte boundary
    """
    bit_in = BitInputStream(io.BytesIO(data))
    freqs = read_for_counts(bit_in)
    tree = make_tree_from_counts(freqs)
    codings = make_codings_from_tree(tree)
    header_bits = header_size_bits(tree)
    payload_bits = sum(freqs[s] * codings[s][1] for s in codings)
    return BITS_PER_INT + header_bits + payload_bits


def header_size_bits(node):
    if node.is_leaf():
        return 1 + LEAF_BITS
    return 1 + header_size_bits(node.left) + header_size_bits(node.right)


def describe_header(data: bytes) -> dict:
    """
    Read the magic number and tree of a compressed stream without decoding the payload.
    Returns leaf count, header size in bits and the symbol -> code-string table.
    """
    bit_in = BitInputStream(io.BytesIO(data))
    read_magic(bit_in)
    root = read_tree(bit_in)
    codings = make_codings_from_tree(root)
    return {
        "leaves": len(codings),
        "header_bits": bit_in.bits_read - BITS_PER_INT,
        "codes": {symbol: code_string(code) for symbol, code in sorted(codings.items())},
    }
