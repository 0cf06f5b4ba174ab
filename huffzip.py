"""
Command line front end for the Huffman codec.

How to run:
  python huffzip.py compress book.txt
  python huffzip.py compress book.txt -o book.hf --debug 1
  python huffzip.py decompress book.txt.hf -o book.out
  python huffzip.py info book.txt.hf
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional

import huffman as huff
from bitio import BitInputStream, BitOutputStream

SUFFIX = ".hf"
UNHUFF_SUFFIX = ".unhf"


def default_output(input_path: str, command: str) -> str:
    if command == "compress":
        return input_path + SUFFIX
    if input_path.endswith(SUFFIX):
        return input_path[:-len(SUFFIX)]
    return input_path + UNHUFF_SUFFIX


def ratio_line(in_path: str, out_path: str) -> str:
    in_size = os.path.getsize(in_path)
    out_size = os.path.getsize(out_path)
    ratio = out_size / max(1, in_size)
    return f"{in_path} ({in_size} bytes) -> {out_path} ({out_size} bytes), ratio {ratio:.3f}"


def _run(codec, in_path: str, out_path: str, debug: int) -> None:
    """
    On any failure the output is closed and the partial file removed before the error propagates
    """
    bit_out = BitOutputStream.open(out_path)
    try:
        with BitInputStream.open(in_path) as bit_in:
            codec(bit_in, bit_out, debug)
    except BaseException:
        bit_out.stream.close()
        os.remove(out_path)
        raise


def compress_file(in_path: str, out_path: str, debug: int = 0) -> None:
    _run(huff.compress, in_path, out_path, debug)


def decompress_file(in_path: str, out_path: str, debug: int = 0) -> None:
    _run(huff.decompress, in_path, out_path, debug)


def print_info(in_path: str) -> None:
    info = huff.describe_header(Path(in_path).read_bytes())
    print(f"{in_path}: {info['leaves']} leaves, header {info['header_bits']} bits")
    for symbol, code in info["codes"].items():
        label = "EOF" if symbol == huff.PSEUDO_EOF else repr(chr(symbol))
        print(f"  {symbol:>3} {label:<8} {code}")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Huffman file compressor")
    sub = ap.add_subparsers(dest="command", help="Command")

    for name, help_text in (("compress", "Compress a file"), ("decompress", "Decompress a file")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("input", help="Input file")
        p.add_argument("-o", "--output", default=None, help="Output file (default derived from input)")
        p.add_argument("--debug", type=int, default=0,
                       help=f"Debug level: {huff.DEBUG_LOW} for bit counts, {huff.DEBUG_HIGH} for code table")

    info_parser = sub.add_parser("info", help="Show the code table of a compressed file")
    info_parser.add_argument("input", help="Compressed file")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)

    if not args.command:
        ap.print_help()
        return 1

    if not os.path.isfile(args.input):
        print(f"Error: {args.input} not found", file=sys.stderr)
        return 1

    try:
        if args.command == "info":
            print_info(args.input)
            return 0

        out_path = args.output or default_output(args.input, args.command)
        if args.command == "compress":
            compress_file(args.input, out_path, args.debug)
        else:
            decompress_file(args.input, out_path, args.debug)
    except (huff.HuffError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(ratio_line(args.input, out_path))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
