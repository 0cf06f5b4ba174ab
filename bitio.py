"""
Bit-level reading and writing on top of binary file objects.

Bits are packed most-significant first within each byte. Readers return
EOF (-1) when not enough bits remain; writers pad the final byte with
zero bits when flushed.
"""

from __future__ import annotations

from typing import BinaryIO

EOF = -1
MAX_BITS = 32


def _check_width(n: int) -> None:
    if not 1 <= n <= MAX_BITS:
        raise ValueError(f"bit width must be between 1 and {MAX_BITS}, got {n}")


class BitInputStream:
    def __init__(self, stream: BinaryIO):
        self.stream = stream
        self.buffer = 0     # pending bits, right-aligned
        self.buffer_bits = 0
        self.bits_read = 0

    @classmethod
    def open(cls, path) -> "BitInputStream":
        return cls(open(path, "rb"))

    def read_bits(self, n: int) -> int:
        """
        Return the next n bits as an unsigned int, or EOF if fewer than n remain
        """
        _check_width(n)
        while self.buffer_bits < n:
            chunk = self.stream.read(1)
            if not chunk:
                # drop the leftovers so repeated reads keep reporting EOF
                self.buffer = 0
                self.buffer_bits = 0
                return EOF
            self.buffer = (self.buffer << 8) | chunk[0]
            self.buffer_bits += 8

        self.buffer_bits -= n
        value = (self.buffer >> self.buffer_bits) & ((1 << n) - 1)
        self.buffer &= (1 << self.buffer_bits) - 1
        self.bits_read += n
        return value

    def reset(self) -> None:
        if not self.stream.seekable():
            raise ValueError("cannot reset a non-seekable stream")
        self.stream.seek(0)
        self.buffer = 0
        self.buffer_bits = 0
        self.bits_read = 0

    def close(self) -> None:
        self.stream.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class BitOutputStream:
    def __init__(self, stream: BinaryIO, close_stream: bool = True):
        self.stream = stream
        self.close_stream = close_stream  # False keeps BytesIO readable after close()
        self.rack = 0        # bits of the byte being filled
        self.rack_bits = 0
        self.bits_written = 0
        self.closed = False

    @classmethod
    def open(cls, path) -> "BitOutputStream":
        return cls(open(path, "wb"))

    def write_bits(self, n: int, value: int) -> None:
        """
        Write the low n bits of value, most significant first
        """
        _check_width(n)
        if self.closed:
            raise ValueError("write to closed bit stream")
        self.rack = (self.rack << n) | (value & ((1 << n) - 1))
        self.rack_bits += n
        self.bits_written += n

        out = bytearray()
        while self.rack_bits >= 8:
            self.rack_bits -= 8
            out.append((self.rack >> self.rack_bits) & 0xFF)
        self.rack &= (1 << self.rack_bits) - 1
        if out:
            self.stream.write(bytes(out))

    def flush(self) -> None:
        if self.rack_bits:
            pad = 8 - self.rack_bits
            self.stream.write(bytes([(self.rack << pad) & 0xFF]))
            self.rack = 0
            self.rack_bits = 0
        self.stream.flush()

    def close(self) -> None:
        if self.closed:
            return
        self.flush()
        self.closed = True
        if self.close_stream:
            self.stream.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
