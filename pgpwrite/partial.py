"""Packets of unknown length written with partial body lengths.

A :class:`PartialWriter` buffers incoming data and emits it as a packet
whose body is split into power-of-two partial chunks, finished by one
chunk with an ordinary length.  When the whole packet turns out to be
shorter than :data:`MIN_PARTIAL_DATA_LENGTH`, it is written as a single
packet with a fixed length instead.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Optional

from .writer import (
    PacketTag,
    Writer,
    WriterError,
    WriterStack,
    encode_length,
    memory_stack,
)

MIN_PARTIAL_DATA_LENGTH = 512
MAX_PARTIAL_DATA_LENGTH = 1 << 30

LITERAL_BINARY = ord("b")

HeaderWriter = Callable[[WriterStack], None]
TrailerWriter = Callable[[WriterStack], None]


def partial_length(length: int) -> int:
    """Return the largest allowed partial chunk size not above *length*."""
    if length <= 0:
        raise WriterError(f"partial length must be positive, got {length}")
    if length > MAX_PARTIAL_DATA_LENGTH:
        return MAX_PARTIAL_DATA_LENGTH
    return 1 << (length.bit_length() - 1)


def encode_partial_length(length: int) -> bytes:
    """Encode a partial body length, which must be a power of two up to 2**30."""
    if (
        length <= 0
        or length > MAX_PARTIAL_DATA_LENGTH
        or length & (length - 1)
    ):
        raise WriterError(f"invalid partial body length: {length}")
    return bytes([224 + length.bit_length() - 1])


class _ParentStack(WriterStack):
    """A stack view that writes into an existing writer chain."""

    def __init__(self, writer: Writer) -> None:
        super().__init__()
        self._top = writer


def _ptag(tag: int) -> bytes:
    return bytes([int(tag) | 0xC0])


class PartialWriter(Writer):
    """Write a packet of the given tag using partial body lengths."""

    def __init__(
        self,
        tag: int,
        header: bytes,
        packet_size: int = MIN_PARTIAL_DATA_LENGTH,
        trailer_writer: Optional[TrailerWriter] = None,
    ) -> None:
        super().__init__()
        self.tag = tag
        self.header = bytes(header)
        self.packet_size = packet_size
        self.trailer_writer = trailer_writer
        self.buffer = bytearray()
        self.written_first = False

    def _write_chunks(self, data: bytes) -> None:
        view = memoryview(data)
        while len(view):
            size = partial_length(len(view))
            self.write_next(encode_partial_length(size))
            self.write_next(bytes(view[:size]))
            view = view[size:]

    def _write_first(self, data: bytes) -> None:
        total = len(data) + len(self.header)
        size = partial_length(total)
        if size < MIN_PARTIAL_DATA_LENGTH:
            raise WriterError("first partial chunk is too short")
        first = size - len(self.header)
        self.write_next(_ptag(self.tag))
        self.write_next(encode_partial_length(size))
        self.write_next(self.header)
        self.write_next(data[:first])
        self._write_chunks(data[first:])

    def write(self, data: bytes) -> None:
        data = bytes(data)
        if not self.written_first:
            self.buffer.extend(data)
            if len(self.header) + len(self.buffer) < MIN_PARTIAL_DATA_LENGTH:
                return
            self.written_first = True
            pending = bytes(self.buffer)
            self.buffer.clear()
            self._write_first(pending)
            return
        if len(self.buffer) + len(data) < self.packet_size:
            self.buffer.extend(data)
            return
        pending = bytes(self.buffer)
        self.buffer.clear()
        self._write_chunks(pending)
        self._write_chunks(data)

    def finalise(self) -> None:
        pending = bytes(self.buffer)
        self.buffer.clear()
        if not self.written_first:
            self.write_next(_ptag(self.tag))
            self.write_next(encode_length(len(pending) + len(self.header)))
            self.write_next(self.header)
            self.write_next(pending)
        else:
            self.write_next(encode_length(len(pending)))
            self.write_next(pending)
        if self.trailer_writer is not None:
            if self.next is None:
                raise WriterError("PartialWriter has no writer below it")
            self.trailer_writer(_ParentStack(self.next))


def push_partial(
    stack: WriterStack,
    tag: int,
    header_writer: HeaderWriter,
    packet_size: int = 0,
    trailer_writer: Optional[TrailerWriter] = None,
) -> PartialWriter:
    """Push a :class:`PartialWriter` onto *stack*.

    *header_writer* is called with a memory stack to produce the packet
    header that follows the tag and first length.  *packet_size* of 0
    selects the minimum; otherwise it must be a power of two of at least
    :data:`MIN_PARTIAL_DATA_LENGTH`.  *trailer_writer*, if given, is called
    with a stack over the writers below once the packet is complete.
    """
    if packet_size == 0:
        packet_size = MIN_PARTIAL_DATA_LENGTH
    if packet_size < MIN_PARTIAL_DATA_LENGTH:
        raise WriterError(
            f"packet size must be at least {MIN_PARTIAL_DATA_LENGTH}, "
            f"got {packet_size}"
        )
    if partial_length(packet_size) != packet_size:
        raise WriterError(f"packet size must be a power of two, got {packet_size}")
    header_stack, header_memory = memory_stack()
    header_writer(header_stack)
    header_stack.close()
    writer = PartialWriter(tag, header_memory.data, packet_size, trailer_writer)
    return stack.push(writer)


def write_literal_header(stack: WriterStack) -> None:
    """Write a binary literal-data header with no file name and no date."""
    stack.write_scalar(LITERAL_BINARY, 1)
    stack.write_scalar(0, 1)
    stack.write_scalar(0, 4)


def push_literal(stack: WriterStack, buf_size: int = 0) -> PartialWriter:
    """Push a writer that wraps everything written into a literal data packet."""
    return push_partial(stack, PacketTag.LITERAL_DATA, write_literal_header, buf_size)