"""Stackable packet writers and the low-level OpenPGP wire encoders.

A :class:`WriterStack` holds a chain of :class:`Writer` objects.  Data
written to the stack enters the top writer, which may transform it and
hand it to the writer below with :meth:`Writer.write_next`.  The bottom
writer is the sink (for example a :class:`MemoryWriter`).
"""

from __future__ import annotations

import enum
from collections.abc import Iterator
from types import TracebackType

_PTAG_ALWAYS_SET = 0x80
_PTAG_NEW_FORMAT = 0x40
_MAX_TAG = 0x3F
_MAX_MPI_BITS = 65535
_MAX_LENGTH = 0xFFFFFFFF


class WriterError(Exception):
    """Raised when data cannot be written through a writer stack."""


class PacketTag(enum.IntEnum):
    """OpenPGP packet content tags."""

    RESERVED = 0
    PK_SESSION_KEY = 1
    SIGNATURE = 2
    SK_SESSION_KEY = 3
    ONE_PASS_SIGNATURE = 4
    SECRET_KEY = 5
    PUBLIC_KEY = 6
    SECRET_SUBKEY = 7
    COMPRESSED = 8
    SE_DATA = 9
    MARKER = 10
    LITERAL_DATA = 11
    TRUST = 12
    USER_ID = 13
    PUBLIC_SUBKEY = 14
    USER_ATTRIBUTE = 17
    SE_IP_DATA = 18
    MDC = 19


def encode_length(length: int) -> bytes:
    """Encode a new-format packet body length."""
    if length < 0 or length > _MAX_LENGTH:
        raise WriterError(f"packet length out of range: {length}")
    if length < 192:
        return bytes([length])
    if length < 8384:
        rest = length - 192
        return bytes([(rest >> 8) + 192, rest & 0xFF])
    return b"\xff" + length.to_bytes(4, "big")


def encode_mpi(value: int) -> bytes:
    """Encode a non-negative integer as an OpenPGP multiprecision integer."""
    if value < 0:
        raise WriterError("an MPI cannot be negative")
    bits = value.bit_length()
    if bits > _MAX_MPI_BITS:
        raise WriterError(f"MPI too large: {bits} bits")
    return bits.to_bytes(2, "big") + value.to_bytes((bits + 7) // 8, "big")


def hexdump(data: bytes) -> str:
    """Return *data* as a string of uppercase hexadecimal pairs."""
    return bytes(data).hex().upper()


class Writer:
    """One element of a writer stack.

    The default behaviour passes data unchanged to the writer below;
    subclasses override :meth:`write`, :meth:`finalise` and :meth:`destroy`.
    """

    def __init__(self) -> None:
        self.next: Writer | None = None
        self._finalised = False

    def write(self, data: bytes) -> None:
        """Accept *data*; by default forward it to the next writer."""
        self.write_next(data)

    def write_next(self, data: bytes) -> None:
        """Write *data* to the writer below this one."""
        if self.next is None:
            raise WriterError(f"{type(self).__name__} has no writer below it")
        self.next.write(data)

    def finalise(self) -> None:
        """Flush anything still held; called once when the stack closes."""

    def destroy(self) -> None:
        """Release resources; called after finalisation."""


class MemoryWriter(Writer):
    """A sink that appends everything written to an in-memory buffer."""

    def __init__(self) -> None:
        super().__init__()
        self.buffer = bytearray()

    @property
    def data(self) -> bytes:
        """The bytes collected so far."""
        return bytes(self.buffer)

    def __len__(self) -> int:
        return len(self.buffer)

    def write(self, data: bytes) -> None:
        self.buffer.extend(data)

    def clear(self) -> None:
        """Discard the collected bytes."""
        self.buffer.clear()


class PassthroughWriter(Writer):
    """A writer that only forwards data; useful to insert a finaliser."""

    def write(self, data: bytes) -> None:
        self.write_next(data)


class WriterStack:
    """A chain of writers with helpers for writing OpenPGP primitives."""

    def __init__(self) -> None:
        self._top: Writer | None = None

    @property
    def top(self) -> Writer | None:
        """The writer that receives data first, or None when empty."""
        return self._top

    def __iter__(self) -> Iterator[Writer]:
        writer = self._top
        while writer is not None:
            yield writer
            writer = writer.next

    def __enter__(self) -> WriterStack:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._top is not None:
            self.close()

    def set(self, writer: Writer) -> Writer:
        """Install the bottom writer; the stack must be empty."""
        if self._top is not None:
            raise WriterError("a writer is already set")
        writer.next = None
        self._top = writer
        return writer

    def push(self, writer: Writer) -> Writer:
        """Place *writer* on top of the existing writers."""
        if self._top is None:
            raise WriterError("cannot push onto an empty writer stack")
        writer.next = self._top
        self._top = writer
        return writer

    def pop(self) -> Writer:
        """Finalise, destroy and remove the top writer, which must be stacked."""
        top = self._top
        if top is None or top.next is None:
            raise WriterError("no stacked writer to pop")
        if not top._finalised:
            top._finalised = True
            top.finalise()
        top.destroy()
        self._top = top.next
        top.next = None
        return top

    def write(self, data: bytes) -> None:
        """Write raw bytes into the top writer."""
        if self._top is None:
            raise WriterError("no writer set")
        self._top.write(data)

    def write_scalar(self, value: int, length: int) -> None:
        """Write the low *length* bytes of *value*, big-endian."""
        if length < 0:
            raise WriterError(f"negative scalar length: {length}")
        mask = (1 << (8 * length)) - 1
        self.write((value & mask).to_bytes(length, "big"))

    def write_mpi(self, value: int) -> None:
        """Write *value* as a multiprecision integer."""
        self.write(encode_mpi(value))

    def write_ptag(self, tag: int) -> None:
        """Write a new-format packet tag byte."""
        tag = int(tag)
        if not 0 <= tag <= _MAX_TAG:
            raise WriterError(f"packet tag out of range: {tag}")
        self.write(bytes([tag | _PTAG_ALWAYS_SET | _PTAG_NEW_FORMAT]))

    def write_length(self, length: int) -> None:
        """Write a new-format packet body length."""
        self.write(encode_length(length))

    def close(self) -> None:
        """Finalise writers from the top down, then destroy them all.

        Every writer is finalised and destroyed even when one fails; the
        first failure is raised afterwards.
        """
        writers = list(self)
        error: WriterError | None = None
        for writer in writers:
            if writer._finalised:
                continue
            writer._finalised = True
            try:
                writer.finalise()
            except WriterError as exc:
                if error is None:
                    error = exc
        for writer in reversed(writers):
            writer.destroy()
            writer.next = None
        self._top = None
        if error is not None:
            raise error


def memory_stack() -> tuple[WriterStack, MemoryWriter]:
    """Create a stack whose sink is a new :class:`MemoryWriter`."""
    stack = WriterStack()
    memory = MemoryWriter()
    stack.set(memory)
    return stack, memory