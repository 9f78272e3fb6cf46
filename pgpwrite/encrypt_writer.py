"""A stacked writer that encrypts everything passing through it with CFB."""

from __future__ import annotations

from .symmetric import Cipher, is_supported
from .writer import Writer, WriterError, WriterStack

_CHUNK_SIZE = 1024


class EncryptWriter(Writer):
    """Encrypt data with a prepared :class:`Cipher` and pass it down.

    The cipher's CFB state carries over between writes, so data may be
    written in pieces of any size.  The cipher belongs to the caller and
    is left untouched when the writer is destroyed.
    """

    def __init__(self, cipher: Cipher) -> None:
        super().__init__()
        self.cipher = cipher

    def write(self, data: bytes) -> None:
        if not is_supported(self.cipher.algorithm):
            raise WriterError(
                f"symmetric algorithm {self.cipher.algorithm!r} is not supported"
            )
        view = memoryview(bytes(data))
        for start in range(0, len(view), _CHUNK_SIZE):
            chunk = view[start:start + _CHUNK_SIZE]
            self.write_next(self.cipher.cfb_encrypt(bytes(chunk)))


def push_encrypt(stack: WriterStack, cipher: Cipher) -> EncryptWriter:
    """Push an :class:`EncryptWriter` using *cipher* onto *stack*."""
    return stack.push(EncryptWriter(cipher))