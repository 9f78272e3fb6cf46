"""Symmetrically encrypted, integrity-protected data packets.

The plaintext is preceded by a random preamble (one block plus a repeat
of its last two bytes) and followed by a modification detection code
packet holding the SHA-1 of everything before it.  The whole body is
encrypted in plain CFB mode with the caller's cipher, which must already
hold its key and IV and have been initialised.
"""

from __future__ import annotations

import hashlib
import os

from .encrypt_writer import push_encrypt
from .partial import MIN_PARTIAL_DATA_LENGTH, push_partial
from .symmetric import Cipher
from .writer import PacketTag, Writer, WriterError, WriterStack

SE_IP_DATA_VERSION = 1
PARTIAL_PACKET_SIZE = MIN_PARTIAL_DATA_LENGTH

_MDC_PREFIX = bytes([0xC0 | PacketTag.MDC, 20])
_SHA1_SIZE = 20


def _preamble(block_size: int) -> bytes:
    random = os.urandom(block_size)
    return random + random[-2:]


def mdc_packet(digest: bytes) -> bytes:
    """Return a modification detection code packet holding *digest*."""
    digest = bytes(digest)
    if len(digest) != _SHA1_SIZE:
        raise WriterError(
            f"MDC digest must be {_SHA1_SIZE} bytes, got {len(digest)}"
        )
    return _MDC_PREFIX + digest


def _mdc_digest(preamble: bytes, data: bytes) -> bytes:
    return hashlib.sha1(preamble + data + _MDC_PREFIX).digest()


def write_se_ip_packet(stack: WriterStack, data: bytes, cipher: Cipher) -> None:
    """Write *data* to *stack* as one complete encrypted, protected packet."""
    data = bytes(data)
    preamble = _preamble(cipher.block_size)
    mdc = mdc_packet(_mdc_digest(preamble, data))
    stack.write_ptag(PacketTag.SE_IP_DATA)
    stack.write_length(1 + len(preamble) + len(data) + len(mdc))
    stack.write_scalar(SE_IP_DATA_VERSION, 1)
    push_encrypt(stack, cipher)
    try:
        stack.write(preamble)
        stack.write(data)
        stack.write(mdc)
    finally:
        stack.pop()


class StreamEncryptSeIpWriter(Writer):
    """Encrypt a stream of unknown length into a protected data packet.

    It sits above a partial-length writer that frames the packet; the
    preamble goes into that writer's header, and the MDC is appended
    when this writer is finalised.
    """

    def __init__(self, cipher: Cipher) -> None:
        super().__init__()
        self.cipher = cipher
        self._hash = hashlib.sha1()

    def _write_header(self, stack: WriterStack) -> None:
        preamble = _preamble(self.cipher.block_size)
        stack.write_scalar(SE_IP_DATA_VERSION, 1)
        push_encrypt(stack, self.cipher)
        try:
            stack.write(preamble)
        finally:
            stack.pop()
        self._hash.update(preamble)

    def write(self, data: bytes) -> None:
        data = bytes(data)
        encrypted = self.cipher.encrypt_se_ip(data)
        self._hash.update(data)
        self.write_next(encrypted)

    def finalise(self) -> None:
        self._hash.update(_MDC_PREFIX)
        mdc = mdc_packet(self._hash.digest())
        self.write_next(self.cipher.encrypt_se_ip(mdc))


def push_stream_encrypt_se_ip(
    stack: WriterStack, cipher: Cipher
) -> StreamEncryptSeIpWriter:
    """Push writers that turn the data written into a protected packet."""
    writer = StreamEncryptSeIpWriter(cipher)
    push_partial(
        stack, PacketTag.SE_IP_DATA, writer._write_header, PARTIAL_PACKET_SIZE
    )
    return stack.push(writer)