"""OpenPGP hash algorithm identifiers and a checksumming stacked writer."""

from __future__ import annotations

import enum
import hashlib
from typing import Any, Optional

from .writer import Writer, WriterStack


class HashAlgorithm(enum.IntEnum):
    """OpenPGP hash algorithm identifiers."""

    MD5 = 1
    SHA1 = 2
    RIPEMD = 3
    SHA256 = 8
    SHA384 = 9
    SHA512 = 10
    SHA224 = 11

    @property
    def digest_size(self) -> int:
        """Size in bytes of the digest this algorithm produces."""
        return _DIGEST_SIZES[self]

    def new(self) -> Any:
        """Return a fresh hashlib object for this algorithm."""
        try:
            return hashlib.new(_HASHLIB_NAMES[self])
        except ValueError as exc:
            raise ValueError(f"hash algorithm {self.name} is not available") from exc


_HASHLIB_NAMES = {
    HashAlgorithm.MD5: "md5",
    HashAlgorithm.SHA1: "sha1",
    HashAlgorithm.RIPEMD: "ripemd160",
    HashAlgorithm.SHA256: "sha256",
    HashAlgorithm.SHA384: "sha384",
    HashAlgorithm.SHA512: "sha512",
    HashAlgorithm.SHA224: "sha224",
}

_DIGEST_SIZES = {
    HashAlgorithm.MD5: 16,
    HashAlgorithm.SHA1: 20,
    HashAlgorithm.RIPEMD: 20,
    HashAlgorithm.SHA256: 32,
    HashAlgorithm.SHA384: 48,
    HashAlgorithm.SHA512: 64,
    HashAlgorithm.SHA224: 28,
}


class ChecksumWriter(Writer):
    """Hash everything that passes through and forward it unchanged.

    The digest is available in :attr:`digest` once the writer has been
    finalised; until then it is None.
    """

    def __init__(self, hash_algorithm: int) -> None:
        super().__init__()
        self.hash_algorithm = HashAlgorithm(hash_algorithm)
        self._hash = self.hash_algorithm.new()
        self.digest: Optional[bytes] = None

    def write(self, data: bytes) -> None:
        data = bytes(data)
        self._hash.update(data)
        self.write_next(data)

    def finalise(self) -> None:
        self.digest = self._hash.digest()


def push_checksum(stack: WriterStack, hash_algorithm: int) -> ChecksumWriter:
    """Push a :class:`ChecksumWriter` for *hash_algorithm* onto *stack*."""
    return stack.push(ChecksumWriter(hash_algorithm))