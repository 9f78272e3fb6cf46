"""OpenPGP symmetric ciphers with the CFB variants used by the format.

A :class:`Cipher` carries the key, the IV and the CFB state for one
algorithm.  Three CFB flavours are offered:

* :meth:`Cipher.cfb_encrypt` / :meth:`Cipher.cfb_decrypt` run plain CFB over
  the IV, as used by integrity-protected data packets;
* :meth:`Cipher.encrypt_se` / :meth:`Cipher.decrypt_se` run CFB over the
  working register prepared by :meth:`Cipher.init`, and support the
  OpenPGP resynchronisation step through :meth:`Cipher.resync`;
* :meth:`Cipher.encrypt_se_ip` / :meth:`Cipher.decrypt_se_ip` check that the
  algorithm is supported and then run plain CFB.
"""

from __future__ import annotations

import enum
import warnings
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Optional

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.ciphers import Cipher as _PrimitiveCipher
from cryptography.hazmat.primitives.ciphers import algorithms, modes

try:
    from cryptography.hazmat.decrepit.ciphers import algorithms as _legacy
except ImportError:
    _legacy = algorithms


class CipherError(Exception):
    """Raised for unknown or unsupported algorithms and misuse of a cipher."""


class SymmetricAlgorithm(enum.IntEnum):
    """OpenPGP symmetric-key algorithm identifiers."""

    PLAINTEXT = 0
    IDEA = 1
    TRIPLEDES = 2
    CAST5 = 3
    BLOWFISH = 4
    AES_128 = 7
    AES_192 = 8
    AES_256 = 9
    TWOFISH = 10
    CAMELLIA_128 = 11
    CAMELLIA_192 = 12
    CAMELLIA_256 = 13


def _primitive(name: str) -> Optional[Callable[[bytes], Any]]:
    for module in (_legacy, algorithms):
        cls = getattr(module, name, None)
        if cls is not None:
            return cls
    return None


@dataclass(frozen=True)
class _Prototype:
    block_size: int
    key_size: int
    factory: Optional[Callable[[bytes], Any]]


_PROTOTYPES: dict[SymmetricAlgorithm, _Prototype] = {
    SymmetricAlgorithm.CAST5: _Prototype(8, 16, _primitive("CAST5")),
    SymmetricAlgorithm.IDEA: _Prototype(8, 16, _primitive("IDEA")),
    SymmetricAlgorithm.AES_128: _Prototype(16, 16, algorithms.AES),
    SymmetricAlgorithm.AES_256: _Prototype(16, 32, algorithms.AES),
    SymmetricAlgorithm.CAMELLIA_128: _Prototype(16, 16, algorithms.Camellia),
    SymmetricAlgorithm.CAMELLIA_192: _Prototype(16, 24, algorithms.Camellia),
    SymmetricAlgorithm.CAMELLIA_256: _Prototype(16, 32, algorithms.Camellia),
    SymmetricAlgorithm.TRIPLEDES: _Prototype(8, 24, _primitive("TripleDES")),
}


def _coerce(algorithm: int) -> SymmetricAlgorithm:
    try:
        return SymmetricAlgorithm(algorithm)
    except ValueError:
        raise CipherError(f"unknown symmetric algorithm: {algorithm}") from None


def _prototype(algorithm: int) -> _Prototype:
    alg = _coerce(algorithm)
    proto = _PROTOTYPES.get(alg)
    if proto is None:
        raise CipherError(f"unknown symmetric algorithm: {alg.name}")
    return proto


def _ecb(proto: _Prototype, key: bytes) -> _PrimitiveCipher:
    if proto.factory is None:
        raise CipherError("cipher primitive not available")
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        return _PrimitiveCipher(proto.factory(bytes(key)), modes.ECB())


@lru_cache(maxsize=None)
def _backend_supports(algorithm: SymmetricAlgorithm) -> bool:
    proto = _PROTOTYPES.get(algorithm)
    if proto is None or proto.factory is None:
        return False
    try:
        _ecb(proto, bytes(proto.key_size)).encryptor()
    except (UnsupportedAlgorithm, ValueError, CipherError):
        return False
    return True


def block_size(algorithm: int) -> int:
    """Return the block size in bytes of *algorithm*."""
    return _prototype(algorithm).block_size


def key_size(algorithm: int) -> int:
    """Return the key size in bytes of *algorithm*."""
    return _prototype(algorithm).key_size


def is_supported(algorithm: int) -> bool:
    """Tell whether *algorithm* can be used for encryption here."""
    try:
        alg = _coerce(algorithm)
    except CipherError:
        return False
    return alg in _PROTOTYPES and _backend_supports(alg)


class Cipher:
    """Key, IV and CFB state for one symmetric algorithm."""

    def __init__(self, algorithm: int) -> None:
        proto = _prototype(algorithm)
        alg = _coerce(algorithm)
        if not _backend_supports(alg):
            raise CipherError(f"{alg.name} is not available")
        self.algorithm = alg
        self.block_size = proto.block_size
        self.key_size = proto.key_size
        self._proto = proto
        self.key = bytearray(proto.key_size)
        self.iv = bytearray(proto.block_size)
        self.civ = bytearray(proto.block_size)
        self.siv = bytearray(proto.block_size)
        self.num = 0
        self._encryptor: Any = None
        self._decryptor: Any = None

    def __repr__(self) -> str:
        return f"Cipher({self.algorithm.name})"

    def set_iv(self, iv: bytes) -> None:
        """Load the IV and reset the CFB position."""
        if len(iv) < self.block_size:
            raise CipherError(
                f"IV must be {self.block_size} bytes, got {len(iv)}"
            )
        self.iv[:] = iv[: self.block_size]
        self.num = 0

    def set_key(self, key: bytes) -> None:
        """Load the key; :meth:`init` must be called afterwards."""
        if len(key) < self.key_size:
            raise CipherError(
                f"key must be {self.key_size} bytes, got {len(key)}"
            )
        self.key[:] = key[: self.key_size]

    def init(self) -> None:
        """Schedule the key and prepare the working register from the IV."""
        primitive = _ecb(self._proto, bytes(self.key))
        self._encryptor = primitive.encryptor()
        self._decryptor = primitive.decryptor()
        self.siv[:] = self.block_encrypt(self.iv)
        self.civ[:] = self.siv
        self.num = 0

    def resync(self) -> None:
        """Realign the working register on a block boundary."""
        if self.num == self.block_size:
            return
        self.civ[:] = self.siv[self.num:] + self.civ[: self.num]
        self.num = 0

    def _check_block(self, block: bytes) -> bytes:
        if self._encryptor is None:
            raise CipherError("cipher has not been initialised")
        if len(block) != self.block_size:
            raise CipherError(
                f"block must be {self.block_size} bytes, got {len(block)}"
            )
        return bytes(block)

    def block_encrypt(self, block: bytes) -> bytes:
        """Encrypt a single block."""
        return self._encryptor.update(self._check_block(block))

    def block_decrypt(self, block: bytes) -> bytes:
        """Decrypt a single block."""
        block = self._check_block(block)
        return self._decryptor.update(block)

    def _cfb(self, data: bytes, encrypt: bool) -> bytes:
        out = bytearray()
        for byte in data:
            if self.num == 0:
                self.iv[:] = self.block_encrypt(self.iv)
            value = byte ^ self.iv[self.num]
            self.iv[self.num] = value if encrypt else byte
            out.append(value)
            self.num = (self.num + 1) % self.block_size
        return bytes(out)

    def cfb_encrypt(self, data: bytes) -> bytes:
        """Encrypt *data* in CFB mode, continuing from the current state."""
        return self._cfb(data, encrypt=True)

    def cfb_decrypt(self, data: bytes) -> bytes:
        """Decrypt *data* in CFB mode, continuing from the current state."""
        return self._cfb(data, encrypt=False)

    def _refill(self) -> None:
        if self.num == self.block_size:
            self.siv[:] = self.civ
            self.civ[:] = self.block_encrypt(self.civ)
            self.num = 0

    def encrypt_se(self, data: bytes) -> bytes:
        """Encrypt *data* in resynchronisable CFB mode."""
        if self._encryptor is None:
            raise CipherError("cipher has not been initialised")
        out = bytearray()
        for byte in data:
            self._refill()
            value = self.civ[self.num] ^ byte
            self.civ[self.num] = value
            out.append(value)
            self.num += 1
        return bytes(out)

    def decrypt_se(self, data: bytes) -> bytes:
        """Decrypt *data* in resynchronisable CFB mode."""
        if self._encryptor is None:
            raise CipherError("cipher has not been initialised")
        out = bytearray()
        for byte in data:
            self._refill()
            out.append(self.civ[self.num] ^ byte)
            self.civ[self.num] = byte
            self.num += 1
        return bytes(out)

    def encrypt_se_ip(self, data: bytes) -> bytes:
        """Encrypt integrity-protected data with plain CFB."""
        if not is_supported(self.algorithm):
            raise CipherError(f"{self.algorithm.name} is not supported")
        return self.cfb_encrypt(data)

    def decrypt_se_ip(self, data: bytes) -> bytes:
        """Decrypt integrity-protected data with plain CFB."""
        if not is_supported(self.algorithm):
            raise CipherError(f"{self.algorithm.name} is not supported")
        return self.cfb_decrypt(data)


def new_cipher(algorithm: int) -> Cipher:
    """Create a fresh :class:`Cipher` for *algorithm*."""
    return Cipher(algorithm)