# pgpwrite

Building blocks for producing OpenPGP (RFC 4880) packet streams in Python.

Everything is built around a stack of writers. Data written to a
`WriterStack` goes to the top writer first. Each writer may transform the
data before passing it to the writer below. At the bottom sits a sink, such
as a `MemoryWriter`. When the stack is closed, its writers are finalised from
the top down, so each one can flush what it still holds.

## Installing

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Modules

- `pgpwrite.writer`
  - `Writer` is the base class for stacked writers. `PassthroughWriter` only
    forwards data. `MemoryWriter` is a sink; read the bytes it holds through
    `.data`.
  - `WriterStack` has `set`, `push`, `pop`, `write` and `close`, and can be
    used as a context manager. Its helpers `write_scalar`, `write_mpi`,
    `write_ptag` and `write_length` write OpenPGP primitives.
  - `memory_stack()` returns a stack together with its memory sink.
  - `encode_length`, `encode_mpi` and `hexdump` are the underlying encoders.
  - `PacketTag` lists the packet tags. Errors raise `WriterError`.
- `pgpwrite.symmetric`
  - `Cipher` and `new_cipher(algorithm)` cover the algorithms in
    `SymmetricAlgorithm`: CAST5, IDEA, TripleDES, AES-128, AES-256 and
    Camellia-128/192/256.
  - A cipher offers three kinds of CFB:
    - plain CFB: `cfb_encrypt`, `cfb_decrypt`;
    - resynchronisable CFB for SE packets: `encrypt_se`, `decrypt_se` and
      `resync`;
    - plain CFB for SEIP packets, which first checks that the algorithm is
      supported: `encrypt_se_ip`, `decrypt_se_ip`.
  - `block_size`, `key_size` and `is_supported` describe an algorithm.
    `is_supported` is false when the installed `cryptography` cannot provide
    the primitive, which can happen for IDEA, CAST5 and TripleDES.
  - Errors raise `CipherError`.
- `pgpwrite.encrypt_writer`: `push_encrypt(stack, cipher)` pushes an
  `EncryptWriter`, which CFB-encrypts everything that passes through it.
- `pgpwrite.partial`
  - `push_partial(stack, tag, header_writer, packet_size=0, trailer_writer=None)`
    pushes a `PartialWriter`. It writes a packet of unknown length using
    partial body lengths.
  - `push_literal(stack)` wraps the data in a binary literal data packet.
  - A packet shorter than 512 bytes is written with a single fixed length.
  - `partial_length` and `encode_partial_length` are the length helpers.
- `pgpwrite.hashing`
  - `HashAlgorithm` lists the OpenPGP hash identifiers, each with a
    `digest_size` and a `new()` method that returns a `hashlib` object.
  - `push_checksum(stack, hash_algorithm)` pushes a `ChecksumWriter`. It
    hashes the data passing through it and sets `.digest` when finalised.
- `pgpwrite.seip`
  - `write_se_ip_packet(stack, data, cipher)` writes a complete Symmetrically
    Encrypted Integrity Protected packet.
  - `push_stream_encrypt_se_ip(stack, cipher)` is the streaming form, framed
    with partial body lengths.
  - Both add a random preamble and end with a modification detection code,
    built by `mdc_packet`.

## Examples

Writing a packet by hand:

```python
from pgpwrite.writer import memory_stack, PacketTag

stack, memory = memory_stack()
stack.write_ptag(PacketTag.LITERAL_DATA)
stack.write_length(6)
stack.write(b"b\x00\x00\x00\x00\x00")
stack.close()
print(memory.data.hex())
```

Encrypting a stream into a literal packet inside a SEIP packet:

```python
import os

from pgpwrite.partial import push_literal
from pgpwrite.seip import push_stream_encrypt_se_ip
from pgpwrite.symmetric import SymmetricAlgorithm, new_cipher
from pgpwrite.writer import memory_stack

cipher = new_cipher(SymmetricAlgorithm.AES_128)
cipher.set_key(os.urandom(cipher.key_size))
cipher.set_iv(bytes(cipher.block_size))
cipher.init()

stack, memory = memory_stack()
push_stream_encrypt_se_ip(stack, cipher)
push_literal(stack)
stack.write(b"hello, world")
stack.close()
```

The cipher must have its key and IV set, and `init()` must have been called,
before it is given to `push_stream_encrypt_se_ip` or `write_se_ip_packet`.

## What this package does not do

- No public-key operations. It does not sign, verify, or encrypt session keys
  to a recipient. The caller supplies the symmetric session key and writes
  any session-key packet.
- No file sink. Output goes to memory, or to any `Writer` subclass you write
  yourself.
- No compression, no ASCII armour, no key rings, and no packet parsing or
  decryption of whole messages.