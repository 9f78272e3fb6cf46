import pytest

from pgpwrite.encrypt_writer import EncryptWriter, push_encrypt
from pgpwrite.symmetric import SymmetricAlgorithm, new_cipher
from pgpwrite.writer import WriterError, WriterStack, memory_stack

KEY = bytes(range(16))


def _cipher():
    cipher = new_cipher(SymmetricAlgorithm.AES_128)
    cipher.set_iv(bytes(cipher.block_size))
    cipher.set_key(KEY)
    cipher.init()
    return cipher


def test_output_matches_cfb_encryption():
    data = b"attack at dawn, bring snacks" * 3
    stack, memory = memory_stack()
    push_encrypt(stack, _cipher())
    stack.write(data)
    stack.close()
    assert memory.data == _cipher().cfb_encrypt(data)


def test_round_trip_over_chunk_boundary():
    data = bytes(i % 251 for i in range(3000))
    stack, memory = memory_stack()
    push_encrypt(stack, _cipher())
    stack.write(data)
    stack.close()
    assert len(memory.data) == len(data)
    assert memory.data != data
    assert _cipher().cfb_decrypt(memory.data) == data


def test_piecewise_writes_equal_single_write():
    data = bytes(range(256)) * 5
    stack_a, mem_a = memory_stack()
    push_encrypt(stack_a, _cipher())
    stack_a.write(data)
    stack_a.close()

    stack_b, mem_b = memory_stack()
    push_encrypt(stack_b, _cipher())
    for start in range(0, len(data), 37):
        stack_b.write(data[start:start + 37])
    stack_b.close()
    assert mem_a.data == mem_b.data


def test_push_returns_writer_on_top():
    stack, _ = memory_stack()
    cipher = _cipher()
    writer = push_encrypt(stack, cipher)
    assert isinstance(writer, EncryptWriter)
    assert stack.top is writer
    assert writer.cipher is cipher


def test_push_onto_empty_stack_fails():
    with pytest.raises(WriterError):
        push_encrypt(WriterStack(), _cipher())


def test_empty_write_produces_nothing():
    stack, memory = memory_stack()
    push_encrypt(stack, _cipher())
    stack.write(b"")
    stack.close()
    assert memory.data == b""