import pytest

from pgpwrite.writer import (
    MemoryWriter,
    PacketTag,
    PassthroughWriter,
    Writer,
    WriterError,
    WriterStack,
    encode_length,
    encode_mpi,
    hexdump,
    memory_stack,
)


class UpperWriter(Writer):
    def write(self, data):
        self.write_next(bytes(data).upper())


class RecordingWriter(Writer):
    def __init__(self, name, log, fail=False):
        super().__init__()
        self.name = name
        self.log = log
        self.fail = fail

    def write(self, data):
        self.write_next(data)

    def finalise(self):
        self.log.append(("finalise", self.name))
        self.write_next(self.name.encode())
        if self.fail:
            raise WriterError("boom")

    def destroy(self):
        self.log.append(("destroy", self.name))


def _decode_length(data):
    first = data[0]
    if first < 192:
        return first, 1
    if first < 224:
        return ((first - 192) << 8) + data[1] + 192, 2
    return int.from_bytes(data[1:5], "big"), 5


def test_encode_length_rfc_examples():
    assert encode_length(100) == bytes([0x64])
    assert encode_length(1723) == bytes([0xC5, 0xFB])
    assert encode_length(100000) == bytes([0xFF, 0x00, 0x01, 0x86, 0xA0])


@pytest.mark.parametrize("length", [0, 1, 191, 192, 193, 8383, 8384, 65535, 2**32 - 1])
def test_encode_length_round_trip(length):
    encoded = encode_length(length)
    decoded, size = _decode_length(encoded)
    assert decoded == length
    assert size == len(encoded)


def test_encode_length_boundaries_sizes():
    assert len(encode_length(191)) == 1
    assert len(encode_length(192)) == 2
    assert len(encode_length(8383)) == 2
    assert len(encode_length(8384)) == 5


def test_encode_length_out_of_range():
    with pytest.raises(WriterError):
        encode_length(-1)
    with pytest.raises(WriterError):
        encode_length(2**32)


def test_encode_mpi_rfc_examples():
    assert encode_mpi(1) == bytes([0x00, 0x01, 0x01])
    assert encode_mpi(511) == bytes([0x00, 0x09, 0x01, 0xFF])


def test_encode_mpi_zero_has_no_body():
    assert encode_mpi(0) == b"\x00\x00"


def test_encode_mpi_round_trip():
    value = 0xDEADBEEFCAFEBABE1234
    encoded = encode_mpi(value)
    bits = int.from_bytes(encoded[:2], "big")
    assert bits == value.bit_length()
    assert int.from_bytes(encoded[2:], "big") == value
    assert len(encoded) == 2 + (bits + 7) // 8


def test_encode_mpi_too_large_and_negative():
    with pytest.raises(WriterError):
        encode_mpi(1 << 65535)
    with pytest.raises(WriterError):
        encode_mpi(-5)


def test_hexdump_uppercase():
    assert hexdump(b"\x01\xab\xff") == "01ABFF"
    assert hexdump(b"") == ""


def test_memory_stack_collects_writes():
    stack, memory = memory_stack()
    stack.write(b"abc")
    stack.write(b"def")
    assert memory.data == b"abcdef"
    assert len(memory) == 6
    memory.clear()
    assert memory.data == b""


def test_write_scalar_big_endian_and_truncated():
    stack, memory = memory_stack()
    stack.write_scalar(0x01020304, 4)
    stack.write_scalar(0x1234, 1)
    stack.write_scalar(7, 0)
    assert memory.data == bytes([0x01, 0x02, 0x03, 0x04, 0x34])


def test_write_ptag_sets_new_format_bits():
    stack, memory = memory_stack()
    stack.write_ptag(PacketTag.SIGNATURE)
    stack.write_ptag(PacketTag.LITERAL_DATA)
    assert memory.data == bytes([0xC2, 0xCB])


def test_write_ptag_rejects_large_tag():
    stack, _ = memory_stack()
    with pytest.raises(WriterError):
        stack.write_ptag(64)


def test_write_mpi_and_length_through_stack():
    stack, memory = memory_stack()
    stack.write_length(1723)
    stack.write_mpi(511)
    assert memory.data == encode_length(1723) + encode_mpi(511)


def test_pushed_writer_transforms_data():
    stack, memory = memory_stack()
    stack.push(UpperWriter())
    stack.write(b"hello")
    assert memory.data == b"HELLO"


def test_passthrough_writer_forwards():
    stack, memory = memory_stack()
    stack.push(PassthroughWriter())
    stack.push(PassthroughWriter())
    stack.write(b"data")
    assert memory.data == b"data"
    assert len(list(stack)) == 3


def test_pop_restores_previous_top():
    stack, memory = memory_stack()
    upper = UpperWriter()
    stack.push(upper)
    stack.write(b"a")
    assert stack.pop() is upper
    stack.write(b"b")
    assert memory.data == b"Ab"
    assert stack.top is memory


def test_pop_bottom_writer_fails():
    stack, _ = memory_stack()
    with pytest.raises(WriterError):
        stack.pop()


def test_set_twice_fails():
    stack, _ = memory_stack()
    with pytest.raises(WriterError):
        stack.set(MemoryWriter())


def test_push_on_empty_stack_fails():
    stack = WriterStack()
    with pytest.raises(WriterError):
        stack.push(PassthroughWriter())


def test_write_on_empty_stack_fails():
    stack = WriterStack()
    with pytest.raises(WriterError):
        stack.write(b"x")


def test_write_next_without_next_fails():
    writer = PassthroughWriter()
    with pytest.raises(WriterError):
        writer.write_next(b"x")


def test_close_finalises_top_down_and_destroys_bottom_up():
    log = []
    stack, memory = memory_stack()
    stack.push(RecordingWriter("lower", log))
    stack.push(RecordingWriter("upper", log))
    stack.close()
    assert log == [
        ("finalise", "upper"),
        ("finalise", "lower"),
        ("destroy", "lower"),
        ("destroy", "upper"),
    ]
    assert memory.data == b"upperlower"
    assert stack.top is None


def test_close_reports_failure_after_cleanup():
    log = []
    stack, memory = memory_stack()
    stack.push(RecordingWriter("lower", log))
    stack.push(RecordingWriter("upper", log, fail=True))
    with pytest.raises(WriterError, match="boom"):
        stack.close()
    assert ("finalise", "lower") in log
    assert ("destroy", "upper") in log
    assert stack.top is None


def test_pop_finalises_once():
    log = []
    stack, memory = memory_stack()
    stack.push(RecordingWriter("only", log))
    stack.pop()
    stack.close()
    assert log.count(("finalise", "only")) == 1
    assert memory.data == b"only"


def test_context_manager_closes_stack():
    log = []
    with WriterStack() as stack:
        memory = stack.set(MemoryWriter())
        stack.push(RecordingWriter("ctx", log))
        stack.write(b"-")
    assert memory.data == b"-ctx"
    assert stack.top is None
    assert ("destroy", "ctx") in log