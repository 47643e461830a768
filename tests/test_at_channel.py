import pytest

from uiccat.at_channel import (
    AtChannel,
    AtError,
    ConnectionIssueError,
    MessageTooLongError,
    NoLogicalChannelError,
    at_cmd_close_logical_channel,
    at_cmd_open_logical_channel,
    at_cmd_send_apdu,
    at_cmd_sim_exist,
    count_lines,
)
from uiccat.response import ResponseFormatError


class FakeStream:
    def __init__(self, chunks=(), write_result=None):
        self.chunks = list(chunks)
        self.written = []
        self.write_result = write_result

    def write(self, data):
        self.written.append(data)
        if self.write_result is not None:
            return self.write_result
        return len(data)

    def read(self, size):
        if not self.chunks:
            return b""
        return self.chunks.pop(0)


def cgla_reply(hex_body):
    return f'\r\n\r\n+CGLA: {len(hex_body)},"{hex_body}"\r\n\r\nOK\r\n\r\n'.encode()


def open_channel(extra_chunks=()):
    stream = FakeStream([b"\r\n1\r\n\r\nOK\r\n", *extra_chunks])
    channel = AtChannel(stream)
    channel.open_crypto_channel()
    return channel, stream


def test_command_strings():
    assert at_cmd_sim_exist() == "AT+ESIMEXIST?"
    assert at_cmd_open_logical_channel("F04D4552499301") == 'AT+CCHO="F04D4552499301"'
    assert at_cmd_close_logical_channel() == "AT+CCHC=1"


def test_send_apdu_command_carries_length():
    assert at_cmd_send_apdu(1, "0084000004") == 'AT+CGLA=1,10,"0084000004"'


def test_count_lines():
    assert count_lines("a\r\nb\r\n") == 2
    assert count_lines("a\n\rb") == 0
    assert count_lines("") == 0


def test_send_message_appends_cr():
    stream = FakeStream()
    AtChannel(stream).send_message("AT+CCHC=1")
    assert stream.written == [b"AT+CCHC=1\r"]


def test_send_message_too_long():
    stream = FakeStream()
    with pytest.raises(MessageTooLongError):
        AtChannel(stream).send_message("A" * 4096)
    assert stream.written == []


def test_send_message_write_failure():
    with pytest.raises(ConnectionIssueError):
        AtChannel(FakeStream(write_result=0)).send_message("AT")


def test_read_message_joins_chunks_and_strips():
    stream = FakeStream([b"\r\n1\r\n", b"\r\nOK\r\n"])
    assert AtChannel(stream).read_message(4) == "1\n\nOK"


def test_read_message_stops_on_error():
    stream = FakeStream([b"\r\nERROR", b"never read"])
    assert AtChannel(stream).read_message(4) == "ERROR"
    assert stream.chunks == [b"never read"]


def test_read_message_connection_lost():
    with pytest.raises(ConnectionIssueError):
        AtChannel(FakeStream([])).read_message(2)


def test_read_message_disabled():
    stream = FakeStream([b"\r\nOK\r\n"])
    assert AtChannel(stream, read_output=False).read_message(2) == ""
    assert stream.chunks == [b"\r\nOK\r\n"]


def test_open_crypto_channel_sets_session():
    channel, stream = open_channel()
    assert channel.is_crypto_channel_open()
    assert channel.session_id == 1
    assert stream.written == [b'AT+CCHO="F04D4552499301"\r']


def test_open_when_already_open_sends_nothing():
    channel, stream = open_channel()
    channel.open_crypto_channel()
    assert len(stream.written) == 1


def test_open_crypto_channel_error():
    channel = AtChannel(FakeStream([b"\r\nERROR\r\n"]))
    with pytest.raises(AtError):
        channel.open_crypto_channel()
    assert not channel.is_crypto_channel_open()


def test_close_without_session():
    with pytest.raises(NoLogicalChannelError):
        AtChannel(FakeStream()).close_crypto_channel()


def test_close_resets_session():
    channel, stream = open_channel([b"\r\nOK\r\n"])
    channel.close_crypto_channel()
    assert not channel.is_crypto_channel_open()
    assert stream.written[-1] == b"AT+CCHC=1\r"


def test_close_forced_without_session():
    stream = FakeStream([b"\r\nOK\r\n"])
    channel = AtChannel(stream)
    channel.close_crypto_channel(force=True)
    assert stream.written == [b"AT+CCHC=1\r"]
    assert not channel.is_crypto_channel_open()


def test_close_unknown_reply_keeps_session():
    channel, _ = open_channel([b"\r\nBUSY\r\n"])
    channel.close_crypto_channel()
    assert channel.is_crypto_channel_open()


def test_check_se_existence():
    stream = FakeStream([b"\r\n+ESIMEXIST: 1\r\n\r\nOK\r\n"])
    assert AtChannel(stream).check_se_existence() is True
    assert stream.written == [b"AT+ESIMEXIST?\r"]


def test_check_se_existence_bad_reply():
    stream = FakeStream([b"\r\n+ESIMEXIST: x\r\n\r\nOK\r\n"])
    with pytest.raises(ResponseFormatError):
        AtChannel(stream).check_se_existence()


def test_send_apdu_requires_session():
    stream = FakeStream()
    with pytest.raises(NoLogicalChannelError):
        AtChannel(stream).send_apdu("00440000")
    assert stream.written == []


def test_transmit_parses_response():
    channel, stream = open_channel([cgla_reply("AABB9000")])
    rsp = channel.transmit("00440000")
    assert stream.written[-1] == b'AT+CGLA=1,8,"00440000"\r'
    assert rsp.is_ok()
    assert rsp.data == bytes.fromhex("AABB")


def test_select_crypto_aid():
    channel, stream = open_channel([cgla_reply("9000")])
    reply = channel.select_crypto_aid()
    assert stream.written[-1] == b'AT+CGLA=1,24,"00A4040C07F04D4552499301"\r'
    assert "+CGLA" in reply


def test_select_crypto_aid_requires_session():
    with pytest.raises(NoLogicalChannelError):
        AtChannel(FakeStream()).select_crypto_aid()


def test_get_random_number():
    channel, stream = open_channel([cgla_reply("010203049000")])
    assert channel.get_random_number() == 0x01020304
    assert stream.written[-1] == b'AT+CGLA=1,10,"0084000004"\r'


def test_get_random_number_signed():
    channel, _ = open_channel([cgla_reply("FFFFFFFF9000")])
    assert channel.get_random_number() == -1


def test_get_random_number_short_response():
    channel, _ = open_channel([cgla_reply("6A82")])
    with pytest.raises(AtError):
        channel.get_random_number()


def test_get_random_number_requires_session():
    with pytest.raises(NoLogicalChannelError):
        AtChannel(FakeStream()).get_random_number()