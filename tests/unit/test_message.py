"""
Unit tests for the application-layer message rules.
"""

from datetime import datetime

import pytest

from tcpipdemo.message import (
    BUFFER_SIZE,
    MESSAGE_FIELD_SIZE,
    ApplicationMessage,
    build_ack,
    decode_payload,
    drop_split_character,
    prepare_payload,
    printable,
    truncate_utf8,
)


class TestPreparePayload:
    """Tests for text → wire bytes."""

    def test_plain_text(self):
        assert prepare_payload("Hello from TCP Client!") == b"Hello from TCP Client!"

    def test_truncates_to_buffer_minus_terminator(self):
        payload = prepare_payload("x" * 1000)
        assert len(payload) == BUFFER_SIZE - 1

    def test_custom_buffer_size(self):
        assert prepare_payload("abcdefghij", buffer_size=5) == b"abcd"

    def test_stops_at_embedded_nul(self):
        assert prepare_payload("visible\0hidden") == b"visible"

    def test_split_multibyte_character_is_dropped(self):
        # "é" is two bytes; only one byte of room is left after "abc"
        payload = prepare_payload("abcé", buffer_size=5)
        assert payload == b"abc"
        payload.decode("utf-8")  # still valid UTF-8

    def test_empty(self):
        assert prepare_payload("") == b""

    def test_surrogate_escaped_bytes_sent_unchanged(self):
        # sys.argv holds undecodable bytes as lone surrogates
        text = b"caf\xe9".decode("utf-8", "surrogateescape")
        assert prepare_payload(text) == b"caf\xe9"

    def test_surrogate_escaped_bytes_truncated(self):
        text = b"\xff" * 10
        assert prepare_payload(text.decode("utf-8", "surrogateescape"), buffer_size=5) == b"\xff" * 4


class TestDropSplitCharacter:

    def test_complete_text_unchanged(self):
        assert drop_split_character("abcé".encode("utf-8")) == "abcé".encode("utf-8")

    def test_incomplete_three_byte_sequence(self):
        assert drop_split_character(b"ab" + "€".encode("utf-8")[:2]) == b"ab"

    def test_stray_continuation_byte_kept(self):
        assert drop_split_character(b"ab\x80") == b"ab\x80"


def test_printable_replaces_surrogates():
    assert printable(b"caf\xe9".decode("utf-8", "surrogateescape")) == "caf\ufffd"
    assert printable("héllo") == "héllo"


class TestDecodePayload:
    """Tests for received bytes → text."""

    def test_plain(self):
        assert decode_payload(b"SERVER ACK") == "SERVER ACK"

    def test_stops_at_nul(self):
        assert decode_payload(b"abc\0garbage") == "abc"

    def test_invalid_utf8_is_replaced(self):
        assert decode_payload(b"ok\xff") == "ok�"


def test_truncate_utf8_short_text_unchanged():
    assert truncate_utf8("hello", 10) == "hello"


class TestApplicationMessage:
    """Tests for the server-side message structure."""

    def test_from_received(self):
        now = datetime(2024, 3, 1, 14, 5, 9)
        msg = ApplicationMessage.from_received(b"Hello", "127.0.0.1", now=now)

        assert msg.message == "Hello"
        assert msg.client_ip == "127.0.0.1"
        assert msg.message_length == 5
        assert msg.timestamp == "2024-03-01 14:05:09"

    def test_length_counts_bytes_not_characters(self):
        msg = ApplicationMessage.from_received("héllo".encode("utf-8"), "127.0.0.1")
        assert msg.message_length == 6

    def test_message_field_is_capped_but_length_is_not(self):
        msg = ApplicationMessage.from_received(b"a" * 255, "127.0.0.1")

        assert len(msg.message) == MESSAGE_FIELD_SIZE - 1
        assert msg.message_length == 255

    def test_length_counts_invalid_utf8_bytes(self):
        msg = ApplicationMessage.from_received(b"\xff", "127.0.0.1")

        assert msg.message == "\ufffd"
        assert msg.message_length == 1
        assert build_ack(msg) == "SERVER ACK: Received '\ufffd' (1 bytes)"

    def test_length_stops_at_nul(self):
        msg = ApplicationMessage.from_received(b"abc\0junk", "127.0.0.1")

        assert msg.message == "abc"
        assert msg.message_length == 3

    def test_default_timestamp_format(self):
        msg = ApplicationMessage.from_received(b"x", "10.0.0.1")
        datetime.strptime(msg.timestamp, "%Y-%m-%d %H:%M:%S")


class TestBuildAck:
    """Tests for the server response."""

    def test_format(self):
        msg = ApplicationMessage.from_received(b"Hello", "127.0.0.1")
        assert build_ack(msg) == "SERVER ACK: Received 'Hello' (5 bytes)"

    def test_empty_message(self):
        msg = ApplicationMessage.from_received(b"", "127.0.0.1")
        assert build_ack(msg) == "SERVER ACK: Received '' (0 bytes)"

    @pytest.mark.parametrize("buffer_size", [32, 64])
    def test_truncated_to_small_buffer(self, buffer_size: int):
        msg = ApplicationMessage.from_received(b"z" * 255, "127.0.0.1")
        ack = build_ack(msg, buffer_size)

        assert len(ack.encode("utf-8")) == buffer_size - 1
        assert ack.startswith("SERVER ACK: Received 'zzz")

    def test_long_message_fits_default_buffer(self):
        """The capped message field keeps the full ACK under 256 bytes."""
        msg = ApplicationMessage.from_received(b"z" * 255, "127.0.0.1")
        ack = build_ack(msg)

        assert ack == f"SERVER ACK: Received '{'z' * 199}' (255 bytes)"
        assert len(ack) < BUFFER_SIZE
