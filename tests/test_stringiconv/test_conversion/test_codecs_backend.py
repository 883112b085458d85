"""Tests for codec-registry conversion sessions."""

import pytest

from stringiconv.conversion.codecs_backend import (
    FLUSH_RESERVE,
    CodecSession,
    lookup_text_codec,
)
from stringiconv.conversion.engine import transcode
from stringiconv.conversion.session import DISCARD_ILLEGAL_SEQUENCES, open_session
from stringiconv.errors import (
    IncompleteMultiByteSequence,
    InvalidEncodingName,
    InvalidMultiByteSequence,
)
from stringiconv.shared.result import StepStatus

INFINITY_ENCODINGS = [
    ("MACROMAN", b"\xb0"),
    ("SJIS", b"\x81\x87"),
    ("EUC-JP", b"\xa1\xe7"),
    ("UTF-8", b"\xe2\x88\x9e"),
    ("ISO-2022-JP", b"\x1b$B!g\x1b(B"),
]

SJIS_SAMPLE = b"\x84\x70\x81\x69\x81\x7d\x84\x70\x83\x74"
EUC_JP_SAMPLE = b"\xa7\xd1\xa1\xca\xa1\xde\xa7\xd1\xa5\xd5"


def run(data, to_encoding, from_encoding, **flags):
    with open_session(to_encoding, from_encoding, **flags) as session:
        return transcode(session, data)


class TestLookup:
    """Test codec lookup."""

    def test_known_encoding(self):
        """Test that aliases resolve to codecs."""
        assert lookup_text_codec("SJIS").name == "shift_jis"

    @pytest.mark.parametrize("name", ["NOT-A-REAL-ENCODING", "base64", "rot13"])
    def test_rejected_names(self, name):
        """Test unknown names and non-text codecs."""
        with pytest.raises(InvalidEncodingName):
            lookup_text_codec(name)


class TestCodecConversion:
    """Test conversions through codec sessions."""

    @pytest.mark.parametrize("encoding,data", INFINITY_ENCODINGS)
    def test_infinity_from_many_encodings(self, encoding, data):
        """Test that every encoding of the infinity sign converts to the same bytes."""
        assert run(data, "UTF-8", encoding) == "∞".encode("utf-8")

    def test_sjis_to_euc_jp(self):
        """Test a conversion between two legacy multibyte encodings."""
        assert run(SJIS_SAMPLE, "EUC-JP", "SJIS") == EUC_JP_SAMPLE

    def test_stateful_target_returns_to_initial_state(self):
        """Test that ISO-2022-JP output ends with the ASCII shift sequence."""
        assert run("∞".encode("utf-8"), "ISO-2022-JP", "UTF-8") == b"\x1b$B!g\x1b(B"

    @pytest.mark.parametrize("to_encoding", [
        "UTF-16LE", "UTF-16", "UTF-32", "UTF-8-SIG", "ISO-2022-JP",
    ])
    def test_empty_input(self, to_encoding):
        """Test that empty input yields empty output, byte order marks included."""
        assert run(b"", to_encoding, "UTF-8") == b""

    def test_bom_written_for_nonempty_input(self):
        """Test that the byte order mark still precedes converted text."""
        assert run(b"a", "UTF-16", "UTF-8") == "a".encode("utf-16")
        assert run(b"a", "UTF-32", "UTF-8") == "a".encode("utf-32")

    def test_empty_input_after_conversion(self):
        """Test that a finished session treats the next empty input as empty."""
        with open_session("UTF-16", "UTF-8") as session:
            assert transcode(session, b"a") == "a".encode("utf-16")
            assert transcode(session, b"") == b""

    def test_invalid_sequence(self):
        """Test the location of an invalid byte."""
        with pytest.raises(InvalidMultiByteSequence) as exc_info:
            run(b"ab\xffcd", "UTF-16LE", "UTF-8")
        assert exc_info.value.location == 4

    def test_incomplete_sequence(self):
        """Test input ending inside a character."""
        with pytest.raises(IncompleteMultiByteSequence) as exc_info:
            run(b"abc\xe2\x88", "UTF-16LE", "UTF-8")
        assert exc_info.value.location == 6

    def test_incomplete_reported_when_discarding(self):
        """Test that truncated input is not silently dropped."""
        with pytest.raises(IncompleteMultiByteSequence):
            run(b"abc\xe2\x88", "UTF-8", "UTF-8", discard_illegal_sequences=True)

    def test_unmappable_character(self):
        """Test characters the target encoding cannot represent."""
        with pytest.raises(InvalidMultiByteSequence) as exc_info:
            run("a∞".encode("utf-8"), "ASCII", "UTF-8")
        assert exc_info.value.location == 1

    def test_discard_invalid_input(self):
        """Test dropping invalid input bytes."""
        assert run(b"ab\xffcd", "UTF-8", "UTF-8", discard_illegal_sequences=True) == b"abcd"

    def test_discard_via_suffix(self):
        """Test the //IGNORE suffix."""
        assert run("a∞b".encode("utf-8"), "ASCII//IGNORE", "UTF-8") == b"ab"

    def test_transliterate(self):
        """Test approximating unmappable characters."""
        data = "a∞ “b” naïve".encode("utf-8")
        assert run(data, "ASCII", "UTF-8", transliterate=True) == b'ainf "b" naive'

    def test_transliterate_fallback(self):
        """Test characters without any approximation."""
        data = "日x".encode("utf-8")

        assert run(data, "ASCII//TRANSLIT", "UTF-8") == b"?x"
        assert run(data, "ASCII//TRANSLIT//IGNORE", "UTF-8") == b"x"

    def test_invalid_names(self):
        """Test that unknown names fail on either side."""
        with pytest.raises(InvalidEncodingName):
            run(b"", "UTF-8", "NOT-A-REAL-ENCODING")
        with pytest.raises(InvalidEncodingName):
            run(b"", "NOT-A-REAL-ENCODING", "UTF-8")


class TestCodecSessionStep:
    """Test single steps on codec sessions."""

    def test_output_full_stops_on_boundary(self):
        """Test that a full target view ends the step between characters."""
        source = memoryview(("∞" * 100).encode("utf-8"))
        target = memoryview(bytearray(64))

        with CodecSession.open("UTF-8", "UTF-8") as session:
            result = session.step(source, target)

        assert result.status is StepStatus.OUTPUT_FULL
        assert result.consumed == result.produced == 64 - FLUSH_RESERVE
        assert bytes(target[:result.produced]) == ("∞" * 16).encode("utf-8")

    def test_success_consumes_everything(self):
        """Test a step with enough room."""
        source = memoryview(b"hello")
        target = memoryview(bytearray(64))

        with CodecSession.open("UTF-16LE", "ASCII") as session:
            result = session.step(source, target)

        assert result.status is StepStatus.SUCCESS
        assert result.consumed == 5
        assert bytes(target[:result.produced]) == "hello".encode("utf-16le")

    def test_configure_after_open(self):
        """Test switching a flag on an open session."""
        with CodecSession.open("UTF-8", "UTF-8") as session:
            session.configure(DISCARD_ILLEGAL_SEQUENCES, True)
            assert session.discard_illegal_sequences is True
            assert transcode(session, b"a\xffb") == b"ab"

    def test_codec_names(self):
        """Test the resolved codec names."""
        with CodecSession.open("EUC-JP", "SJIS") as session:
            assert session.codec_names == ("shift_jis", "euc_jp")
            assert session.backend_name == "codecs"
