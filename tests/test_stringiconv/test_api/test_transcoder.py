"""Tests for the public transcoding API."""

from unittest.mock import patch

import pytest

from stringiconv.api.transcoder import InternalEncoding, Transcoder, convert, decode
from stringiconv.errors import (
    DecodeError,
    IncompleteMultiByteSequence,
    InvalidEncodingName,
    InvalidMultiByteSequence,
)
from stringiconv.shared.config import TranscodeConfig

INFINITY_ENCODINGS = [
    ("MACROMAN", b"\xb0"),
    ("SJIS", b"\x81\x87"),
    ("EUC-JP", b"\xa1\xe7"),
    ("UTF-8", b"\xe2\x88\x9e"),
    ("ISO-2022-JP", b"\x1b$B!g\x1b(B"),
]

SJIS_SAMPLE = b"\x84\x70\x81\x69\x81\x7d\x84\x70\x83\x74"


class TestConvert:
    """Test the convert function."""

    def test_sjis_to_euc_jp(self):
        """Test a legacy-to-legacy conversion."""
        assert convert(SJIS_SAMPLE, "EUC-JP", "SJIS") == (
            b"\xa7\xd1\xa1\xca\xa1\xde\xa7\xd1\xa5\xd5"
        )

    def test_bytes_like_input(self):
        """Test bytearray and memoryview inputs."""
        assert convert(bytearray(b"\xa1\xe7"), "UTF-8", "EUC-JP") == b"\xe2\x88\x9e"
        assert convert(memoryview(b"\xa1\xe7"), "UTF-8", "EUC-JP") == b"\xe2\x88\x9e"

    def test_flags(self):
        """Test the keyword flags."""
        data = "a∞b".encode("utf-8")

        assert convert(data, "ASCII", "UTF-8", transliterate=True) == b"ainfb"
        assert convert(data, "ASCII", "UTF-8", discard_illegal_sequences=True) == b"ab"

    def test_config_flags(self):
        """Test flags supplied by a configuration."""
        data = "a∞b".encode("utf-8")
        assert convert(data, "ASCII", "UTF-8", config=TranscodeConfig.lenient()) == b"ainfb"

    @pytest.mark.parametrize("to_encoding,from_encoding", [
        ("UTF-8", "NOT-A-REAL-ENCODING"),
        ("NOT-A-REAL-ENCODING", "UTF-8"),
    ])
    def test_invalid_encoding_names(self, to_encoding, from_encoding):
        """Test unknown names on either side."""
        with pytest.raises(InvalidEncodingName):
            convert(b"abc", to_encoding, from_encoding)

    @pytest.mark.parametrize("source,target,text", [
        ("SJIS", "EUC-JP", "а（±аフ∞かな漢字" * 300),
        ("EUC-JP", "SJIS", "а（±аフ∞かな漢字" * 300),
        ("UTF-8", "UTF-16", "Grüße ∞ 日本語 " * 300),
        ("UTF-16", "UTF-8", "Grüße ∞ 日本語 " * 300),
        ("ISO-8859-1", "UTF-8", "café naïve " * 300),
    ])
    def test_round_trip(self, source, target, text):
        """Test that converting there and back restores the input."""
        data = text.encode(source)
        assert len(data) > 2048

        converted = convert(data, target, source)
        assert convert(converted, source, target) == data

    def test_invalid_sequence(self):
        """Test invalid input."""
        with pytest.raises(InvalidMultiByteSequence) as exc_info:
            convert(b"ab\xffcd", "UTF-16LE", "UTF-8")
        assert exc_info.value.location == 4


class TestDecode:
    """Test the decode function."""

    @pytest.mark.parametrize("encoding,data", INFINITY_ENCODINGS)
    def test_infinity_from_many_encodings(self, encoding, data):
        """Test decoding the infinity sign from several encodings."""
        assert decode(data, encoding) == "∞"

    def test_sjis_text(self):
        """Test decoding a mixed Cyrillic, symbol and katakana sample."""
        assert decode(SJIS_SAMPLE, "SJIS") == "а（±аフ"

    @pytest.mark.parametrize("internal", list(InternalEncoding))
    def test_internal_encodings(self, internal):
        """Test that every internal encoding yields the same text."""
        data = "Grüße ∞".encode("utf-8")
        assert decode(data, "UTF-8", internal_encoding=internal) == "Grüße ∞"

    def test_empty_input(self):
        """Test decoding empty input."""
        assert decode(b"", "UTF-8") == ""
        assert decode(b"", "UTF-8", internal_encoding=InternalEncoding.UTF16_LE) == ""

    def test_truncated_input(self):
        """Test that conversion errors propagate."""
        with pytest.raises(IncompleteMultiByteSequence):
            decode(b"abc\xe2\x88", "UTF-8")

    def test_codec_names(self):
        """Test internal encoding names."""
        assert InternalEncoding.UTF16.codec_name == "UTF-16"
        assert InternalEncoding.UTF16_BE.codec_name == "UTF-16BE"
        assert InternalEncoding.UTF16_LE.codec_name == "UTF-16LE"


class TestTranscoder:
    """Test the configured transcoder."""

    def test_default_configuration(self):
        """Test construction defaults."""
        transcoder = Transcoder()

        assert transcoder.config == TranscodeConfig()
        assert transcoder.correlation_id is None
        assert transcoder.last_metrics is None

    def test_correlation_id_from_config(self):
        """Test that the configured correlation ID is used."""
        transcoder = Transcoder(TranscodeConfig(correlation_id="cfg"))
        assert transcoder.correlation_id == "cfg"
        assert Transcoder(TranscodeConfig(correlation_id="cfg"), "arg").correlation_id == "arg"

    def test_statistics(self):
        """Test usage statistics across successes and failures."""
        transcoder = Transcoder()
        transcoder.convert(b"abc", "UTF-16LE", "ASCII")
        transcoder.convert(b"\xa1\xe7", "UTF-8", "EUC-JP")
        with pytest.raises(InvalidMultiByteSequence):
            transcoder.convert(b"\xff", "UTF-8", "UTF-8")

        stats = transcoder.statistics
        assert stats["total_conversions"] == 3
        assert stats["failed_conversions"] == 1
        assert stats["success_rate"] == pytest.approx(2 / 3)
        assert stats["bytes_in"] == 5
        assert stats["bytes_out"] == 9
        assert stats["total_processing_time_ms"] > 0

    def test_reset_statistics(self):
        """Test clearing statistics."""
        transcoder = Transcoder()
        transcoder.convert(b"abc", "UTF-8", "ASCII")
        transcoder.reset_statistics()

        stats = transcoder.statistics
        assert stats["total_conversions"] == 0
        assert stats["success_rate"] == 0.0
        assert stats["bytes_in"] == 0

    def test_metrics_collection(self):
        """Test per-conversion metrics."""
        transcoder = Transcoder(TranscodeConfig(collect_metrics=True, buffer_size=64))
        data = b"x" * 500
        transcoder.convert(data, "UTF-16LE", "ASCII")

        metrics = transcoder.last_metrics
        assert metrics.bytes_consumed == 500
        assert metrics.bytes_produced == 1000
        assert metrics.chunks > 1

    def test_metrics_disabled(self):
        """Test that metrics are skipped unless enabled."""
        transcoder = Transcoder()
        transcoder.convert(b"abc", "UTF-8", "ASCII")
        assert transcoder.last_metrics is None

    def test_configured_internal_encoding(self):
        """Test that decode follows the configured internal encoding."""
        transcoder = Transcoder(TranscodeConfig(internal_encoding="UTF-16BE"))

        with patch.object(transcoder, "convert", wraps=transcoder.convert) as spy:
            assert transcoder.decode(b"\xa1\xe7", "EUC-JP") == "∞"
        spy.assert_called_once_with(b"\xa1\xe7", "UTF-16BE", "EUC-JP")

    def test_decode_error(self):
        """Test converted bytes that are not valid in the internal encoding."""
        transcoder = Transcoder()

        with patch("stringiconv.api.transcoder.transcode", return_value=b"\x00"):
            with pytest.raises(DecodeError) as exc_info:
                transcoder.decode(b"a", "UTF-8", internal_encoding=InternalEncoding.UTF16_LE)

        assert exc_info.value.encoding == "UTF-16LE"
        assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)
        assert transcoder.statistics["failed_conversions"] == 1

    def test_reconfigure(self):
        """Test replacing the configuration."""
        transcoder = Transcoder()
        transcoder.reconfigure(TranscodeConfig.lenient())

        assert transcoder.config.transliterate is True
        assert transcoder.convert("ß".encode("utf-8"), "ASCII", "UTF-8") == b"ss"
