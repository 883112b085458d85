"""Public transcoding API.

Module-level functions cover the common calls; ``Transcoder`` keeps a
configuration and usage statistics for repeated conversions.

Examples:
    Transcoding between two byte encodings:
    >>> convert(b"\\x84\\x70", "EUC-JP", "SJIS")
    b'\\xa7\\xd1'

    Decoding to text:
    >>> decode(b"\\xa1\\xe7", "EUC-JP")
    '∞'
"""

import time
from enum import Enum
from typing import Any, Dict, Optional

from ..conversion.engine import BytesLike, transcode
from ..conversion.session import open_session
from ..errors import DecodeError, IconvError
from ..shared.config import TranscodeConfig
from ..shared.logging import get_logger
from ..shared.result import TranscodeMetrics

MS_PER_SECOND = 1000


class InternalEncoding(Enum):
    """Fixed-width Unicode encodings text is decoded through.

    ``UTF16`` carries a byte order mark, the other two are BOM-less.
    """

    UTF16 = "UTF-16"
    UTF16_BE = "UTF-16BE"
    UTF16_LE = "UTF-16LE"

    @property
    def codec_name(self) -> str:
        """Name used both for transcoding and for reading the result as text."""
        return self.value


def _effective_config(
    config: Optional[TranscodeConfig],
    transliterate: bool,
    discard_illegal_sequences: bool,
) -> TranscodeConfig:
    config = config or TranscodeConfig()
    if transliterate and not config.transliterate:
        config = config.override(transliterate=True)
    if discard_illegal_sequences and not config.discard_illegal_sequences:
        config = config.override(discard_illegal_sequences=True)
    return config


def convert(
    data: BytesLike,
    to_encoding: str,
    from_encoding: str,
    *,
    transliterate: bool = False,
    discard_illegal_sequences: bool = False,
    config: Optional[TranscodeConfig] = None,
) -> bytes:
    """Convert bytes from ``from_encoding`` to ``to_encoding``.

    Args:
        data: Bytes to convert
        to_encoding: Target encoding name, optionally with //TRANSLIT or //IGNORE
        from_encoding: Source encoding name
        transliterate: Approximate characters the target cannot represent
        discard_illegal_sequences: Drop bytes that cannot be converted
        config: Configuration supplying buffer size, backend and defaults

    Returns:
        Converted bytes

    Raises:
        InvalidEncodingName: Either encoding name is unknown
        InvalidMultiByteSequence: Input contains an invalid or unmappable sequence
        IncompleteMultiByteSequence: Input ends inside a character
        UnknownError: The conversion failed for another reason
    """
    return Transcoder(
        _effective_config(config, transliterate, discard_illegal_sequences)
    ).convert(data, to_encoding, from_encoding)


def decode(
    data: BytesLike,
    from_encoding: str,
    *,
    internal_encoding: InternalEncoding = InternalEncoding.UTF16,
    transliterate: bool = False,
    discard_illegal_sequences: bool = False,
    config: Optional[TranscodeConfig] = None,
) -> str:
    """Decode bytes in ``from_encoding`` to text.

    The bytes are transcoded to ``internal_encoding`` first and then read as
    text in that encoding.

    Raises:
        DecodeError: The transcoded bytes are not valid in the internal encoding
        IconvError: Any failure raised by :func:`convert`
    """
    return Transcoder(
        _effective_config(config, transliterate, discard_illegal_sequences)
    ).decode(data, from_encoding, internal_encoding=internal_encoding)


class Transcoder:
    """Configured transcoder for repeated conversions.

    Attributes:
        config: Current transcoding configuration
        correlation_id: Correlation ID attached to log records
        last_metrics: Metrics of the most recent conversion, when collected

    Examples:
        >>> transcoder = Transcoder(TranscodeConfig.lenient())
        >>> transcoder.convert("naïve café".encode("utf-8"), "ASCII", "UTF-8")
        b'naive cafe'
    """

    def __init__(
        self,
        config: Optional[TranscodeConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or TranscodeConfig()
        self.correlation_id = correlation_id or self.config.correlation_id
        self.logger = get_logger(__name__, self.correlation_id, "transcoder")
        self.last_metrics: Optional[TranscodeMetrics] = None

        self._conversion_count = 0
        self._failed_conversions = 0
        self._bytes_in = 0
        self._bytes_out = 0
        self._total_processing_time = 0.0

    def convert(self, data: BytesLike, to_encoding: str, from_encoding: str) -> bytes:
        """Convert ``data`` with this transcoder's configuration.

        See :func:`convert` for the errors raised.
        """
        start_time = time.perf_counter()
        metrics = TranscodeMetrics() if self.config.collect_metrics else None
        self._conversion_count += 1

        try:
            with open_session(
                to_encoding,
                from_encoding,
                transliterate=self.config.transliterate,
                discard_illegal_sequences=self.config.discard_illegal_sequences,
                backend=self.config.backend,
            ) as session:
                output = transcode(
                    session,
                    data,
                    buffer_size=self.config.buffer_size,
                    metrics=metrics,
                    logger=self.logger,
                )
        except IconvError:
            self._failed_conversions += 1
            raise
        finally:
            self._total_processing_time += (time.perf_counter() - start_time) * MS_PER_SECOND
            self.last_metrics = metrics

        self._bytes_in += memoryview(data).nbytes
        self._bytes_out += len(output)

        self.logger.debug(
            "Conversion completed",
            extra={
                "from_encoding": from_encoding,
                "to_encoding": to_encoding,
                "backend": self.config.backend,
                "output_size": len(output),
            },
        )
        return output

    def decode(
        self,
        data: BytesLike,
        from_encoding: str,
        internal_encoding: Optional[InternalEncoding] = None,
    ) -> str:
        """Decode ``data`` to text through the internal encoding.

        Args:
            data: Bytes to decode
            from_encoding: Encoding of ``data``
            internal_encoding: Overrides the configured internal encoding
        """
        internal = internal_encoding or InternalEncoding(self.config.internal_encoding)
        output = self.convert(data, internal.codec_name, from_encoding)
        try:
            return output.decode(internal.codec_name)
        except UnicodeDecodeError as e:
            self._failed_conversions += 1
            self.logger.warning(
                "Converted bytes are not valid text",
                extra={"internal_encoding": internal.codec_name, "reason": e.reason},
            )
            raise DecodeError(internal.codec_name) from e

    def reconfigure(self, config: TranscodeConfig) -> None:
        """Replace the configuration used by later conversions."""
        self.config = config
        self.logger.info(
            "Transcoder reconfigured",
            extra={"backend": config.backend, "buffer_size": config.buffer_size},
        )

    @property
    def statistics(self) -> Dict[str, Any]:
        """Usage statistics since creation or the last reset."""
        return {
            "total_conversions": self._conversion_count,
            "failed_conversions": self._failed_conversions,
            "success_rate": (
                (self._conversion_count - self._failed_conversions) / self._conversion_count
                if self._conversion_count > 0 else 0.0
            ),
            "bytes_in": self._bytes_in,
            "bytes_out": self._bytes_out,
            "total_processing_time_ms": self._total_processing_time,
            "correlation_id": self.correlation_id,
        }

    def reset_statistics(self) -> None:
        """Reset usage statistics."""
        self._conversion_count = 0
        self._failed_conversions = 0
        self._bytes_in = 0
        self._bytes_out = 0
        self._total_processing_time = 0.0
