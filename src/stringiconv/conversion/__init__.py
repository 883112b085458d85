"""Conversion layer for stringiconv.

This module provides the transcoding engine and the conversion sessions it
drives: one over Python's codec registry and one over the platform iconv.
"""

from .codecs_backend import CodecSession
from .engine import InputCursor, ScratchBuffer, transcode
from .libiconv import LibiconvSession
from .session import (
    DISCARD_ILLEGAL_SEQUENCES,
    TRANSLITERATE,
    ConversionSession,
    EncodingName,
    get_backend,
    open_session,
    parse_encoding_name,
)

__all__ = [
    "CodecSession",
    "ConversionSession",
    "DISCARD_ILLEGAL_SEQUENCES",
    "EncodingName",
    "InputCursor",
    "LibiconvSession",
    "ScratchBuffer",
    "TRANSLITERATE",
    "get_backend",
    "open_session",
    "parse_encoding_name",
    "transcode",
]
