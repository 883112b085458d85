"""stringiconv.

Convert bytes between named character encodings with control over how
malformed or unrepresentable characters are handled, and with failures
reported at the offset in the output stream where they were found.

Progressive API Disclosure:
- Level 1: Simple functions - convert(), decode()
- Level 2: Configured transcoder - Transcoder class with TranscodeConfig
- Level 3: Sessions and engine - open_session() and transcode()
"""

__version__ = "0.1.0"
__author__ = "stringiconv Team"

# Level 1 and 2
from .api import InternalEncoding, Transcoder, convert, decode
from .catalog import canonical_iconvlist, iconvlist

# Level 3
from .conversion import ConversionSession, open_session, transcode

# Errors
from .errors import (
    DecodeError,
    IconvError,
    IncompleteMultiByteSequence,
    InvalidEncodingName,
    InvalidMultiByteSequence,
    UnknownError,
)

# Configuration classes for advanced usage
from .shared.config import TranscodeConfig

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple conversion functions
    "convert",
    "decode",
    "iconvlist",
    "canonical_iconvlist",

    # Level 2: Configured transcoder
    "Transcoder",
    "TranscodeConfig",
    "InternalEncoding",

    # Level 3: Sessions and engine
    "ConversionSession",
    "open_session",
    "transcode",

    # Errors
    "IconvError",
    "InvalidEncodingName",
    "InvalidMultiByteSequence",
    "IncompleteMultiByteSequence",
    "UnknownError",
    "DecodeError",
]
