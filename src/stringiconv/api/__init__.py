"""Public API for stringiconv.

Provides the module-level conversion functions and the configurable
``Transcoder`` class.
"""

from .transcoder import InternalEncoding, Transcoder, convert, decode

__all__ = [
    "InternalEncoding",
    "Transcoder",
    "convert",
    "decode",
]
