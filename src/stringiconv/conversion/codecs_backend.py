"""Conversion sessions built on Python's incremental codecs.

A ``CodecSession`` pairs an incremental decoder for the source encoding with
an incremental encoder for the target encoding and behaves like an iconv
conversion descriptor:

* only whole characters are consumed from the input and written to the output
* when the output view is full, or the input is invalid or truncated, codec
  state is rolled back to the last character boundary and the step reports
  how far it got
* the step that finishes the input also flushes the encoder, so stateful
  targets such as ISO-2022-JP end in their initial shift state

Input is fed in small windows; a window whose output would not fit, that ends
inside a character, or that contains a bad sequence is replayed one byte at a
time to find the exact boundary.
"""

import codecs
from typing import Optional, Tuple

from ..errors import InvalidEncodingName
from ..shared.result import StepResult, StepStatus
from . import transliteration
from .session import ConversionSession

FEED_WINDOW = 64
# Room kept free in every target view for the encoder's final reset sequence.
FLUSH_RESERVE = 16

CodecState = Tuple[Tuple[bytes, int], int]


def lookup_text_codec(name: str) -> codecs.CodecInfo:
    """Find a text encoding in the codec registry.

    Raises:
        InvalidEncodingName: If the name is unknown or names a bytes-to-bytes
            or str-to-str transform such as ``base64`` or ``rot13``
    """
    try:
        info = codecs.lookup(name)
    except LookupError:
        raise InvalidEncodingName(name) from None
    if not getattr(info, "_is_text_encoding", True):
        raise InvalidEncodingName(name)
    return info


class CodecSession(ConversionSession):
    """Conversion session over the codec registry."""

    backend_name = "codecs"

    def __init__(
        self,
        to_encoding: str,
        from_encoding: str,
        to_codec: codecs.CodecInfo,
        from_codec: codecs.CodecInfo,
    ) -> None:
        super().__init__(to_encoding, from_encoding)
        self._to_codec = to_codec
        self._from_codec = from_codec
        self._reset_codecs()

    @classmethod
    def _create(cls, to_encoding: str, from_encoding: str) -> "CodecSession":
        from_codec = lookup_text_codec(from_encoding)
        to_codec = lookup_text_codec(to_encoding)
        return cls(to_encoding, from_encoding, to_codec, from_codec)

    @property
    def codec_names(self) -> Tuple[str, str]:
        """Canonical codec names of the (source, target) pair."""
        return self._from_codec.name, self._to_codec.name

    def _decode_errors(self) -> str:
        return "ignore" if self.discard_illegal_sequences else "strict"

    def _encode_errors(self) -> str:
        if self.transliterate:
            if self.discard_illegal_sequences:
                return transliteration.TRANSLIT_DISCARD_ERROR_HANDLER
            return transliteration.TRANSLIT_ERROR_HANDLER
        return "ignore" if self.discard_illegal_sequences else "strict"

    def _reset_codecs(self) -> None:
        self._decoder = self._from_codec.incrementaldecoder(errors=self._decode_errors())
        self._encoder = self._to_codec.incrementalencoder(errors=self._encode_errors())
        self._fed = False

    def _apply_flag(self, flag: str, value: bool) -> None:
        # Flags are set before any input is fed, so fresh codecs lose no state.
        self._reset_codecs()

    def _release(self) -> None:
        self._decoder.reset()
        self._encoder.reset()

    def _snapshot(self) -> CodecState:
        return self._decoder.getstate(), self._encoder.getstate()

    def _restore(self, state: CodecState) -> None:
        decoder_state, encoder_state = state
        self._decoder.setstate(decoder_state)
        self._encoder.setstate(encoder_state)

    def _pending(self) -> int:
        return len(self._decoder.getstate()[0])

    def _feed(self, data: bytes) -> bytes:
        return self._encoder.encode(self._decoder.decode(data, False), False)

    def _step(self, source: memoryview, target: memoryview) -> StepResult:
        total = len(source)
        limit = max(0, len(target) - FLUSH_RESERVE)
        consumed = 0
        produced = 0
        if total:
            self._fed = True

        while consumed < total:
            window_end = min(total, consumed + FEED_WINDOW)
            state = self._snapshot()
            try:
                output = self._feed(bytes(source[consumed:window_end]))
            except UnicodeError:
                output = None

            if (
                output is not None
                and self._pending() == 0
                and produced + len(output) <= limit
            ):
                target[produced:produced + len(output)] = output
                produced += len(output)
                consumed = window_end
                continue

            self._restore(state)
            consumed, produced, status = self._step_bytewise(
                source, target, consumed, produced, window_end, limit
            )
            if status is not None:
                return StepResult(consumed, produced, status)

        produced += self._flush(target, produced)
        return StepResult(consumed, produced, StepStatus.SUCCESS)

    def _step_bytewise(
        self,
        source: memoryview,
        target: memoryview,
        consumed: int,
        produced: int,
        window_end: int,
        limit: int,
    ) -> Tuple[int, int, Optional[StepStatus]]:
        """Feed one byte at a time, committing at every character boundary.

        Stops once past ``window_end`` on a boundary (status None), or with
        the status that ended the step.
        """
        state = self._snapshot()
        pending_output = b""
        position = consumed

        while position < len(source):
            try:
                pending_output += self._feed(bytes(source[position:position + 1]))
            except UnicodeError:
                self._restore(state)
                return consumed, produced, StepStatus.INVALID_SEQUENCE
            position += 1

            if self._pending():
                continue
            if produced + len(pending_output) > limit:
                self._restore(state)
                return consumed, produced, StepStatus.OUTPUT_FULL

            target[produced:produced + len(pending_output)] = pending_output
            produced += len(pending_output)
            consumed = position
            state = self._snapshot()
            pending_output = b""
            if consumed >= window_end:
                return consumed, produced, None

        if self._pending():
            self._restore(state)
            return consumed, produced, StepStatus.INCOMPLETE_SEQUENCE
        return consumed, produced, None

    def _flush(self, target: memoryview, produced: int) -> int:
        """Write the encoder's reset sequence and return the states to initial."""
        output = self._encoder.encode(self._decoder.decode(b"", True), True)
        if not self._fed:
            # Nothing was converted, so no byte order mark either.
            output = b""
        target[produced:produced + len(output)] = output
        self._decoder.reset()
        self._encoder.reset()
        self._fed = False
        return len(output)
