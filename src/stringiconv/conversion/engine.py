"""Streaming transcoding engine.

Drives an opened conversion session over the input one scratch buffer at a
time, accumulates what each step writes and turns the step status into either
more looping or a classified failure. Failure offsets are positions in the
*output* stream: the bytes accumulated before the failing step plus whatever
the failing step managed to write.
"""

import errno
import logging
import time
from typing import Optional, Union

from ..errors import IncompleteMultiByteSequence, InvalidMultiByteSequence, UnknownError
from ..shared.config import DEFAULT_BUFFER_SIZE, MIN_BUFFER_SIZE
from ..shared.logging import CorrelationLogger, get_logger
from ..shared.result import StepResult, StepStatus, TranscodeMetrics
from .session import ConversionSession

BytesLike = Union[bytes, bytearray, memoryview]

_default_logger = get_logger(__name__, None, "transcoding_engine")


class InputCursor:
    """Read position over the caller's input bytes."""

    def __init__(self, data: memoryview) -> None:
        self._data = data
        self.offset = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self.offset

    def view(self) -> memoryview:
        """Unconsumed part of the input."""
        return self._data[self.offset:]

    def advance(self, count: int) -> None:
        if not 0 <= count <= self.remaining:
            raise ValueError(
                f"Cannot advance by {count} with {self.remaining} bytes remaining"
            )
        self.offset += count


class ScratchBuffer:
    """Fixed-capacity output buffer reused for every chunk."""

    def __init__(self, capacity: int = DEFAULT_BUFFER_SIZE) -> None:
        if capacity < MIN_BUFFER_SIZE:
            raise ValueError(f"capacity must be >= {MIN_BUFFER_SIZE}, got {capacity}")
        self.capacity = capacity
        self._buffer = bytearray(capacity)

    def reset(self) -> memoryview:
        """Full-capacity writable view for the next chunk."""
        return memoryview(self._buffer)

    def written(self, count: int) -> memoryview:
        """The first ``count`` bytes of the last chunk."""
        if not 0 <= count <= self.capacity:
            raise ValueError(f"Step reported {count} bytes written into {self.capacity}")
        return memoryview(self._buffer)[:count]


def transcode(
    session: ConversionSession,
    data: BytesLike,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
    metrics: Optional[TranscodeMetrics] = None,
    logger: Optional[CorrelationLogger] = None,
) -> bytes:
    """Convert ``data`` with an already opened session.

    The caller owns the session and must close it on every path.

    Args:
        session: Open conversion session for the desired encoding pair
        data: Input bytes; empty input runs a single step and yields b""
        buffer_size: Scratch buffer capacity per chunk, at least MIN_BUFFER_SIZE
        metrics: Optional counters to fill while converting
        logger: Logger for chunk-level records

    Returns:
        All converted bytes

    Raises:
        ValueError: buffer_size is below MIN_BUFFER_SIZE
        InvalidMultiByteSequence: Input holds a sequence with no mapping
        IncompleteMultiByteSequence: Input ends inside a character
        UnknownError: The session failed otherwise, or stopped making progress
    """
    log = logger or _default_logger
    trace = log.is_enabled_for(logging.DEBUG)
    started = time.perf_counter()
    output = bytearray()
    scratch = ScratchBuffer(buffer_size)

    with memoryview(data) as raw, raw.cast("B") as view:
        cursor = InputCursor(view)
        first = True
        status = StepStatus.SUCCESS
        while first or cursor.remaining > 0 or status is StepStatus.OUTPUT_FULL:
            first = False
            with scratch.reset() as target, cursor.view() as source:
                step = session.step(source, target)
            cursor.advance(step.consumed)

            written = step.produced
            location = len(output) + written
            with scratch.written(written) as chunk:
                output += chunk
            status = step.status

            if metrics is not None:
                metrics.record(step)
            if trace:
                log.debug(
                    "Converted chunk",
                    extra={
                        "consumed": step.consumed,
                        "produced": written,
                        "remaining": cursor.remaining,
                        "status": status.name,
                    },
                )

            if status is StepStatus.OUTPUT_FULL or status is StepStatus.SUCCESS:
                if not step.made_progress and (
                    status is StepStatus.OUTPUT_FULL or cursor.remaining > 0
                ):
                    _fail(log, step, location, cursor.remaining)
                continue
            _fail(log, step, location, cursor.remaining)

    if metrics is not None:
        metrics.processing_time_ms += (time.perf_counter() - started) * 1000.0
    if trace:
        log.debug(
            "Conversion finished",
            extra={"input_size": cursor.offset, "output_size": len(output)},
        )
    return bytes(output)


def _fail(log: CorrelationLogger, step: StepResult, location: int, remaining: int) -> None:
    """Raise the error matching a failed or stalled step."""
    status = step.status
    if status is StepStatus.INVALID_SEQUENCE:
        error = InvalidMultiByteSequence(location)
    elif status is StepStatus.INCOMPLETE_SEQUENCE:
        error = IncompleteMultiByteSequence(location)
    elif status is StepStatus.OUTPUT_FULL:
        error = UnknownError(errno.E2BIG)
    elif status is StepStatus.SUCCESS:
        error = UnknownError(errno.EINVAL)
    else:
        error = UnknownError(step.code if step.code is not None else -1)

    log.warning(
        "Conversion failed",
        extra={
            "status": status.name,
            "location": location,
            "remaining": remaining,
            "error": error.message,
        },
    )
    raise error
