"""Step results and metrics for transcoding operations.

A conversion session answers every step with a ``StepResult``; the engine
classifies it and optionally folds it into ``TranscodeMetrics``.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class StepStatus(Enum):
    """Outcome of a single conversion step."""

    SUCCESS = auto()              # All input offered to the step was consumed
    INVALID_SEQUENCE = auto()     # Input bytes form no character, or target can't map it
    INCOMPLETE_SEQUENCE = auto()  # Input ends in the middle of a character
    OUTPUT_FULL = auto()          # Target view filled before the input was used up
    OTHER = auto()                # Native failure with an unrecognized code


@dataclass(frozen=True)
class StepResult:
    """What a conversion step consumed, produced and reported.

    Attributes:
        consumed: Number of input bytes taken from the source view
        produced: Number of bytes written to the start of the target view
        status: Classification of the step
        code: Native error code, set when status is OTHER
    """

    consumed: int
    produced: int
    status: StepStatus
    code: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate step accounting."""
        if self.consumed < 0:
            raise ValueError("consumed must be >= 0")
        if self.produced < 0:
            raise ValueError("produced must be >= 0")

    @property
    def made_progress(self) -> bool:
        """Whether the step consumed or produced anything."""
        return self.consumed > 0 or self.produced > 0


@dataclass
class TranscodeMetrics:
    """Counters collected while transcoding one input."""

    chunks: int = 0
    bytes_consumed: int = 0
    bytes_produced: int = 0
    processing_time_ms: float = 0.0

    @property
    def bytes_per_second(self) -> float:
        """Input throughput in bytes per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.bytes_consumed * 1000.0) / self.processing_time_ms

    @property
    def expansion_ratio(self) -> float:
        """Output size relative to input size."""
        if self.bytes_consumed == 0:
            return 0.0
        return self.bytes_produced / self.bytes_consumed

    def record(self, step: StepResult) -> None:
        """Fold one step into the counters."""
        self.chunks += 1
        self.bytes_consumed += step.consumed
        self.bytes_produced += step.produced
