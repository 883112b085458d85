"""Performance profiling tools for stringiconv.

Measures conversion throughput and resident memory per profiling session and
compares the available conversion backends against Python's built-in
``bytes.decode`` on the same input.
"""

import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import psutil

from stringiconv.api.transcoder import InternalEncoding, Transcoder
from stringiconv.conversion import libiconv
from stringiconv.shared.config import TranscodeConfig
from stringiconv.shared.logging import get_logger

BYTES_PER_MB = 1024 * 1024


@dataclass
class ProfilingSession:
    """Measurements of one profiled conversion."""

    session_id: str
    start_time: float
    end_time: float
    input_size: int  # bytes
    output_size: int = 0
    memory_start: int = 0  # bytes
    memory_end: int = 0  # bytes
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def total_duration_ms(self) -> float:
        """Total session duration in milliseconds."""
        return (self.end_time - self.start_time) * 1000

    @property
    def throughput_mb_per_s(self) -> float:
        """Input throughput in MB/s."""
        duration_s = self.end_time - self.start_time
        if duration_s <= 0:
            return 0.0
        return (self.input_size / BYTES_PER_MB) / duration_s

    @property
    def memory_delta(self) -> int:
        """Resident memory change in bytes."""
        return self.memory_end - self.memory_start


@dataclass
class PerformanceReport:
    """Collection of profiled sessions."""

    sessions: List[ProfilingSession]
    generation_time: float

    @property
    def session_count(self) -> int:
        return len(self.sessions)

    @property
    def average_duration_ms(self) -> float:
        if not self.sessions:
            return 0.0
        return sum(s.total_duration_ms for s in self.sessions) / len(self.sessions)

    @property
    def average_throughput_mb_per_s(self) -> float:
        if not self.sessions:
            return 0.0
        return sum(s.throughput_mb_per_s for s in self.sessions) / len(self.sessions)

    def to_dict(self) -> Dict[str, Any]:
        """Report as JSON-serializable data."""
        return {
            "generation_time": self.generation_time,
            "summary": {
                "session_count": self.session_count,
                "average_duration_ms": self.average_duration_ms,
                "average_throughput_mb_s": self.average_throughput_mb_per_s,
            },
            "sessions": [
                {
                    "session_id": session.session_id,
                    "input_size": session.input_size,
                    "output_size": session.output_size,
                    "total_duration_ms": session.total_duration_ms,
                    "throughput_mb_s": session.throughput_mb_per_s,
                    "memory_delta": session.memory_delta,
                    "metadata": session.metadata,
                }
                for session in self.sessions
            ],
        }


class PerformanceProfiler:
    """Profiler for conversion operations.

    Examples:
        >>> profiler = PerformanceProfiler()
        >>> with profiler.profile("sjis", input_size=len(data)) as session:
        ...     session.output_size = len(convert(data, "UTF-8", "SJIS"))
        >>> report = profiler.generate_report()
    """

    def __init__(self, enable_memory_tracking: bool = True):
        """Initialize performance profiler.

        Args:
            enable_memory_tracking: Whether to sample resident memory with psutil
        """
        self.enable_memory_tracking = enable_memory_tracking
        self.sessions: List[ProfilingSession] = []
        self.logger = get_logger(__name__, None, "performance_profiler")
        self._process = psutil.Process() if enable_memory_tracking else None

    def _memory(self) -> int:
        if self._process is None:
            return 0
        return self._process.memory_info().rss

    def start_session(self, session_id: str, input_size: int = 0) -> ProfilingSession:
        """Start a new profiling session."""
        session = ProfilingSession(
            session_id=session_id,
            start_time=time.perf_counter(),
            end_time=0.0,
            input_size=input_size,
            memory_start=self._memory(),
        )
        self.logger.debug(
            "Started profiling session",
            extra={"session_id": session_id, "input_size": input_size},
        )
        return session

    def end_session(self, session: ProfilingSession) -> None:
        """End a profiling session and store its results."""
        session.end_time = time.perf_counter()
        session.memory_end = self._memory()
        self.sessions.append(session)

        self.logger.info(
            "Ended profiling session",
            extra={
                "session_id": session.session_id,
                "duration_ms": session.total_duration_ms,
                "throughput_mb_s": session.throughput_mb_per_s,
            },
        )

    def profile(self, session_id: str, input_size: int = 0) -> "SessionProfiler":
        """Context manager profiling the enclosed block."""
        return SessionProfiler(self, session_id, input_size)

    def generate_report(self) -> PerformanceReport:
        """Generate a report over every stored session."""
        return PerformanceReport(sessions=self.sessions.copy(), generation_time=time.time())

    def save_report(self, report: PerformanceReport, output_path: Path) -> None:
        """Save a performance report as JSON."""
        output_path.write_text(json.dumps(report.to_dict(), indent=2))
        self.logger.info(
            "Saved performance report",
            extra={"output_path": str(output_path), "session_count": report.session_count},
        )

    def clear_sessions(self) -> None:
        """Clear all stored profiling sessions."""
        session_count = len(self.sessions)
        self.sessions.clear()
        self.logger.info("Cleared profiling sessions", extra={"cleared_count": session_count})


class SessionProfiler:
    """Context manager wrapping one profiling session."""

    def __init__(self, profiler: PerformanceProfiler, session_id: str, input_size: int):
        self.profiler = profiler
        self.session_id = session_id
        self.input_size = input_size
        self.session: Optional[ProfilingSession] = None

    def __enter__(self) -> ProfilingSession:
        self.session = self.profiler.start_session(self.session_id, self.input_size)
        return self.session

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.session is not None:
            self.session.metadata.setdefault("success", exc_type is None)
            self.profiler.end_session(self.session)


def _candidates(
    from_encoding: str, to_encoding: str, config: TranscodeConfig
) -> Dict[str, Callable[[bytes], int]]:
    """Conversions to benchmark, keyed by name; each returns its output size."""
    candidates: Dict[str, Callable[[bytes], int]] = {}

    codecs_transcoder = Transcoder(config.override(backend="codecs"))
    candidates["codecs"] = lambda data: len(
        codecs_transcoder.convert(data, to_encoding, from_encoding)
    )

    if libiconv.available():
        iconv_transcoder = Transcoder(config.override(backend="iconv"))
        candidates["iconv"] = lambda data: len(
            iconv_transcoder.convert(data, to_encoding, from_encoding)
        )

    if to_encoding.upper() in {e.codec_name for e in InternalEncoding}:
        errors = "ignore" if config.discard_illegal_sequences else "strict"
        candidates["builtin"] = lambda data: len(data.decode(from_encoding, errors))

    return candidates


def benchmark_backends(
    data: bytes,
    from_encoding: str,
    to_encoding: str = InternalEncoding.UTF16.codec_name,
    iterations: int = 10,
    config: Optional[TranscodeConfig] = None,
) -> Dict[str, PerformanceReport]:
    """Benchmark the conversion backends on the same input.

    Python's ``bytes.decode`` is included as a baseline when the target is
    one of the internal Unicode encodings.

    Args:
        data: Input bytes
        from_encoding: Encoding of ``data``
        to_encoding: Target encoding
        iterations: Conversions per candidate
        config: Base configuration; the backend field is overridden

    Returns:
        Dictionary mapping candidate names to performance reports
    """
    if iterations <= 0:
        raise ValueError("iterations must be > 0")
    config = config or TranscodeConfig()

    results = {}
    for name, run in _candidates(from_encoding, to_encoding, config).items():
        profiler = PerformanceProfiler()
        for i in range(iterations):
            with profiler.profile(f"{name}_iteration_{i}", input_size=len(data)) as session:
                session.metadata = {"candidate": name, "iteration": i}
                session.output_size = run(data)
        results[name] = profiler.generate_report()

    return results
