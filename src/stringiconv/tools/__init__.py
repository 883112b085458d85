"""Developer tools for stringiconv."""

from .profiling import (
    PerformanceProfiler,
    PerformanceReport,
    ProfilingSession,
    benchmark_backends,
)

__all__ = [
    "PerformanceProfiler",
    "PerformanceReport",
    "ProfilingSession",
    "benchmark_backends",
]
