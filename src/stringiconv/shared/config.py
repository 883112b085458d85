"""Configuration for stringiconv transcoding.

``TranscodeConfig`` collects everything a conversion call can be tuned with:
the scratch buffer capacity, the two session behavior flags, the session
backend and the internal encoding used when bytes are turned into text.
"""

import json
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, List, Optional

DEFAULT_BUFFER_SIZE = 2048
MIN_BUFFER_SIZE = 64
MAX_BUFFER_SIZE = 16 * 1024 * 1024

DEFAULT_BACKEND = "codecs"
SUPPORTED_BACKENDS = ("codecs", "iconv")

DEFAULT_INTERNAL_ENCODING = "UTF-16"
SUPPORTED_INTERNAL_ENCODINGS = ("UTF-16", "UTF-16BE", "UTF-16LE")


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class TranscodeConfig:
    """Immutable configuration for transcoding calls.

    Attributes:
        buffer_size: Capacity of the scratch buffer each chunk is written to
        transliterate: Approximate unmappable characters instead of failing
        discard_illegal_sequences: Drop bytes that cannot be mapped
        backend: Conversion session backend ("codecs" or "iconv")
        internal_encoding: Fixed-width encoding used by text decoding
        correlation_id: Optional correlation ID attached to log records
        collect_metrics: Whether the engine fills TranscodeMetrics
    """

    buffer_size: int = DEFAULT_BUFFER_SIZE
    transliterate: bool = False
    discard_illegal_sequences: bool = False
    backend: str = DEFAULT_BACKEND
    internal_encoding: str = DEFAULT_INTERNAL_ENCODING
    correlation_id: Optional[str] = None
    collect_metrics: bool = False

    def __post_init__(self) -> None:
        """Validate transcoding configuration."""
        if isinstance(self.buffer_size, bool) or not isinstance(self.buffer_size, int):
            raise ConfigValidationError(
                "buffer_size must be an integer", field_name="buffer_size"
            )
        if not MIN_BUFFER_SIZE <= self.buffer_size <= MAX_BUFFER_SIZE:
            raise ConfigValidationError(
                f"buffer_size must be between {MIN_BUFFER_SIZE} and {MAX_BUFFER_SIZE}, "
                f"got {self.buffer_size}",
                field_name="buffer_size",
                suggestions=[f"Use the default of {DEFAULT_BUFFER_SIZE} bytes"],
            )
        if self.backend not in SUPPORTED_BACKENDS:
            raise ConfigValidationError(
                f"Unknown backend: {self.backend!r}",
                field_name="backend",
                suggestions=list(SUPPORTED_BACKENDS),
            )
        if self.internal_encoding not in SUPPORTED_INTERNAL_ENCODINGS:
            raise ConfigValidationError(
                f"Unsupported internal encoding: {self.internal_encoding!r}",
                field_name="internal_encoding",
                suggestions=list(SUPPORTED_INTERNAL_ENCODINGS),
            )

    def override(self, **kwargs: Any) -> "TranscodeConfig":
        """Create a new configuration with specific overrides.

        Example:
            >>> config = TranscodeConfig()
            >>> config.override(buffer_size=4096, transliterate=True).buffer_size
            4096
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(kwargs) - known)
        if unknown:
            raise ConfigValidationError(
                f"Unknown configuration fields: {', '.join(unknown)}",
                field_name=unknown[0],
            )
        return replace(self, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranscodeConfig":
        """Create configuration from dictionary.

        Keys that are not configuration fields are ignored so that files
        written by newer versions still load.
        """
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})

    @classmethod
    def from_json(cls, json_str: str) -> "TranscodeConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError("Configuration JSON must be an object")
        return cls.from_dict(data)

    # Preset factory methods
    @classmethod
    def strict(cls) -> "TranscodeConfig":
        """Fail on every invalid or unmappable sequence."""
        return cls()

    @classmethod
    def lenient(cls) -> "TranscodeConfig":
        """Approximate what can be approximated and drop the rest."""
        return cls(transliterate=True, discard_illegal_sequences=True)

    @classmethod
    def performance_optimized(cls) -> "TranscodeConfig":
        """Larger scratch buffer for big inputs."""
        return cls(buffer_size=64 * 1024)
