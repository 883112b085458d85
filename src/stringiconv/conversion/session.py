"""Conversion session interface and scoped session acquisition.

A conversion session is the opaque, stateful primitive the transcoding engine
drives. It is bound to a (source, target) encoding pair when opened, can be
configured with the two behavior flags, converts one chunk per ``step`` call
and must be closed exactly once.

Encoding names may carry iconv-style suffixes on the target side:
``"ASCII//TRANSLIT"`` and ``"ASCII//IGNORE"`` switch on transliteration and
illegal-sequence discarding respectively.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Dict, Iterator, NamedTuple, Type

from ..errors import InvalidEncodingName
from ..shared.config import DEFAULT_BACKEND, SUPPORTED_BACKENDS, ConfigValidationError
from ..shared.result import StepResult

TRANSLITERATE = "transliterate"
DISCARD_ILLEGAL_SEQUENCES = "discard_illegal_sequences"
SESSION_FLAGS = (TRANSLITERATE, DISCARD_ILLEGAL_SEQUENCES)

SUFFIX_SEPARATOR = "//"
TRANSLIT_SUFFIX = "TRANSLIT"
IGNORE_SUFFIX = "IGNORE"


class EncodingName(NamedTuple):
    """Encoding identifier split from its iconv-style suffixes."""

    base: str
    transliterate: bool = False
    discard_illegal_sequences: bool = False


def parse_encoding_name(name: str) -> EncodingName:
    """Split ``name`` into its base identifier and suffix flags.

    Raises:
        InvalidEncodingName: If the base name is empty or a suffix is unknown
    """
    if not isinstance(name, str):
        raise InvalidEncodingName(repr(name))

    base, *suffixes = name.strip().split(SUFFIX_SEPARATOR)
    if not base:
        raise InvalidEncodingName(name)

    transliterate = False
    discard = False
    for suffix in suffixes:
        upper = suffix.upper()
        if upper == TRANSLIT_SUFFIX:
            transliterate = True
        elif upper == IGNORE_SUFFIX:
            discard = True
        elif upper:
            raise InvalidEncodingName(name)

    return EncodingName(base, transliterate, discard)


class ConversionSession(ABC):
    """Stateful conversion handle bound to one encoding pair.

    Sessions carry shift state between steps and must not be shared between
    callers. Use :func:`open_session` to get one that is always closed.
    """

    backend_name = ""

    def __init__(self, to_encoding: str, from_encoding: str) -> None:
        self.to_encoding = to_encoding
        self.from_encoding = from_encoding
        self.transliterate = False
        self.discard_illegal_sequences = False
        self._closed = False

    @classmethod
    def open(
        cls,
        to_encoding: str,
        from_encoding: str,
        transliterate: bool = False,
        discard_illegal_sequences: bool = False,
    ) -> "ConversionSession":
        """Open a session converting ``from_encoding`` into ``to_encoding``.

        Raises:
            InvalidEncodingName: If either name is unknown to the backend
        """
        target = parse_encoding_name(to_encoding)
        source = parse_encoding_name(from_encoding)

        session = cls._create(target.base, source.base)
        try:
            if transliterate or target.transliterate:
                session.configure(TRANSLITERATE, True)
            if discard_illegal_sequences or target.discard_illegal_sequences:
                session.configure(DISCARD_ILLEGAL_SEQUENCES, True)
        except BaseException:
            session.close()
            raise
        return session

    @classmethod
    @abstractmethod
    def _create(cls, to_encoding: str, from_encoding: str) -> "ConversionSession":
        """Acquire the backend resource for a bare encoding pair."""

    def configure(self, flag: str, value: bool) -> None:
        """Set one of the behavior flags on the session."""
        self._check_open()
        if flag not in SESSION_FLAGS:
            raise ValueError(f"Unknown session flag: {flag!r}")
        value = bool(value)
        if getattr(self, flag) == value:
            return
        setattr(self, flag, value)
        self._apply_flag(flag, value)

    @abstractmethod
    def _apply_flag(self, flag: str, value: bool) -> None:
        """Propagate a changed flag to the backend."""

    def step(self, source: memoryview, target: memoryview) -> StepResult:
        """Convert as much of ``source`` as fits into ``target``.

        Args:
            source: Unconsumed input bytes
            target: Writable view the produced bytes are written to, from offset 0

        Returns:
            StepResult describing consumption, production and status
        """
        self._check_open()
        return self._step(source, target)

    @abstractmethod
    def _step(self, source: memoryview, target: memoryview) -> StepResult:
        """Backend implementation of :meth:`step`."""

    def close(self) -> None:
        """Release the backend resource. Closing twice is a no-op."""
        if self._closed:
            return
        self._closed = True
        self._release()

    @abstractmethod
    def _release(self) -> None:
        """Release the backend resource."""

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise ValueError("Operation on closed conversion session")

    def __enter__(self) -> "ConversionSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return (
            f"<{type(self).__name__} {self.from_encoding!r} -> {self.to_encoding!r} "
            f"transliterate={self.transliterate} "
            f"discard_illegal_sequences={self.discard_illegal_sequences} {state}>"
        )


def get_backend(name: str = DEFAULT_BACKEND) -> Type[ConversionSession]:
    """Look up the session class registered under ``name``."""
    from .codecs_backend import CodecSession
    from .libiconv import LibiconvSession

    backends: Dict[str, Type[ConversionSession]] = {
        CodecSession.backend_name: CodecSession,
        LibiconvSession.backend_name: LibiconvSession,
    }
    try:
        return backends[name]
    except KeyError:
        raise ConfigValidationError(
            f"Unknown backend: {name!r}",
            field_name="backend",
            suggestions=list(SUPPORTED_BACKENDS),
        ) from None


@contextmanager
def open_session(
    to_encoding: str,
    from_encoding: str,
    transliterate: bool = False,
    discard_illegal_sequences: bool = False,
    backend: str = DEFAULT_BACKEND,
) -> Iterator[ConversionSession]:
    """Open a conversion session and close it however the block exits.

    Example:
        >>> with open_session("UTF-8", "EUC-JP") as session:
        ...     output = transcode(session, b"\\xa1\\xe7")
    """
    session = get_backend(backend).open(
        to_encoding,
        from_encoding,
        transliterate=transliterate,
        discard_illegal_sequences=discard_illegal_sequences,
    )
    try:
        yield session
    finally:
        session.close()
