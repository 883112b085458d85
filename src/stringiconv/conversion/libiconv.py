"""Conversion sessions bound to the platform's iconv(3) through ctypes.

glibc exports ``iconv_open``/``iconv``/``iconv_close`` from the C library and
has no ``iconvctl``; behavior flags are expressed there as ``//TRANSLIT`` and
``//IGNORE`` suffixes on the target name, which means the descriptor is
reopened when a flag changes. Platforms shipping GNU libiconv (macOS among
them) provide ``iconvctl`` and are configured in place.
"""

import ctypes
import ctypes.util
import errno
from typing import Optional

from ..errors import InvalidEncodingName
from ..shared.config import ConfigValidationError
from ..shared.logging import get_logger
from ..shared.result import StepResult, StepStatus
from .session import TRANSLITERATE, ConversionSession

# Input bytes handed to a single iconv() call.
INPUT_WINDOW = 4096

# iconvctl requests (GNU libiconv, iconv.h)
ICONV_SET_TRANSLITERATE = 2
ICONV_SET_DISCARD_ILSEQ = 4

_ICONV_FAILURE = ctypes.c_size_t(-1).value
_INVALID_HANDLE = ctypes.c_void_p(-1).value

logger = get_logger(__name__, None, "libiconv")

_library: Optional[ctypes.CDLL] = None
_library_loaded = False


def _load_library() -> Optional[ctypes.CDLL]:
    for name in ("iconv", "c"):
        path = ctypes.util.find_library(name)
        if path is None:
            continue
        try:
            library = ctypes.CDLL(path, use_errno=True)
        except OSError:
            logger.debug("Could not load library", extra={"library": path})
            continue
        for prefix in ("", "lib"):
            if hasattr(library, f"{prefix}iconv_open"):
                return _bind(library, prefix)
    return None


def _bind(library: ctypes.CDLL, prefix: str) -> ctypes.CDLL:
    library.si_open = getattr(library, f"{prefix}iconv_open")
    library.si_open.argtypes = [ctypes.c_char_p, ctypes.c_char_p]
    library.si_open.restype = ctypes.c_void_p

    library.si_iconv = getattr(library, f"{prefix}iconv")
    library.si_iconv.argtypes = [
        ctypes.c_void_p,
        ctypes.POINTER(ctypes.c_void_p),
        ctypes.POINTER(ctypes.c_size_t),
        ctypes.POINTER(ctypes.c_void_p),
        ctypes.POINTER(ctypes.c_size_t),
    ]
    library.si_iconv.restype = ctypes.c_size_t

    library.si_close = getattr(library, f"{prefix}iconv_close")
    library.si_close.argtypes = [ctypes.c_void_p]
    library.si_close.restype = ctypes.c_int

    iconvctl = getattr(library, f"{prefix}iconvctl", None)
    if iconvctl is not None:
        iconvctl.argtypes = [ctypes.c_void_p, ctypes.c_int, ctypes.c_void_p]
        iconvctl.restype = ctypes.c_int
    library.si_ctl = iconvctl
    return library


def get_library() -> Optional[ctypes.CDLL]:
    """Return the bound iconv library, or None when the platform has none."""
    global _library, _library_loaded
    if not _library_loaded:
        _library = _load_library()
        _library_loaded = True
    return _library


def available() -> bool:
    """Whether a platform iconv could be loaded."""
    return get_library() is not None


def _encode_name(name: str) -> bytes:
    try:
        return name.encode("ascii")
    except UnicodeEncodeError:
        raise InvalidEncodingName(name) from None


class LibiconvSession(ConversionSession):
    """Conversion session owning one iconv conversion descriptor."""

    backend_name = "iconv"

    def __init__(self, to_encoding: str, from_encoding: str, library: ctypes.CDLL) -> None:
        super().__init__(to_encoding, from_encoding)
        self._library = library
        self._handle: Optional[int] = None
        self._stepped = False
        self._handle = self._open_handle()

    @classmethod
    def _create(cls, to_encoding: str, from_encoding: str) -> "LibiconvSession":
        library = get_library()
        if library is None:
            raise ConfigValidationError(
                "No iconv implementation is available on this platform",
                field_name="backend",
                suggestions=["codecs"],
            )
        return cls(to_encoding, from_encoding, library)

    def _target_name(self) -> str:
        if self._library.si_ctl is not None:
            return self.to_encoding
        name = self.to_encoding
        if self.transliterate:
            name += "//TRANSLIT"
        if self.discard_illegal_sequences:
            name += "//IGNORE"
        return name

    def _open_handle(self) -> int:
        target = self._target_name()
        ctypes.set_errno(0)
        handle = self._library.si_open(
            _encode_name(target), _encode_name(self.from_encoding)
        )
        if handle is None or handle == _INVALID_HANDLE:
            code = ctypes.get_errno()
            logger.debug(
                "iconv_open failed",
                extra={"to": target, "from": self.from_encoding, "errno": code},
            )
            raise InvalidEncodingName(f"{self.from_encoding} -> {target}")
        return handle

    def _apply_flag(self, flag: str, value: bool) -> None:
        if self._library.si_ctl is None:
            if self._stepped:
                raise ValueError("Flags cannot change after conversion has started")
            self._library.si_close(self._handle)
            self._handle = None
            self._handle = self._open_handle()
            return

        request = (
            ICONV_SET_TRANSLITERATE if flag == TRANSLITERATE else ICONV_SET_DISCARD_ILSEQ
        )
        argument = ctypes.c_int(int(value))
        if self._library.si_ctl(self._handle, request, ctypes.byref(argument)) != 0:
            raise OSError(ctypes.get_errno(), f"iconvctl failed for {flag}")

    def _release(self) -> None:
        if self._handle is not None:
            self._library.si_close(self._handle)
            self._handle = None

    def _call(self, inbuf, inleft, outbuf, outleft):
        ctypes.set_errno(0)
        status = self._library.si_iconv(self._handle, inbuf, inleft, outbuf, outleft)
        if status == _ICONV_FAILURE:
            return ctypes.get_errno()
        return 0

    def _step(self, source: memoryview, target: memoryview) -> StepResult:
        self._stepped = True
        capacity = len(target)
        out_buffer = ctypes.create_string_buffer(max(capacity, 1))
        out_base = ctypes.addressof(out_buffer)
        out_pointer = ctypes.c_void_p(out_base)
        out_left = ctypes.c_size_t(capacity)

        total = len(source)
        consumed = 0
        status = StepStatus.SUCCESS
        code = None

        while consumed < total:
            window = bytes(source[consumed:consumed + INPUT_WINDOW])
            in_buffer = ctypes.create_string_buffer(window, len(window))
            in_pointer = ctypes.c_void_p(ctypes.addressof(in_buffer))
            in_left = ctypes.c_size_t(len(window))

            error = self._call(
                ctypes.byref(in_pointer), ctypes.byref(in_left),
                ctypes.byref(out_pointer), ctypes.byref(out_left),
            )
            used = len(window) - in_left.value
            consumed += used
            more_input = consumed + in_left.value < total

            if error == 0:
                continue
            if error == errno.EINVAL and more_input and used > 0:
                # Window ended inside a character; the next window starts at it.
                continue
            if error == errno.EILSEQ and self.discard_illegal_sequences and used > 0:
                # glibc reports EILSEQ after skipping bytes under //IGNORE.
                continue
            status, code = self._classify(error)
            break

        if status is StepStatus.SUCCESS:
            error = self._call(None, None, ctypes.byref(out_pointer), ctypes.byref(out_left))
            if error != 0:
                status, code = self._classify(error)

        produced = capacity - out_left.value
        target[:produced] = out_buffer.raw[:produced]
        return StepResult(consumed, produced, status, code)

    @staticmethod
    def _classify(error: int):
        if error == errno.EILSEQ:
            return StepStatus.INVALID_SEQUENCE, None
        if error == errno.EINVAL:
            return StepStatus.INCOMPLETE_SEQUENCE, None
        if error == errno.E2BIG:
            return StepStatus.OUTPUT_FULL, None
        return StepStatus.OTHER, error
