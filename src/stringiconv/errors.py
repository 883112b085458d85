"""Error taxonomy for stringiconv.

Every failure of a conversion call is raised as a subclass of ``IconvError``.
Offsets carried by the sequence errors point into the *output* stream: they
are the number of output bytes produced before the problem was detected.
"""

from typing import Optional


class IconvError(Exception):
    """Base exception for conversion failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidEncodingName(IconvError):
    """A conversion session could not be opened for the given encoding names."""

    def __init__(self, encoding: Optional[str] = None) -> None:
        message = "Can not open iconv handle. An invalid encoding name has been passed."
        if encoding is not None:
            message = f"{message} ({encoding!r})"
        super().__init__(message)
        self.encoding = encoding


class InvalidMultiByteSequence(IconvError):
    """An invalid multibyte sequence was found in the input."""

    def __init__(self, location: int) -> None:
        super().__init__(
            f"An invalid multibyte sequence has been encountered at "
            f"{location}-th code among the input."
        )
        self.location = location


class IncompleteMultiByteSequence(IconvError):
    """The input ended in the middle of a multibyte sequence."""

    def __init__(self, location: int) -> None:
        super().__init__(
            f"An incomplete multibyte sequence has been encountered at "
            f"{location}-th code among the input."
        )
        self.location = location


class UnknownError(IconvError):
    """The conversion session reported a failure it could not classify."""

    def __init__(self, code: int) -> None:
        super().__init__(f"Unknown error: code {code}.")
        self.code = code


class DecodeError(IconvError):
    """Converted bytes could not be read back as text in the internal encoding."""

    def __init__(self, encoding: Optional[str] = None) -> None:
        message = (
            "Converted bytes could not be decoded as text. "
            "The conversion itself succeeded."
        )
        if encoding is not None:
            message = f"{message} (internal encoding {encoding!r})"
        super().__init__(message)
        self.encoding = encoding
