"""Transliteration error handler for codec-based sessions.

Registered with :mod:`codecs` as ``"stringiconv.translit"``. Characters the
target encoding cannot represent are replaced, in order of preference, by an
entry from ``APPROXIMATIONS``, by their compatibility decomposition with
combining marks removed, or by ``"?"``.
"""

import codecs
import unicodedata
from typing import Dict, Tuple

TRANSLIT_ERROR_HANDLER = "stringiconv.translit"
TRANSLIT_DISCARD_ERROR_HANDLER = "stringiconv.translit_discard"
FALLBACK_CHARACTER = "?"

APPROXIMATIONS: Dict[str, str] = {
    " ": " ",
    "«": "<<",
    "»": ">>",
    "Æ": "AE",
    "Ð": "D",
    "×": "x",
    "Ø": "O",
    "Þ": "TH",
    "ß": "ss",
    "æ": "ae",
    "ð": "d",
    "÷": ":",
    "ø": "o",
    "þ": "th",
    "Đ": "D",
    "đ": "d",
    "Ł": "L",
    "ł": "l",
    "Œ": "OE",
    "œ": "oe",
    "‐": "-",
    "–": "-",
    "—": "-",
    "‘": "'",
    "’": "'",
    "‚": ",",
    "“": '"',
    "”": '"',
    "„": ",,",
    "•": "o",
    "…": "...",
    "‹": "<",
    "›": ">",
    "€": "EUR",
    "™": "(TM)",
    "©": "(C)",
    "®": "(R)",
    "←": "<-",
    "→": "->",
    "−": "-",
    "∞": "inf",
}


def _encodable(text: str, encoding: str) -> bool:
    try:
        text.encode(encoding)
    except UnicodeEncodeError:
        return False
    return True


def approximate(char: str, encoding: str) -> str:
    """Return the best representation of ``char`` available in ``encoding``.

    Returns an empty string when nothing better than the fallback exists.
    """
    candidate = APPROXIMATIONS.get(char)
    if candidate is not None and _encodable(candidate, encoding):
        return candidate

    decomposed = unicodedata.normalize("NFKD", char)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    if stripped and stripped != char and _encodable(stripped, encoding):
        return stripped

    return ""


def _transliterate(exc: UnicodeError, fallback: str) -> Tuple[str, int]:
    if not isinstance(exc, UnicodeEncodeError):
        raise exc
    replacement = []
    for char in exc.object[exc.start:exc.end]:
        replacement.append(approximate(char, exc.encoding) or fallback)
    return "".join(replacement), exc.end


def translit_errors(exc: UnicodeError) -> Tuple[str, int]:
    """Replace unencodable characters, using ``"?"`` when nothing fits."""
    return _transliterate(exc, FALLBACK_CHARACTER)


def translit_discard_errors(exc: UnicodeError) -> Tuple[str, int]:
    """Replace unencodable characters, dropping those without approximation."""
    return _transliterate(exc, "")


codecs.register_error(TRANSLIT_ERROR_HANDLER, translit_errors)
codecs.register_error(TRANSLIT_DISCARD_ERROR_HANDLER, translit_discard_errors)
