"""Listing of the encoding names conversion sessions accept.

Names come from the codec registry: every alias known to
:mod:`encodings.aliases` plus every codec module shipped in the
:mod:`encodings` package. Codecs that are not text encodings (``base64``,
``rot13``, ...) and codecs unavailable on this platform are left out.
"""

import codecs
import encodings
import pkgutil
from encodings.aliases import aliases
from typing import Iterator, Optional, Set, Tuple

# Modules in the encodings package that are not usable codecs.
_NON_CODEC_MODULES = frozenset({"aliases", "undefined"})


def _candidate_names() -> Iterator[str]:
    yield from aliases
    yield from aliases.values()
    for module in pkgutil.iter_modules(encodings.__path__):
        if module.name not in _NON_CODEC_MODULES:
            yield module.name


def _text_codec_name(name: str) -> Optional[str]:
    try:
        info = codecs.lookup(name)
    except LookupError:
        return None
    if not getattr(info, "_is_text_encoding", True):
        return None
    return info.name


def iconvlist() -> Tuple[str, ...]:
    """Every encoding name accepted by the codecs backend, aliases included."""
    names: Set[str] = set()
    for name in _candidate_names():
        if _text_codec_name(name) is not None:
            names.add(name)
    return tuple(sorted(names))


def canonical_iconvlist() -> Tuple[str, ...]:
    """Canonical name of each distinct encoding, without duplicates."""
    canonical: Set[str] = set()
    for name in _candidate_names():
        resolved = _text_codec_name(name)
        if resolved is not None:
            canonical.add(resolved)
    return tuple(sorted(canonical))
