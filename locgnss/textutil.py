"""Small string helpers used when parsing configuration text."""

from __future__ import annotations

import logging
from typing import List

_log = logging.getLogger("LocSvc_misc_utils")

# Characters that C's isspace() treats as whitespace in the default locale.
_C_WHITESPACE = " \t\n\v\f\r"


def split_string(raw: str, max_count: int, delimiter: str) -> List[str]:
    """Split ``raw`` on ``delimiter`` and return at most ``max_count`` pieces.

    Splitting stops once ``max_count`` pieces have been collected; whatever
    follows is dropped. At least one piece is always returned, even when
    ``max_count`` is zero or negative. Empty pieces are kept.
    """
    if raw is None:
        raise ValueError("raw string is required")
    if not isinstance(delimiter, str) or len(delimiter) != 1:
        raise ValueError("delimiter must be a single character")
    _log.debug("raw string: %s", raw)
    pieces = raw.split(delimiter)[: max(max_count, 1)]
    _log.debug("num_split_strings: %d", len(pieces))
    return pieces


def trim_space(text: str) -> str:
    """Remove leading and trailing whitespace from ``text``.

    A string made only of whitespace has no non-space character to anchor
    the trim and is returned unchanged.
    """
    if text is None:
        raise ValueError("text is required")
    stripped = text.strip(_C_WHITESPACE)
    if not stripped:
        return text
    return stripped