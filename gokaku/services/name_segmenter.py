"""
Split a candidate's full name into surname and given-name characters.

The generator is asked to prefix every candidate with the requested surname,
but that contract is not always honored. A name without the prefix is still a
usable candidate, so the mismatch is reported as a distinct outcome instead of
raising.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Tuple, Union

_WHITESPACE_RE = re.compile(r"\s+")


def strip_whitespace(text: str | None) -> str:
    """Remove every whitespace character (including full-width spaces)."""
    return _WHITESPACE_RE.sub("", text or "")


@dataclass(frozen=True)
class Segmented:
    """The full name started with the input surname."""

    surname_chars: Tuple[str, ...]
    given_chars: Tuple[str, ...]

    kind = "segmented"


@dataclass(frozen=True)
class SurnameMismatch:
    """The full name did not start with the input surname; all of it is treated as the given name."""

    surname_chars: Tuple[str, ...]
    given_chars: Tuple[str, ...]

    kind = "surname_mismatch"


Segmentation = Union[Segmented, SurnameMismatch]


def segment_name(input_surname: str, full_name: str | None) -> Segmentation:
    """Segment ``full_name`` using the known ``input_surname``.

    Both values are expected to be script-normalized already.
    """
    surname = strip_whitespace(input_surname)
    clean = strip_whitespace(full_name)

    if clean.startswith(surname):
        return Segmented(
            surname_chars=tuple(surname),
            given_chars=tuple(clean[len(surname):]),
        )
    return SurnameMismatch(surname_chars=(), given_chars=tuple(clean))
