"""
Stroke resolution: dictionary first, resolution cache second, auxiliary source third.

The dictionary is authoritative and can never be overridden. Characters it
does not know are fetched from the auxiliary source in one bulk call per batch
(``ensure_resolved``) and kept in a process-wide ``ResolutionCache`` so later
candidates and later requests reuse them. ``resolve`` itself never suspends.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict, abc
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from gokaku.config.logger import app_logger, log_performance
from gokaku.services.stroke_dictionary import StrokeDictionary
from gokaku.services.stroke_sources import StrokeSource

RESOLVE_MISSING = "missing"
RESOLVE_ALL = "all"
RESOLVE_MODES = (RESOLVE_MISSING, RESOLVE_ALL)

SOURCE_DICTIONARY = "dictionary"
SOURCE_CACHE = "cache"
SOURCE_HINT = "hint"
SOURCE_UNKNOWN = "unknown"


@dataclass(frozen=True)
class CharacterStroke:
    """One character and its stroke count (None when unresolved)."""

    char: str
    count: Optional[int]
    source: str = SOURCE_UNKNOWN

    @property
    def resolved(self) -> bool:
        return self.count is not None


@dataclass(frozen=True)
class NameBreakdown:
    """Ordered strokes for the surname or the given-name portion of a name."""

    strokes: Tuple[CharacterStroke, ...] = ()

    @property
    def chars(self) -> Tuple[str, ...]:
        return tuple(s.char for s in self.strokes)

    @property
    def total(self) -> int:
        # Unresolved characters contribute zero; see fully_resolved.
        return sum(s.count or 0 for s in self.strokes)

    @property
    def fully_resolved(self) -> bool:
        return all(s.resolved for s in self.strokes)

    @property
    def first_count(self) -> int:
        return (self.strokes[0].count or 0) if self.strokes else 0

    @property
    def last_count(self) -> int:
        return (self.strokes[-1].count or 0) if self.strokes else 0

    def as_pairs(self) -> List[list]:
        """Return ``[[char, count|None], ...]`` for JSON output."""
        return [[s.char, s.count] for s in self.strokes]

    def __len__(self) -> int:
        return len(self.strokes)


class ResolutionCache:
    """
    Thread-safe, size-bounded LRU cache of externally resolved stroke counts.

    Writes for the same character are expected to agree; a differing value
    simply replaces the earlier one.
    """

    def __init__(self, max_size: int = 4096):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._entries: "OrderedDict[str, int]" = OrderedDict()
        self._lock = threading.RLock()
        self._max_size = max_size

    def get(self, char: str) -> Optional[int]:
        with self._lock:
            count = self._entries.get(char)
            if count is not None:
                self._entries.move_to_end(char)
            return count

    def put(self, char: str, count: int) -> None:
        with self._lock:
            self._entries[char] = count
            self._entries.move_to_end(char)
            while len(self._entries) > self._max_size:
                evicted, _ = self._entries.popitem(last=False)
                app_logger.debug(f"Evicted '{evicted}' from resolution cache")

    def update(self, values: Mapping[str, int]) -> None:
        for char, count in values.items():
            self.put(char, count)

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._entries)

    def discard(self, chars: Iterable[str]) -> None:
        with self._lock:
            for char in chars:
                self._entries.pop(char, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    @property
    def max_size(self) -> int:
        return self._max_size

    def __contains__(self, char: object) -> bool:
        with self._lock:
            return char in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def _valid_count(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1


class StrokeResolver:
    """Resolve stroke counts for characters.

    Usage:
        resolver = StrokeResolver(dictionary, ResolutionCache(), KanjiApiStrokeSource())
        await resolver.ensure_resolved(all_chars_in_batch)
        breakdown = resolver.resolve(["山", "田"])
    """

    def __init__(
        self,
        dictionary: StrokeDictionary,
        cache: ResolutionCache,
        source: StrokeSource,
    ):
        self.dictionary = dictionary
        self.cache = cache
        self.source = source

    def lookup(self, char: str) -> CharacterStroke:
        """Resolve one character from the dictionary or the cache, without external calls."""
        count = self.dictionary.lookup(char)
        if count is not None:
            return CharacterStroke(char, count, SOURCE_DICTIONARY)
        count = self.cache.get(char)
        if count is not None:
            return CharacterStroke(char, count, SOURCE_CACHE)
        return CharacterStroke(char, None, SOURCE_UNKNOWN)

    def resolve(
        self,
        chars: Iterable[str],
        hints: Optional[Mapping[str, int]] = None,
    ) -> NameBreakdown:
        """Build a breakdown for ``chars`` in order.

        ``hints`` (upstream guesses) only fill characters that are still
        unknown after the dictionary and the cache.
        """
        strokes: List[CharacterStroke] = []
        for char in chars:
            stroke = self.lookup(char)
            if not stroke.resolved and hints and _valid_count(hints.get(char)):
                stroke = CharacterStroke(char, hints[char], SOURCE_HINT)
            strokes.append(stroke)
        return NameBreakdown(tuple(strokes))

    def pending(self, chars: Iterable[str], mode: str = RESOLVE_MISSING) -> List[str]:
        """Return the deduplicated characters that need an external lookup, in first-seen order."""
        if mode not in RESOLVE_MODES:
            raise ValueError(f"Unknown resolve mode: {mode!r} (expected one of {RESOLVE_MODES})")
        seen: Dict[str, None] = {}
        for char in chars:
            if char in seen or char.isspace() or char in self.dictionary:
                continue
            if mode == RESOLVE_MISSING and char in self.cache:
                continue
            seen[char] = None
        return list(seen)

    async def _fetch(self, missing: List[str]) -> Mapping[str, object]:
        try:
            raw = await self.source.lookup(missing)
        except Exception as exc:
            app_logger.warning(
                f"Auxiliary stroke lookup failed for {len(missing)} characters: {exc}"
            )
            return {}

        if not isinstance(raw, abc.Mapping):
            app_logger.warning(
                f"Auxiliary stroke lookup returned {type(raw).__name__}, expected a mapping"
            )
            return {}
        return raw

    async def ensure_resolved(self, chars: Iterable[str], mode: str = RESOLVE_MISSING) -> Dict[str, int]:
        """Fetch every pending character with a single bulk call and cache the valid results.

        Returns the counts that were written to the cache. Source failures and
        invalid values leave characters unresolved; nothing is raised. In
        ``all`` mode a character whose refresh fails is dropped from the cache,
        so it stays unknown instead of keeping the stale count.
        """
        missing = self.pending(chars, mode)
        if not missing:
            return {}

        start = time.perf_counter()
        raw = await self._fetch(missing)

        resolved: Dict[str, int] = {}
        rejected: List[str] = []
        for char in missing:
            value = raw.get(char)
            if _valid_count(value):
                resolved[char] = value
            elif value is not None:
                rejected.append(char)

        self.cache.update(resolved)

        if rejected:
            app_logger.warning(f"Rejected invalid stroke counts for: {rejected}")
        unresolved = [c for c in missing if c not in resolved]
        if unresolved:
            app_logger.info(f"Characters left unresolved after auxiliary lookup: {unresolved}")
            if mode == RESOLVE_ALL:
                self.cache.discard(unresolved)

        log_performance(
            "stroke_lookup",
            time.perf_counter() - start,
            requested=len(missing),
            resolved=len(resolved),
        )
        return resolved
