"""
Stroke dictionary (新字体・霊数なし).

The dictionary is the authoritative source of stroke counts. It is built
offline by ``scripts/build_stroke_dictionary.py`` from Kanjidic2 data
(kanjiapi.dev) plus the hiragana table and manual overrides below, and is
only ever read at runtime.
"""

from __future__ import annotations

import json
import unicodedata
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional

from gokaku.config.logger import app_logger


# Hiragana stroke counts (霊数なし)
HIRAGANA_STROKES: Dict[str, int] = {
    "あ": 3, "い": 2, "う": 2, "え": 2, "お": 3, "か": 3, "き": 4, "く": 1, "け": 3, "こ": 2,
    "さ": 3, "し": 1, "す": 2, "せ": 3, "そ": 1, "た": 4, "ち": 2, "つ": 1, "て": 1, "と": 2,
    "な": 2, "に": 3, "ぬ": 2, "ね": 2, "の": 1, "は": 3, "ひ": 1, "ふ": 4, "へ": 1, "ほ": 4,
    "ま": 3, "み": 3, "む": 3, "め": 3, "も": 3, "や": 2, "ゆ": 2, "よ": 2, "ら": 2, "り": 2,
    "る": 2, "れ": 2, "ろ": 1, "わ": 2, "を": 3, "ん": 1,
    "ぁ": 2, "ぃ": 1, "ぅ": 1, "ぇ": 1, "ぉ": 2, "ゃ": 2, "ゅ": 2, "ょ": 2, "っ": 1,
}

# In-house overrides applied on top of the reference data
STROKE_OVERRIDES: Dict[str, int] = {"六": 4, "龍": 16, "凛": 15}

_DAKUTEN = "\u3099"
_HANDAKUTEN = "\u309a"


def with_voiced_kana(table: Mapping[str, int]) -> Dict[str, int]:
    """Extend a kana table with voiced (+2) and semi-voiced (+1) forms.

    が = か + ゛, ぱ = は + ゜. Only combinations that compose to a single
    precomposed character are added.
    """
    extended = dict(table)
    for base, count in table.items():
        for mark, extra in ((_DAKUTEN, 2), (_HANDAKUTEN, 1)):
            composed = unicodedata.normalize("NFC", base + mark)
            if len(composed) == 1 and composed not in extended:
                extended[composed] = count + extra
    return extended


def build_dictionary_payload(
    fetched: Mapping[str, int],
    source: str = "kanjiapi.dev (Kanjidic2)",
) -> Dict[str, object]:
    """Merge fetched kanji counts with kana and overrides into the artifact layout."""
    kana = with_voiced_kana(HIRAGANA_STROKES)
    merged: Dict[str, int] = {**fetched, **kana, **STROKE_OVERRIDES}
    return {
        "meta": {
            "source": source,
            "note": "新字体・霊数なし。常用漢字＋ひらがな（濁音・半濁音含む）＋overrides",
            "counts": {"kanji": len(fetched), "kana": len(kana), "total": len(merged)},
        },
        **merged,
    }


def without_generated_entries(entries: Mapping[str, int]) -> Dict[str, int]:
    """Drop the kana and override rows that ``build_dictionary_payload`` adds itself.

    Used when an existing artifact is merged back in, so only fetched kanji are counted as such.
    """
    generated = set(with_voiced_kana(HIRAGANA_STROKES)) | set(STROKE_OVERRIDES)
    return {char: count for char, count in entries.items() if char not in generated}


class StrokeDictionary:
    """Immutable character -> stroke count mapping."""

    def __init__(self, entries: Mapping[str, int]):
        self._entries = MappingProxyType(dict(entries))

    @classmethod
    def from_mapping(cls, raw: Mapping[str, object]) -> "StrokeDictionary":
        """Build from an artifact-shaped mapping, skipping metadata and invalid rows."""
        entries: Dict[str, int] = {}
        skipped = 0
        for key, value in raw.items():
            if key == "meta":
                continue
            if len(key) != 1 or isinstance(value, bool) or not isinstance(value, int) or value < 1:
                skipped += 1
                continue
            entries[key] = value
        if skipped:
            app_logger.warning(f"Skipped {skipped} invalid stroke dictionary entries")
        return cls(entries)

    def lookup(self, char: str) -> Optional[int]:
        """Return the stroke count for ``char`` or None when absent."""
        return self._entries.get(char)

    def __contains__(self, char: object) -> bool:
        return char in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)


def load_stroke_dictionary(path: str | Path) -> StrokeDictionary:
    """Load the stroke dictionary artifact from disk."""
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, dict):
        raise ValueError(f"Stroke dictionary at {path} must be a JSON object")
    dictionary = StrokeDictionary.from_mapping(raw)
    app_logger.info(f"Loaded {len(dictionary)} stroke dictionary entries from {path}")
    return dictionary
