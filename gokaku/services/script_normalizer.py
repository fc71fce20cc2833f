"""Katakana -> hiragana rewriting for names and readings."""

from __future__ import annotations

import unicodedata

# Katakana ァ..ヶ and the iteration marks ヽヾ sit exactly 0x60 above their hiragana forms.
KATAKANA_TO_HIRAGANA_OFFSET = 0x60

_KATAKANA_RANGES = ((0x30A1, 0x30F6), (0x30FD, 0x30FE))

_TRANSLATION_TABLE = {
    code: code - KATAKANA_TO_HIRAGANA_OFFSET
    for start, end in _KATAKANA_RANGES
    for code in range(start, end + 1)
}


def is_katakana(char: str) -> bool:
    """Return True when ``char`` is a katakana character that has a hiragana counterpart."""
    return len(char) == 1 and ord(char) in _TRANSLATION_TABLE


def normalize_script(text: str | None) -> str:
    """Rewrite katakana in ``text`` to hiragana; everything else passes through.

    Text is composed to NFC first so a decomposed voiced kana (す + ゛) becomes
    the single character the stroke dictionary knows (ず).
    Idempotent: the output never contains a character that would be rewritten again.
    """
    if not text:
        return ""
    return unicodedata.normalize("NFC", text).translate(_TRANSLATION_TABLE)
