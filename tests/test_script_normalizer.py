"""Unit tests for katakana -> hiragana normalization."""

import unicodedata

import pytest

from gokaku.services.script_normalizer import is_katakana, normalize_script


class TestNormalizeScript:
    """Test cases for normalize_script."""

    def test_katakana_becomes_hiragana(self):
        assert normalize_script("ミライショウ") == "みらいしょう"
        assert normalize_script("カタカナ") == "かたかな"

    def test_small_and_voiced_katakana(self):
        assert normalize_script("ァッャ") == "ぁっゃ"
        assert normalize_script("ヴ") == "ゔ"
        assert normalize_script("ヽヾ") == "ゝゞ"

    def test_other_scripts_pass_through(self):
        assert normalize_script("山田 太志") == "山田 太志"
        assert normalize_script("Taishi 123") == "Taishi 123"
        # Prolonged sound mark has no hiragana form
        assert normalize_script("ー") == "ー"

    def test_mixed_text(self):
        assert normalize_script("山田 ハナ子") == "山田 はな子"

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_input(self, value):
        assert normalize_script(value) == ""

    @pytest.mark.parametrize("text", ["ミライショウ", "山田 ハナ子", "ヴァイオリン", "あいう"])
    def test_idempotent(self, text):
        once = normalize_script(text)
        assert normalize_script(once) == once


class TestIsKatakana:
    """Test cases for is_katakana."""

    def test_detects_katakana(self):
        assert is_katakana("ア")
        assert is_katakana("ヶ")

    def test_rejects_others(self):
        assert not is_katakana("あ")
        assert not is_katakana("ー")
        assert not is_katakana("山")
        assert not is_katakana("アイ")


class TestUnicodeComposition:
    """Decomposed input (e.g. from macOS) is composed before lookup."""

    def test_decomposed_hiragana(self):
        decomposed = unicodedata.normalize("NFD", "ゆずき")
        assert len(decomposed) == 4

        assert normalize_script(decomposed) == "ゆずき"

    def test_decomposed_katakana(self):
        assert normalize_script("\u30ab\u3099") == "が"
        assert normalize_script(unicodedata.normalize("NFD", "パン")) == "ぱん"

    def test_composed_output_is_stable(self):
        once = normalize_script(unicodedata.normalize("NFD", "ガッコウ"))
        assert normalize_script(once) == once == "がっこう"
