"""Unit tests for the stroke dictionary and its artifact."""

import json

import pytest

from gokaku.config.settings import settings
from gokaku.services.stroke_dictionary import (
    HIRAGANA_STROKES,
    STROKE_OVERRIDES,
    StrokeDictionary,
    build_dictionary_payload,
    load_stroke_dictionary,
    with_voiced_kana,
    without_generated_entries,
)


class TestStrokeDictionary:
    """Test cases for StrokeDictionary."""

    def test_lookup(self):
        dictionary = StrokeDictionary({"山": 3, "田": 5})

        assert dictionary.lookup("山") == 3
        assert dictionary.lookup("凰") is None
        assert "田" in dictionary
        assert "凰" not in dictionary
        assert len(dictionary) == 2
        assert set(dictionary) == {"山", "田"}

    def test_entries_are_read_only(self):
        source = {"山": 3}
        dictionary = StrokeDictionary(source)
        source["山"] = 99

        assert dictionary.lookup("山") == 3

    def test_from_mapping_skips_meta_and_invalid_rows(self):
        raw = {
            "meta": {"counts": {"total": 3}},
            "山": 3,
            "田": 5,
            "川": 0,
            "木": -4,
            "林": "8",
            "森": True,
            "山田": 8,
        }

        dictionary = StrokeDictionary.from_mapping(raw)

        assert len(dictionary) == 2
        assert dictionary.lookup("山") == 3
        assert dictionary.lookup("森") is None
        assert "meta" not in dictionary


class TestKanaTable:
    """Test cases for the hiragana table and its voiced forms."""

    def test_voiced_forms_add_two_strokes(self):
        table = with_voiced_kana(HIRAGANA_STROKES)

        assert table["が"] == table["か"] + 2
        assert table["ば"] == table["は"] + 2
        assert table["ゔ"] == table["う"] + 2

    def test_semi_voiced_forms_add_one_stroke(self):
        table = with_voiced_kana(HIRAGANA_STROKES)

        assert table["ぱ"] == table["は"] + 1
        assert table["ぽ"] == table["ほ"] + 1

    def test_kana_without_voiced_form_is_unchanged(self):
        table = with_voiced_kana({"あ": 3})

        assert table == {"あ": 3}


class TestDictionaryPayload:
    """Test cases for the artifact builder used by the offline script."""

    def test_overrides_win_over_fetched_counts(self):
        payload = build_dictionary_payload({"六": 6, "山": 3})

        assert payload["六"] == STROKE_OVERRIDES["六"]
        assert payload["山"] == 3
        assert payload["が"] == 5

    def test_meta_counts(self):
        payload = build_dictionary_payload({"山": 3, "田": 5})
        counts = payload["meta"]["counts"]

        assert counts["kanji"] == 2
        assert counts["total"] == len(payload) - 1

    def test_rebuilding_from_an_existing_artifact_counts_only_kanji(self):
        first = build_dictionary_payload({"山": 3})
        existing = {k: v for k, v in first.items() if k != "meta"}

        rebuilt = build_dictionary_payload(without_generated_entries(existing))

        assert rebuilt["meta"]["counts"] == first["meta"]["counts"]
        assert rebuilt["meta"]["counts"]["kanji"] == 1

    def test_without_generated_entries_keeps_fetched_kanji(self):
        assert without_generated_entries({"山": 3, "が": 5, "あ": 3, "龍": 16}) == {"山": 3}

    def test_payload_round_trips_through_loader(self, tmp_path):
        path = tmp_path / "strokes.json"
        path.write_text(json.dumps(build_dictionary_payload({"山": 3}), ensure_ascii=False), encoding="utf-8")

        dictionary = load_stroke_dictionary(path)

        assert dictionary.lookup("山") == 3
        assert dictionary.lookup("ぱ") == 4


class TestBundledArtifact:
    """Test cases for gokaku/data/strokes.json."""

    @pytest.fixture(scope="class")
    def bundled(self):
        return load_stroke_dictionary(settings.effective_dictionary_path)

    def test_common_name_characters(self, bundled):
        assert bundled.lookup("山") == 3
        assert bundled.lookup("田") == 5
        assert bundled.lookup("太") == 4
        assert bundled.lookup("翔") == 12

    def test_kana_and_overrides_present(self, bundled):
        assert bundled.lookup("あ") == 3
        assert bundled.lookup("が") == 5
        assert bundled.lookup("六") == 4

    def test_size_matches_meta(self, bundled):
        with open(settings.effective_dictionary_path, encoding="utf-8") as f:
            raw = json.load(f)

        assert len(bundled) == raw["meta"]["counts"]["total"]

    def test_non_object_artifact_is_rejected(self, tmp_path):
        path = tmp_path / "strokes.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")

        with pytest.raises(ValueError):
            load_stroke_dictionary(path)
