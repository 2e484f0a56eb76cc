"""Tests for the mistake tag vocabulary."""

from options_journal.core.enums import TagCategory
from options_journal.core.models import MistakeTag
from options_journal.journal.tags import (
    DEFAULT_MISTAKE_TAGS,
    EXTENDED_MISTAKE_TAGS,
    canonicalize,
    merge_tags,
    normalize_labels,
)


class TestCatalogue:
    def test_default_size_and_uniqueness(self):
        names = [t.tag_name for t in DEFAULT_MISTAKE_TAGS]
        assert len(names) == 26
        assert len(set(names)) == 26

    def test_extended_is_superset(self):
        names = {t.tag_name for t in EXTENDED_MISTAKE_TAGS}
        assert {t.tag_name for t in DEFAULT_MISTAKE_TAGS} < names
        assert len(names) == len(EXTENDED_MISTAKE_TAGS) == 39
        assert "revenge-trading" in names


class TestCanonicalize:
    def test_variants(self):
        assert canonicalize("early exit") == "early-exit"
        assert canonicalize("revenge mode") == "revenge-trading"
        assert canonicalize("no stop loss") == "no-stop-loss"

    def test_unknown_label_unchanged(self):
        assert canonicalize("fomo-entry") == "fomo-entry"

    def test_word_boundaries(self):
        assert canonicalize("piano plan") == "piano plan"

    def test_normalize_dedupes_after_canonicalising(self):
        assert normalize_labels("Early Exit, early-exit, No Plan") == ["early-exit", "no-plan"]

    def test_normalize_empty(self):
        assert normalize_labels(None) == []
        assert normalize_labels(" , ") == []


class TestMergeTags:
    def test_adds_custom_labels_sorted(self):
        predefined = [
            MistakeTag(tag_name="late-exit", category=TagCategory.EXIT),
            MistakeTag(tag_name="fomo-entry", category=TagCategory.ENTRY),
        ]
        merged = merge_tags(predefined, ["fomo-entry", "Chased Gap"])
        assert [t.tag_name for t in merged] == ["chased gap", "fomo-entry", "late-exit"]
        assert merged[0].category == TagCategory.CUSTOM
        assert merged[0].description == "User-created tag"
        assert merged[1].category == TagCategory.ENTRY
