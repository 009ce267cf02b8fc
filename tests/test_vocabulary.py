"""
Tests for vocabulary loading.
"""

import json

import pytest

from pronunciation_drill.errors import VocabularyError
from pronunciation_drill.models import WordPair
from pronunciation_drill.vocabulary import DEFAULT_VOCABULARY, load_vocabulary


class TestDefaultVocabulary:
    """Test cases for the built-in word list."""

    def test_has_enough_words_for_a_session(self):
        assert len(DEFAULT_VOCABULARY) >= 10

    def test_words_are_complete_and_unique(self):
        assert all(pair.source and pair.target for pair in DEFAULT_VOCABULARY)
        assert len({pair.target for pair in DEFAULT_VOCABULARY}) == len(DEFAULT_VOCABULARY)


class TestLoadVocabulary:
    """Test cases for reading word pairs from files."""

    def test_load_json_list(self, tmp_path):
        path = tmp_path / "words.json"
        path.write_text(json.dumps([
            {"source": "dog", "target": "chien", "category": "noun"},
            {"source": "yes", "target": "oui"},
        ]), encoding="utf-8")

        pairs = load_vocabulary(str(path))

        assert pairs == [WordPair("dog", "chien", "noun"), WordPair("yes", "oui", "")]

    def test_load_json_object_with_words(self, tmp_path):
        path = tmp_path / "words.json"
        path.write_text(json.dumps({
            "words": [{"english": "school", "french": "école", "type": "noun"}]
        }), encoding="utf-8")

        assert load_vocabulary(str(path)) == [WordPair("school", "école", "noun")]

    def test_load_csv_with_aliases_and_blank_rows(self, tmp_path):
        path = tmp_path / "words.csv"
        path.write_text(
            "English,French,Category\n"
            "cat,chat,noun\n"
            ",,\n"
            " house , maison ,noun\n",
            encoding="utf-8"
        )

        pairs = load_vocabulary(str(path))

        assert pairs == [WordPair("cat", "chat", "noun"), WordPair("house", "maison", "noun")]

    def test_missing_file(self, tmp_path):
        with pytest.raises(VocabularyError) as exc_info:
            load_vocabulary(str(tmp_path / "missing.json"))
        assert exc_info.value.processing_error.error_code == "VOCAB_001"

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "words.txt"
        path.write_text("dog chien", encoding="utf-8")

        with pytest.raises(VocabularyError) as exc_info:
            load_vocabulary(str(path))
        assert "Unsupported" in exc_info.value.processing_error.message

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "words.json"
        path.write_text("[{", encoding="utf-8")

        with pytest.raises(VocabularyError):
            load_vocabulary(str(path))

    def test_json_must_hold_a_list(self, tmp_path):
        path = tmp_path / "words.json"
        path.write_text('"chien"', encoding="utf-8")

        with pytest.raises(VocabularyError):
            load_vocabulary(str(path))

    def test_incomplete_entry(self, tmp_path):
        path = tmp_path / "words.json"
        path.write_text(json.dumps([{"source": "dog"}]), encoding="utf-8")

        with pytest.raises(VocabularyError) as exc_info:
            load_vocabulary(str(path))
        assert "Entry 1" in exc_info.value.processing_error.details

    def test_empty_vocabulary(self, tmp_path):
        path = tmp_path / "words.csv"
        path.write_text("source,target\n", encoding="utf-8")

        with pytest.raises(VocabularyError) as exc_info:
            load_vocabulary(str(path))
        assert exc_info.value.processing_error.message == "Vocabulary is empty"
