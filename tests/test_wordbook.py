"""
Tests for the JSON-backed vocabulary book.
"""

import json
import subprocess
import sys
from pathlib import Path

import pytest

from utils.errors import WordNotFoundError
from utils.wordbook import WordBook

ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture
def book(tmp_path):
    return WordBook(tmp_path / "data" / "wordbook.json")


def test_new_book_file_is_an_empty_array(tmp_path):
    path = tmp_path / "data" / "wordbook.json"
    WordBook(path)
    assert path.read_text(encoding="utf-8") == "[]"


def test_add_and_list(book):
    entry, created = book.add(" Abandon ", " v. 放弃 ", phonetic="/əˈbændən/", source="They abandoned the plan.")

    assert created is True
    assert entry["word"] == "Abandon"
    assert entry["meaning"] == "v. 放弃"
    assert entry["audioPath"] == "/audio/word_abandon.mp3"
    assert entry["addedAt"].endswith("Z")
    assert book.all() == [entry]
    # stored as readable UTF-8
    assert "放弃" in book.path.read_text(encoding="utf-8")


def test_add_existing_word_updates_in_place(book):
    book.add("abandon", "v. 放弃")
    book.add("cope", "v. 应付")
    entry, created = book.add("ABANDON", "v. 抛弃", phonetic="/əˈbændən/")

    assert created is False
    assert [e["word"] for e in book.all()] == ["ABANDON", "cope"]
    assert entry["meaning"] == "v. 抛弃"


def test_add_requires_word_and_meaning(book):
    with pytest.raises(ValueError):
        book.add("word", "")
    with pytest.raises(ValueError):
        book.add("  ", "meaning")


def test_update_only_changes_given_fields(book):
    book.add("cope", "v. 应付", phonetic="/kəʊp/", source="cope with stress")
    entry = book.update("Cope", meaning="v. 处理")

    assert entry["meaning"] == "v. 处理"
    assert entry["phonetic"] == "/kəʊp/"
    assert entry["source"] == "cope with stress"


def test_update_and_remove_unknown_word(book):
    with pytest.raises(WordNotFoundError):
        book.update("ghost", meaning="x")
    with pytest.raises(WordNotFoundError):
        book.remove("ghost")


def test_remove(book):
    book.add("cope", "v. 应付")
    removed = book.remove("COPE")
    assert removed["word"] == "cope"
    assert book.all() == []


def test_search_matches_word_meaning_and_source(book):
    book.add("Abandon", "v. 放弃", source="exam 2019")
    book.add("cope", "v. 应付", source="reading passage")
    book.add("ability", "n. 能力")

    assert [e["word"] for e in book.search("AB")] == ["Abandon", "ability"]
    assert [e["word"] for e in book.search("应付")] == ["cope"]
    assert [e["word"] for e in book.search("2019")] == ["Abandon"]
    with pytest.raises(ValueError):
        book.search(" ")


def test_export_csv_has_bom_header_and_quoting(book):
    book.add("quote", 'n. 引用 "语录"', phonetic="/kwəʊt/")
    content = book.export_csv()
    lines = content.split("\n")

    assert content.startswith("\ufeff")
    assert lines[0] == '\ufeff"单词","音标","释义","来源","添加时间","音频路径"'
    assert lines[1].startswith('"quote","/kwəʊt/","n. 引用 ""语录""",""')
    assert lines[1].endswith('"/audio/word_quote.mp3"')


def test_export_json_round_trips(book):
    book.add("cope", "v. 应付")
    assert json.loads(book.export_json()) == book.all()


def test_import_merges_and_skips_incomplete_items(book):
    book.add("cope", "v. 应付")
    added, updated, total = book.import_words([
        {"word": "Cope", "meaning": "v. 对付"},
        {"word": "vivid", "meaning": "adj. 生动的", "addedAt": "2024-01-01T00:00:00.000Z"},
        {"word": "no-meaning"},
        {"meaning": "no word"},
        "garbage",
    ])

    assert (added, updated, total) == (1, 1, 2)
    entries = {e["word"]: e for e in book.all()}
    assert entries["Cope"]["meaning"] == "v. 对付"
    assert entries["vivid"]["addedAt"] == "2024-01-01T00:00:00.000Z"
    assert entries["vivid"]["audioPath"] == "/audio/word_vivid.mp3"


def test_import_without_merge_replaces_book(book):
    book.add("cope", "v. 应付")
    assert book.import_words([{"word": "vivid", "meaning": "adj. 生动的"}], merge=False) == (1, 0, 1)
    assert [e["word"] for e in book.all()] == ["vivid"]


def test_import_rejects_non_list(book):
    with pytest.raises(ValueError):
        book.import_words({"word": "x", "meaning": "y"})


def test_backup_writes_a_copy(book, tmp_path):
    book.add("cope", "v. 应付")
    path = book.backup(tmp_path / "backups")

    assert path.parent == tmp_path / "backups"
    assert path.name.startswith("wordbook_backup_")
    assert ":" not in path.name
    assert json.loads(path.read_text(encoding="utf-8")) == book.all()


def test_corrupt_file_reads_as_empty(book):
    book.path.write_text("{not json", encoding="utf-8")
    assert book.all() == []


def test_malformed_entries_are_dropped(book):
    book.path.write_text(
        json.dumps(["oops", {"meaning": "no word"}, {"word": 3}, {"word": "a", "meaning": "m"}]),
        encoding="utf-8",
    )

    assert [e["word"] for e in book.all()] == ["a"]
    assert [e["word"] for e in book.search("a")] == ["a"]
    entry, created = book.add("b", "n. 乙")
    assert created is True
    assert [e["word"] for e in book.all()] == ["a", "b"]


def test_wordbook_does_not_load_the_tts_stack():
    code = "import sys, utils.wordbook; assert 'edge_tts' not in sys.modules, sorted(sys.modules)"
    completed = subprocess.run([sys.executable, "-c", code], cwd=ROOT, capture_output=True, text=True)
    assert completed.returncode == 0, completed.stderr
