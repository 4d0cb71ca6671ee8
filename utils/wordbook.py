"""
Personal vocabulary book stored as a flat JSON array on disk.

Every call reads the file, changes it and writes it back; the book is small and
has a single user.
"""

import csv
import io
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from loguru import logger

from utils.errors import WordNotFoundError
from utils.jobs import word_audio_name

CSV_HEADERS = ["单词", "音标", "释义", "来源", "添加时间", "音频路径"]
CSV_FIELDS = ["word", "phonetic", "meaning", "source", "addedAt", "audioPath"]


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _timestamp_slug() -> str:
    return _utc_now().replace(":", "-").replace(".", "-")


class WordBook:
    def __init__(self, path: Path, audio_url_prefix: str = "/audio"):
        self.path = Path(path)
        self.audio_url_prefix = audio_url_prefix.rstrip("/")
        if not self.path.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text("[]", encoding="utf-8")
            logger.info("Created empty word book at {}", self.path)

    def _read(self) -> List[Dict[str, str]]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.error("Could not read word book {}: {}", self.path, exc)
            return []
        if not isinstance(data, list):
            logger.error("Word book {} does not hold a JSON array, ignoring it", self.path)
            return []
        words = [entry for entry in data if isinstance(entry, dict) and isinstance(entry.get("word"), str)]
        if len(words) != len(data):
            logger.error("Word book {}: dropped {} malformed entries", self.path, len(data) - len(words))
        return words

    def _write(self, words: List[Dict[str, str]]) -> None:
        self.path.write_text(json.dumps(words, ensure_ascii=False, indent=2), encoding="utf-8")

    def _find(self, words: List[Dict[str, str]], word: str) -> int:
        target = word.strip().lower()
        for i, entry in enumerate(words):
            if entry.get("word", "").lower() == target:
                return i
        return -1

    def _audio_path(self, word: str) -> str:
        return f"{self.audio_url_prefix}/{word_audio_name(word)}"

    def all(self) -> List[Dict[str, str]]:
        return self._read()

    def search(self, query: str) -> List[Dict[str, str]]:
        """
        Entries whose word contains query (case-insensitive), or whose
        meaning or source contains it.
        """
        if not query or not query.strip():
            raise ValueError("search query must not be empty")
        keyword = query.strip().lower()
        return [
            entry for entry in self._read()
            if keyword in entry.get("word", "").lower()
            or keyword in entry.get("meaning", "")
            or keyword in entry.get("source", "")
        ]

    def add(self, word: str, meaning: str, phonetic: str = "", source: str = "") -> Tuple[Dict[str, str], bool]:
        """
        Adds a word, or overwrites the entry already stored under the same
        word. Returns the entry and whether it was newly created.
        """
        if not word or not word.strip() or not meaning or not meaning.strip():
            raise ValueError("word and meaning are required")
        words = self._read()
        entry = {
            "word": word.strip(),
            "phonetic": phonetic or "",
            "meaning": meaning.strip(),
            "source": source or "",
            "addedAt": _utc_now(),
            "audioPath": self._audio_path(word.strip()),
        }
        index = self._find(words, word)
        if index == -1:
            words.append(entry)
        else:
            words[index] = {**words[index], **entry}
            entry = words[index]
        self._write(words)
        logger.info("{} word {!r}", "Added" if index == -1 else "Updated", entry["word"])
        return entry, index == -1

    def update(self, word: str, phonetic: Optional[str] = None, meaning: Optional[str] = None,
               source: Optional[str] = None) -> Dict[str, str]:
        words = self._read()
        index = self._find(words, word)
        if index == -1:
            raise WordNotFoundError(word)
        for key, value in (("phonetic", phonetic), ("meaning", meaning), ("source", source)):
            if value is not None:
                words[index][key] = value
        self._write(words)
        return words[index]

    def remove(self, word: str) -> Dict[str, str]:
        words = self._read()
        index = self._find(words, word)
        if index == -1:
            raise WordNotFoundError(word)
        removed = words.pop(index)
        self._write(words)
        logger.info("Removed word {!r}", removed["word"])
        return removed

    def export_json(self) -> str:
        return json.dumps(self._read(), ensure_ascii=False, indent=2)

    def export_csv(self) -> str:
        """
        CSV with a UTF-8 BOM so spreadsheet programs pick the right encoding.
        """
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(CSV_HEADERS)
        for entry in self._read():
            writer.writerow([entry.get(field) or "" for field in CSV_FIELDS])
        return "\ufeff" + buffer.getvalue()

    def import_words(self, items: Iterable[Dict[str, str]], merge: bool = True) -> Tuple[int, int, int]:
        """
        Merges items into the book (or replaces it when merge is False).
        Items without a word or a meaning are skipped.
        Returns (added, updated, total).
        """
        if items is None or isinstance(items, (str, bytes, dict)):
            raise ValueError("import data must be a list of word entries")
        words = self._read() if merge else []
        added = updated = 0
        for item in items:
            if not isinstance(item, dict) or not item.get("word") or not item.get("meaning"):
                continue
            word = str(item["word"]).strip()
            entry = {
                "word": word,
                "phonetic": item.get("phonetic") or "",
                "meaning": str(item["meaning"]).strip(),
                "source": item.get("source") or "",
                "addedAt": item.get("addedAt") or _utc_now(),
                "audioPath": item.get("audioPath") or self._audio_path(word),
            }
            index = self._find(words, word)
            if index == -1:
                words.append(entry)
                added += 1
            else:
                words[index] = entry
                updated += 1
        self._write(words)
        logger.info("Import finished: {} added, {} updated", added, updated)
        return added, updated, len(words)

    def backup(self, backup_dir: Path) -> Path:
        backup_dir = Path(backup_dir)
        backup_dir.mkdir(parents=True, exist_ok=True)
        backup_path = backup_dir / f"wordbook_backup_{_timestamp_slug()}.json"
        backup_path.write_text(self.export_json(), encoding="utf-8")
        return backup_path
