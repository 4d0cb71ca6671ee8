"""
Job, JobResult and BatchOutcome records for batch audio generation.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from utils.errors import InvalidBatchError
from utils.voices import DEFAULT_RATE, DEFAULT_VOICE

EMPTY_TEXT_ERROR = "empty text"


@dataclass(frozen=True)
class Job:
    index: int
    text: str
    voice: str = DEFAULT_VOICE
    rate: str = DEFAULT_RATE

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()


@dataclass(frozen=True)
class JobResult:
    index: int
    text: str
    success: bool
    audio_path: Optional[Path] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, job: Job, audio_path: Path) -> "JobResult":
        return cls(index=job.index, text=job.text.strip(), success=True, audio_path=Path(audio_path))

    @classmethod
    def failed(cls, job: Job, error: str) -> "JobResult":
        return cls(index=job.index, text=job.text.strip(), success=False, error=error)


@dataclass(frozen=True)
class BatchOutcome:
    batch_id: str
    results: tuple

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def success_count(self) -> int:
        return sum(1 for result in self.results if result.success)


def make_jobs(texts: Iterable[str], voice: str = DEFAULT_VOICE, rate: str = DEFAULT_RATE) -> List[Job]:
    """
    Creates one Job per text, indexed by position in the input.
    """
    return [Job(index=i, text=text, voice=voice, rate=rate) for i, text in enumerate(texts)]


def artifact_name(batch_id: str, index: int, extension: str = "mp3") -> str:
    """
    File name for the job at 0-based index: {batch_id}_{index+1:03d}.{extension}
    """
    return f"{batch_id}_{index + 1:03d}.{extension}"


def safe_word(word: str) -> str:
    return re.sub(r"[^a-z0-9]", "_", word.lower())


def word_audio_name(word: str, extension: str = "mp3") -> str:
    return f"word_{safe_word(word)}.{extension}"


def result_to_dict(result: JobResult, audio_url_prefix: Optional[str] = None) -> Dict[str, object]:
    audio_ref = None
    if result.audio_path is not None:
        audio_ref = str(result.audio_path)
        if audio_url_prefix is not None:
            audio_ref = f"{audio_url_prefix.rstrip('/')}/{result.audio_path.name}"
    return {
        "index": result.index,
        "text": result.text,
        "audioPath": audio_ref,
        "success": result.success,
        "error": result.error,
    }


def outcome_to_dict(outcome: BatchOutcome, audio_url_prefix: Optional[str] = None) -> Dict[str, object]:
    return {
        "success": True,
        "batchId": outcome.batch_id,
        "total": outcome.total,
        "successCount": outcome.success_count,
        "results": [result_to_dict(r, audio_url_prefix) for r in outcome.results],
    }


def check_texts(texts: Sequence[str]) -> List[str]:
    """Raises InvalidBatchError unless texts is a list/tuple of strings."""
    if isinstance(texts, (str, bytes)) or not isinstance(texts, (list, tuple)):
        raise InvalidBatchError("sentences must be a list of strings")
    for item in texts:
        if not isinstance(item, str):
            raise InvalidBatchError(f"sentence entries must be strings, got {type(item).__name__}")
    return list(texts)
