"""
Caller-facing TTS operations: voices, engine status, single, batch and word audio.

Return values are plain dicts shaped the way the study front end consumes them
(camelCase keys, audio references relative to the audio URL prefix).
"""

import uuid
from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger

from utils.config import StudioConfig
from utils.errors import EngineUnavailableError, InvalidBatchError
from utils.jobs import check_texts, make_jobs, outcome_to_dict, word_audio_name
from utils.tts_utils import build_engine, clean_text, run_batch, synthesize_to_file
from utils.voices import DEFAULT_RATE, list_voices, validate_rate, validate_voice


class TTSService:
    def __init__(self, config: Optional[StudioConfig] = None, engine=None):
        self.config = config or StudioConfig()
        self.engine = engine if engine is not None else build_engine(self.config)

    @property
    def audio_dir(self) -> Path:
        return Path(self.config.audio_dir)

    def audio_ref(self, filename: str) -> str:
        return f"{self.config.audio_url_prefix.rstrip('/')}/{filename}"

    def list_voices(self) -> Dict[str, object]:
        return {
            "voices": [voice.to_dict() for voice in list_voices()],
            "default": self.config.default_voice,
        }

    def status(self) -> Dict[str, object]:
        available = self.engine.available()
        name = getattr(self.engine, "name", type(self.engine).__name__)
        if available:
            message = f"{name} is ready"
        else:
            message = f"{name} not found, install it with: pip install edge-tts"
        return {"available": available, "engine": name, "message": message}

    def _require_engine(self):
        if not self.engine.available():
            raise EngineUnavailableError("TTS engine is not installed, run: pip install edge-tts")

    async def generate(self, text: str, voice: Optional[str] = None, rate: str = DEFAULT_RATE) -> Dict[str, object]:
        """
        Generates one audio file under a fresh uuid4 name.
        """
        if not isinstance(text, str) or not clean_text(text):
            raise InvalidBatchError("text must be a non-empty string")
        option = validate_voice(voice or self.config.default_voice)
        validate_rate(rate)

        filename = f"{uuid.uuid4()}.{self.config.audio_extension}"
        self.audio_dir.mkdir(parents=True, exist_ok=True)
        await synthesize_to_file(
            self.engine, text, option.id, rate, self.audio_dir / filename, self.config.job_timeout
        )
        return {
            "success": True,
            "audioPath": self.audio_ref(filename),
            "text": text,
            "voice": option.name,
        }

    async def generate_batch(self, sentences: List[str], voice: Optional[str] = None,
                             rate: str = DEFAULT_RATE, batch_id: Optional[str] = None) -> Dict[str, object]:
        """
        Generates one audio file per sentence with the configured concurrency
        ceiling. Only malformed arguments or a missing engine fail the call;
        per-sentence failures are reported in `results`.
        """
        if sentences is None:
            raise InvalidBatchError("sentences must be a non-empty list of strings")
        texts = check_texts(sentences)
        if not texts:
            raise InvalidBatchError("sentences must be a non-empty list of strings")
        option = validate_voice(voice or self.config.default_voice)
        validate_rate(rate)
        self._require_engine()

        batch_id = batch_id or str(uuid.uuid4())
        outcome = await run_batch(
            make_jobs(texts, option.id, rate),
            self.engine,
            self.audio_dir,
            batch_id,
            concurrency_limit=self.config.max_concurrent,
            timeout=self.config.job_timeout,
            extension=self.config.audio_extension,
        )
        return outcome_to_dict(outcome, self.config.audio_url_prefix)

    async def generate_word(self, word: str, voice: Optional[str] = None) -> Dict[str, object]:
        """
        Pronunciation audio for a single word, generated once and reused.
        """
        if not isinstance(word, str) or not word.strip():
            raise InvalidBatchError("word must be a non-empty string")
        option = validate_voice(voice or self.config.default_voice)
        filename = word_audio_name(word, self.config.audio_extension)
        out_path = self.audio_dir / filename
        if out_path.exists() and out_path.stat().st_size > 0:
            return {"success": True, "audioPath": self.audio_ref(filename), "word": word, "cached": True}

        self.audio_dir.mkdir(parents=True, exist_ok=True)
        await synthesize_to_file(self.engine, word, option.id, DEFAULT_RATE, out_path, self.config.job_timeout)
        logger.info("Word audio ready: {}", filename)
        return {"success": True, "audioPath": self.audio_ref(filename), "word": word, "cached": False}
