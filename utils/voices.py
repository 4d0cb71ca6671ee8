"""
Voice catalogue and speech-rate validation.
"""

import re
from dataclasses import dataclass
from typing import Dict, List

from utils.errors import InvalidRateError, UnknownVoiceError


@dataclass(frozen=True)
class VoiceOption:
    id: str
    name: str
    gender: str
    locale: str

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "name": self.name, "gender": self.gender, "locale": self.locale}


_VOICES = [
    VoiceOption("en-US-JennyNeural", "English (US) – Jenny (Female, Neural)", "female", "en-US"),
    VoiceOption("en-US-GuyNeural", "English (US) – Guy (Male, Neural)", "male", "en-US"),
    VoiceOption("en-US-AriaNeural", "English (US) – Aria (Female, Natural)", "female", "en-US"),
    VoiceOption("en-US-DavisNeural", "English (US) – Davis (Male, Natural)", "male", "en-US"),
    VoiceOption("en-GB-SoniaNeural", "English (UK) – Sonia (Female, Neural)", "female", "en-GB"),
    VoiceOption("en-GB-RyanNeural", "English (UK) – Ryan (Male, Neural)", "male", "en-GB"),
    VoiceOption("en-AU-NatashaNeural", "English (Australia) – Natasha (Female, Neural)", "female", "en-AU"),
    VoiceOption("en-AU-WilliamNeural", "English (Australia) – William (Male, Neural)", "male", "en-AU"),
]

VOICE_OPTIONS: Dict[str, VoiceOption] = {voice.id: voice for voice in _VOICES}

# US female voice, the usual accent of CET/postgraduate listening sections
DEFAULT_VOICE = "en-US-JennyNeural"
DEFAULT_RATE = "+0%"

_RATE_PATTERN = re.compile(r"^[+-](\d{1,3})%$")


def list_voices() -> List[VoiceOption]:
    return list(_VOICES)


def validate_voice(voice: str) -> VoiceOption:
    """
    Returns the catalogue entry for voice, or raises UnknownVoiceError
    listing the ids that are available.
    """
    try:
        return VOICE_OPTIONS[voice]
    except (KeyError, TypeError):
        raise UnknownVoiceError(voice, VOICE_OPTIONS.keys())


def validate_rate(rate: str) -> str:
    """
    Accepts a signed percentage between -100% and +100% (edge-tts syntax).
    """
    match = _RATE_PATTERN.match(rate) if isinstance(rate, str) else None
    if not match or int(match.group(1)) > 100:
        raise InvalidRateError(rate)
    return rate
