"""
Runtime configuration for exam-listening-studio.

Values are resolved in this order, later sources winning:
built-in defaults, an optional YAML file, then STUDIO_* environment variables.
"""

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from utils.errors import ConfigError
from utils.voices import DEFAULT_VOICE, VOICE_OPTIONS

ENV_PREFIX = "STUDIO_"
ENGINES = ("communicate", "command")


@dataclass(frozen=True)
class StudioConfig:
    audio_dir: Path = Path("public/audio")
    data_dir: Path = Path("data")
    default_voice: str = DEFAULT_VOICE
    max_concurrent: int = 5
    job_timeout: float = 60.0
    engine: str = "communicate"
    engine_command: str = "edge-tts"
    audio_extension: str = "mp3"
    audio_url_prefix: str = "/audio"
    log_level: str = "INFO"

    @property
    def wordbook_path(self) -> Path:
        return self.data_dir / "wordbook.json"

    @property
    def backup_dir(self) -> Path:
        return self.data_dir / "backups"

    def validate(self) -> "StudioConfig":
        if self.max_concurrent < 1:
            raise ConfigError("max_concurrent must be a positive integer")
        if self.job_timeout <= 0:
            raise ConfigError("job_timeout must be greater than zero")
        if self.engine not in ENGINES:
            raise ConfigError(f"engine must be one of {', '.join(ENGINES)}, got {self.engine!r}")
        if self.default_voice not in VOICE_OPTIONS:
            raise ConfigError(f"default_voice {self.default_voice!r} is not a known voice")
        if not self.engine_command.strip():
            raise ConfigError("engine_command must not be empty")
        return self

    def ensure_dirs(self) -> None:
        """Creates the audio and data directories if they are missing."""
        self.audio_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)


_FIELD_TYPES = {f.name: f.type for f in fields(StudioConfig)}


def _coerce(key: str, value: Any) -> Any:
    kind = _FIELD_TYPES[key]
    try:
        if kind is Path:
            return Path(str(value)).expanduser()
        if kind is int:
            if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
                raise ValueError(value)
            return int(value)
        if kind is float:
            return float(value)
        return str(value).strip()
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid value for {key}: {value!r}") from exc


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigError(f"config file not found: {path}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"config file {path} is not valid YAML: {exc}") from exc
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ConfigError(f"config file {path} must contain a mapping at the top level")
    unknown = sorted(set(payload) - set(_FIELD_TYPES))
    if unknown:
        raise ConfigError(f"unknown config keys in {path}: {', '.join(unknown)}")
    return payload


def load_config(path: Optional[Path] = None, env: Optional[Mapping[str, str]] = None) -> StudioConfig:
    """
    Builds a validated StudioConfig from defaults, an optional YAML file
    and STUDIO_* environment variables (e.g. STUDIO_MAX_CONCURRENT=3).
    """
    env_map = os.environ if env is None else env
    overrides: Dict[str, Any] = {}
    if path is not None:
        overrides.update(_read_yaml(Path(path)))
    for name in _FIELD_TYPES:
        raw = env_map.get(ENV_PREFIX + name.upper())
        if raw is not None and raw.strip():
            overrides[name] = raw
    values = {key: _coerce(key, value) for key, value in overrides.items()}
    return replace(StudioConfig(), **values).validate()
