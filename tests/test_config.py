"""
Tests for configuration loading and voice/rate validation.
"""

from pathlib import Path

import pytest

from utils.config import StudioConfig, load_config
from utils.errors import ConfigError, InvalidRateError, UnknownVoiceError
from utils.voices import validate_rate, validate_voice


def test_defaults():
    config = load_config(env={})
    assert config == StudioConfig()
    assert config.max_concurrent == 5
    assert config.job_timeout == 60.0
    assert config.wordbook_path == Path("data/wordbook.json")


def test_yaml_then_environment(tmp_path):
    path = tmp_path / "studio.yaml"
    path.write_text("max_concurrent: 3\njob_timeout: 20\naudio_dir: ~/listening\nengine: command\n", encoding="utf-8")

    config = load_config(path, env={"STUDIO_MAX_CONCURRENT": "8", "STUDIO_DEFAULT_VOICE": "en-GB-RyanNeural"})

    assert config.max_concurrent == 8
    assert config.job_timeout == 20.0
    assert config.engine == "command"
    assert config.default_voice == "en-GB-RyanNeural"
    assert config.audio_dir == Path("~/listening").expanduser()


def test_empty_yaml_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(path, env={}) == StudioConfig()


@pytest.mark.parametrize("env", [
    {"STUDIO_MAX_CONCURRENT": "0"},
    {"STUDIO_MAX_CONCURRENT": "many"},
    {"STUDIO_JOB_TIMEOUT": "-1"},
    {"STUDIO_ENGINE": "festival"},
    {"STUDIO_DEFAULT_VOICE": "en-US-Nobody"},
])
def test_invalid_values(env):
    with pytest.raises(ConfigError):
        load_config(env=env)


def test_unknown_yaml_key(tmp_path):
    path = tmp_path / "studio.yaml"
    path.write_text("max_concurency: 3\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="max_concurency"):
        load_config(path, env={})


def test_missing_and_malformed_yaml(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "missing.yaml", env={})
    bad = tmp_path / "bad.yaml"
    bad.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(bad, env={})


def test_ensure_dirs(tmp_path):
    config = StudioConfig(audio_dir=tmp_path / "public" / "audio", data_dir=tmp_path / "data")
    config.ensure_dirs()
    assert config.audio_dir.is_dir()
    assert config.data_dir.is_dir()


@pytest.mark.parametrize("rate", ["+0%", "-20%", "+100%", "-100%"])
def test_valid_rates(rate):
    assert validate_rate(rate) == rate


@pytest.mark.parametrize("rate", ["0%", "+10", "fast", "+101%", None, "+-5%"])
def test_invalid_rates(rate):
    with pytest.raises(InvalidRateError):
        validate_rate(rate)


def test_validate_voice():
    assert validate_voice("en-AU-WilliamNeural").locale == "en-AU"
    with pytest.raises(UnknownVoiceError):
        validate_voice("en-US-Nobody")


def test_fractional_integer_setting_is_rejected(tmp_path):
    path = tmp_path / "studio.yaml"
    path.write_text("max_concurrent: 2.9\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="max_concurrent"):
        load_config(path, env={})
    path.write_text("max_concurrent: 3.0\n", encoding="utf-8")
    assert load_config(path, env={}).max_concurrent == 3
