"""Settings loading and object wiring for callers embedding the summarizer."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

import yaml

from .history.backends import FileBackend
from .history.store import HistoryStore
from .summaries.inference_client import (
    DEFAULT_BASE_URL,
    DEFAULT_PRIMARY_MODEL,
    DEFAULT_SECONDARY_MODEL,
    AuthenticationError,
    RemoteSummarizationClient,
)
from .summaries.service import SummarizationOrchestrator

_SETTINGS_KEYS = {"base_url", "primary_model", "secondary_model", "history_dir"}


class ConfigError(ValueError):
    """Raised when the settings file cannot be used."""


@dataclass(frozen=True)
class Settings:
    api_key: Optional[str]
    base_url: str = DEFAULT_BASE_URL
    primary_model: str = DEFAULT_PRIMARY_MODEL
    secondary_model: str = DEFAULT_SECONDARY_MODEL
    history_dir: Path = Path("~/.local/share/summarizemate").expanduser()


def get_config_dir() -> Path:
    return Path("~/.config/summarizemate").expanduser()


def get_config_path() -> Path:
    override = os.getenv("SUMMARIZEMATE_CONFIG")
    if override and override.strip():
        return Path(override.strip()).expanduser()
    return get_config_dir() / "config.yaml"


def load_api_key() -> Optional[str]:
    env_key = os.getenv("HUGGING_FACE_API_KEY")
    if env_key and env_key.strip():
        return env_key.strip()

    key_path = get_config_dir() / "key"
    try:
        contents = key_path.read_text(encoding="utf-8").strip()
    except OSError:
        return None
    return contents or None


def read_config_file(path: Path) -> Mapping[str, Any]:
    """Parse the YAML settings file; a missing file means defaults."""
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as exc:
        raise ConfigError(f"Could not read settings file {path}: {exc}") from exc

    try:
        data = yaml.safe_load(raw) if raw.strip() else {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Settings file {path} is not valid YAML: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {path} must contain a mapping")

    unknown = set(data) - _SETTINGS_KEYS
    if unknown:
        raise ConfigError(f"Unknown settings in {path}: {', '.join(sorted(unknown))}")
    return data


def load_settings(config_path: Optional[Path] = None) -> Settings:
    file_settings = dict(read_config_file(config_path or get_config_path()))

    base_url = os.getenv("SUMMARIZEMATE_API_BASE") or file_settings.get("base_url") or DEFAULT_BASE_URL
    history_dir = os.getenv("SUMMARIZEMATE_HISTORY_DIR") or file_settings.get("history_dir")
    return Settings(
        api_key=load_api_key(),
        base_url=str(base_url),
        primary_model=str(file_settings.get("primary_model") or DEFAULT_PRIMARY_MODEL),
        secondary_model=str(file_settings.get("secondary_model") or DEFAULT_SECONDARY_MODEL),
        history_dir=Path(history_dir).expanduser() if history_dir else Settings.history_dir,
    )


def build_inference_client(settings: Settings) -> RemoteSummarizationClient:
    if not settings.api_key:
        raise AuthenticationError(
            "Hugging Face API key not found. Set HUGGING_FACE_API_KEY or place a key in ~/.config/summarizemate/key."
        )
    return RemoteSummarizationClient(
        api_key=settings.api_key,
        base_url=settings.base_url,
        primary_model=settings.primary_model,
        secondary_model=settings.secondary_model,
    )


def create_history_store(settings: Settings) -> HistoryStore:
    return HistoryStore(FileBackend(settings.history_dir))


def create_summarizer(
    settings: Optional[Settings] = None,
) -> Tuple[SummarizationOrchestrator, HistoryStore, RemoteSummarizationClient]:
    settings = settings or load_settings()
    client = build_inference_client(settings)
    store = create_history_store(settings)
    orchestrator = SummarizationOrchestrator(client, store)
    return orchestrator, store, client
