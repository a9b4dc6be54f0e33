from __future__ import annotations

import json
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from parley.errors import ConfigError

DEFAULT_CONFIG_FILE = "parley.json"
DEFAULT_MODEL = "gpt-3.5-turbo"


def config_path() -> str:
    return os.getenv("PARLEY_CONFIG") or DEFAULT_CONFIG_FILE


@lru_cache(maxsize=4)
def load_config(path: str = DEFAULT_CONFIG_FILE) -> Dict[str, Any]:
    """
    Read the optional JSON config file. A missing file is an empty config;
    a malformed one is a configuration error.
    """
    p = Path(path)
    if not p.exists():
        return {}
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Unable to read config file {p}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {p} must contain a JSON object")
    return data


def _get(cfg: Dict[str, Any], *path: str, default: Any = None) -> Any:
    cur: Any = cfg
    for k in path:
        if not isinstance(cur, dict) or k not in cur:
            return default
        cur = cur[k]
    return cur


def _optional_str(v: Any) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def llm_model_name(cfg: Dict[str, Any]) -> str:
    return _optional_str(_get(cfg, "llm", "model_name")) or DEFAULT_MODEL


def llm_base_url(cfg: Dict[str, Any]) -> Optional[str]:
    return _optional_str(os.getenv("OPENAI_BASE_URL")) or _optional_str(_get(cfg, "llm", "base_url"))


def session_file(cfg: Dict[str, Any]) -> Optional[str]:
    return _optional_str(_get(cfg, "session", "file"))


def session_fsync(cfg: Dict[str, Any]) -> bool:
    return bool(_get(cfg, "session", "fsync", default=False))


def transcript_file(cfg: Dict[str, Any]) -> Optional[str]:
    return _optional_str(_get(cfg, "transcript", "file"))


def history_file(cfg: Dict[str, Any]) -> Path:
    v = _optional_str(_get(cfg, "cli", "history_file"))
    if v:
        return Path(v).expanduser()
    return Path.home() / ".parley_history"


@dataclass(frozen=True)
class Settings:
    """Everything the driver and the completion provider need, resolved once at startup."""

    api_key: str
    model: str
    base_url: Optional[str] = None
    session_path: Optional[Path] = None
    transcript_path: Optional[Path] = None
    system_prompt: Optional[str] = None
    history_path: Optional[Path] = None
    fsync: bool = False


def resolve_settings(
    *,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    session: Optional[str] = None,
    transcript: Optional[str] = None,
    system_prompt: Optional[str] = None,
    fsync: bool = False,
    cfg: Optional[Dict[str, Any]] = None,
) -> Settings:
    """
    Merge CLI values over the config file and environment.

    Precedence for the credential: explicit value, then OPENAI_API_KEY.
    """
    if cfg is None:
        cfg = load_config(config_path())

    key = _optional_str(api_key) or _optional_str(os.getenv("OPENAI_API_KEY"))
    if not key:
        raise ConfigError("OpenAI API key not set (use --api-key or OPENAI_API_KEY)")

    session_value = _optional_str(session) or session_file(cfg)
    transcript_value = _optional_str(transcript) or transcript_file(cfg)

    return Settings(
        api_key=key,
        model=_optional_str(model) or llm_model_name(cfg),
        base_url=llm_base_url(cfg),
        session_path=Path(session_value).expanduser() if session_value else None,
        transcript_path=Path(transcript_value).expanduser() if transcript_value else None,
        system_prompt=_optional_str(system_prompt),
        history_path=history_file(cfg),
        fsync=fsync or session_fsync(cfg),
    )
