from __future__ import annotations

import dataclasses
import json
from pathlib import Path

from .aggregate import FEED_LIMIT
from .branches import DEFAULT_BRANCH_PREFERENCES, parse_branch_preferences
from .git import DEFAULT_TIMEOUT_S


def load_config(config_path: Path) -> dict:
    if not config_path.exists():
        return {}
    data = json.loads(config_path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{config_path}: expected a JSON object at the top level")
    return data


def _positive_int(config: dict, key: str, default: int) -> int:
    raw = config.get(key, default)
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValueError(f"config {key!r} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"config {key!r} must be positive, got {value}")
    return value


@dataclasses.dataclass(frozen=True)
class Settings:
    branch_preferences: tuple[str, ...] = tuple(DEFAULT_BRANCH_PREFERENCES)
    recent_commit_limit: int = 20
    analysis_commit_limit: int = 500
    feed_limit: int = FEED_LIMIT
    git_timeout_s: int = DEFAULT_TIMEOUT_S
    author: str = ""

    @classmethod
    def from_config(cls, config: dict) -> "Settings":
        prefs = config.get("branch_preferences")
        if prefs is not None and not isinstance(prefs, (str, list)):
            raise ValueError(f"config 'branch_preferences' must be a string or list, got {prefs!r}")
        return cls(
            branch_preferences=tuple(parse_branch_preferences(prefs)),
            recent_commit_limit=_positive_int(config, "recent_commit_limit", 20),
            analysis_commit_limit=_positive_int(config, "analysis_commit_limit", 500),
            feed_limit=_positive_int(config, "feed_limit", FEED_LIMIT),
            git_timeout_s=_positive_int(config, "git_timeout_s", DEFAULT_TIMEOUT_S),
            author=str(config.get("author", "") or "").strip(),
        )


def load_settings(config_path: Path | None) -> Settings:
    if config_path is None:
        return Settings()
    return Settings.from_config(load_config(config_path))
