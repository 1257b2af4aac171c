"""Chroma Config — centralised loader for ``config.yaml``.

Reads ``config.yaml`` from the project root and exposes every setting
through dotted keys.  ``CHROMA_*`` environment variables **always win**
over the YAML; the file is the friendly fallback.

Usage::

    from chromascape.utils.chroma_config import cfg

    cfg.get_str("window.title")              # "RuneLite"
    cfg.get_bool("injector.cleanup_enabled")  # True

Environment equivalent of ``window.title`` is ``CHROMA_WINDOW_TITLE``.

Loading is lazy (first access) and thread-safe.
"""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Any, Callable

import yaml

from chromascape.utils.logger import ChromaLogger

_log = ChromaLogger("Config")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _find_config_path() -> Path:
    """Resolve ``config.yaml`` walking up from this module to the project root."""
    env_path = os.getenv("CHROMA_CONFIG_FILE", "").strip()
    if env_path:
        return Path(env_path)

    start = Path(__file__).resolve().parent
    for ancestor in [start, start.parent, start.parent.parent, Path.cwd()]:
        candidate = ancestor / "config.yaml"
        if candidate.exists():
            return candidate
    return start.parent.parent / "config.yaml"


class ChromaConfig:
    """Settings access with env > yaml > default priority."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._data: dict[str, Any] = {}
        self._loaded: bool = False
        self._lock = threading.Lock()

    # ── Lazy loading ──────────────────────────────────────────────

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        with self._lock:
            if self._loaded:
                return
            self._load()
            self._loaded = True

    def _load(self) -> None:
        config_path = self._path or _find_config_path()
        if not config_path.exists():
            self._data = {}
            return
        try:
            with open(config_path, "r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh)
        except (OSError, yaml.YAMLError) as exc:
            _log.warn(f"could not read {config_path}: {exc}")
            raw = None
        self._data = raw if isinstance(raw, dict) else {}

    def reload(self) -> None:
        """Force a re-read of the file."""
        with self._lock:
            self._loaded = False
            self._load()
            self._loaded = True

    # ── Dotted-key access ─────────────────────────────────────────

    def _resolve(self, dotted_key: str) -> Any:
        self._ensure_loaded()
        node: Any = self._data
        for part in dotted_key.split("."):
            if not isinstance(node, dict):
                return None
            node = node.get(part)
        return node

    @staticmethod
    def _env_key(dotted_key: str) -> str:
        """``window.child_class`` → ``CHROMA_WINDOW_CHILD_CLASS``."""
        return "CHROMA_" + dotted_key.upper().replace(".", "_")

    def _pick(self, key: str, parse: Callable[[Any], Any], default: Any) -> Any:
        """First value *parse* accepts: env var, then YAML, then *default*.

        *parse* raises ``ValueError``/``TypeError`` to reject a value.
        """
        candidates = [os.getenv(self._env_key(key), "").strip() or None, self._resolve(key)]
        for value in candidates:
            if value is None:
                continue
            try:
                return parse(value)
            except (ValueError, TypeError):
                continue
        return default

    # ── Typed getters ─────────────────────────────────────────────

    def get_str(self, key: str, default: str = "") -> str:
        return self._pick(key, str, default)

    def get_int(self, key: str, default: int = 0) -> int:
        return self._pick(key, int, default)

    def get_float(self, key: str, default: float = 0.0) -> float:
        return self._pick(key, float, default)

    def get_bool(self, key: str, default: bool = False) -> bool:
        return self._pick(key, _parse_bool, default)

    def get_list(self, key: str, default: list[Any] | None = None) -> list[Any]:
        """Lists come from YAML, or from a comma-separated env value."""
        return self._pick(key, _parse_list, list(default) if default is not None else [])

    def get_dict(self, key: str) -> dict[str, Any]:
        section = self._resolve(key)
        return dict(section) if isinstance(section, dict) else {}

    def __repr__(self) -> str:
        self._ensure_loaded()
        return f"<ChromaConfig sections={list(self._data.keys())}>"


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _parse_list(value: Any) -> list[Any]:
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    raise TypeError(f"not a list: {value!r}")


# ── Global singleton ─────────────────────────────────────────────
cfg = ChromaConfig()
