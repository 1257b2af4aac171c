"""RuneLite profile installer.

RuneLite lists its profiles in ``profiles.json`` and stores each one's
settings in ``<name>-<id>.properties`` beside it.  The bot relies on a
profile with its own plugin settings (grid info overlay, highlight
colours); :func:`install_bot_profile` adds it once and leaves every other
profile untouched.
"""

from __future__ import annotations

import json
import os
import shutil
import time
from pathlib import Path
from typing import Any, Callable

from chromascape.utils.config import ProfileConfig
from chromascape.utils.errors import AssetLoadError
from chromascape.utils.logger import ChromaLogger

_log = ChromaLogger("Profile")

PROFILES_FILE = "profiles.json"


def _now_ms() -> int:
    return int(time.time() * 1000)


def read_profiles(profiles_dir: Path) -> list[dict[str, Any]]:
    """Entries of ``profiles.json``; unknown fields are kept as-is."""
    path = profiles_dir / PROFILES_FILE
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except OSError as exc:
        raise AssetLoadError(f"could not read {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise AssetLoadError(f"{path} is not valid JSON: {exc}") from exc
    profiles = data.get("profiles") if isinstance(data, dict) else None
    if not isinstance(profiles, list):
        raise AssetLoadError(f"{path} has no profiles list")
    return profiles


def write_profiles(profiles_dir: Path, profiles: list[dict[str, Any]]) -> None:
    """Atomic write: temp file, then ``os.replace``."""
    path = profiles_dir / PROFILES_FILE
    temp_file = f"{path}.tmp"
    with open(temp_file, "w", encoding="utf-8") as fh:
        json.dump({"profiles": profiles}, fh)
    os.replace(temp_file, path)


def unique_id(profiles: list[dict[str, Any]], clock: Callable[[], int] = _now_ms) -> int:
    taken = {p.get("id") for p in profiles}
    profile_id = clock()
    while profile_id in taken:
        profile_id += 1
    return profile_id


def install_bot_profile(
    config: ProfileConfig | None = None,
    clock: Callable[[], int] = _now_ms,
) -> bool:
    """Add the bot profile to RuneLite if no profile carries its name.

    Returns ``True`` when a profile was installed, ``False`` when one
    already existed.  Raises :class:`AssetLoadError` when
    ``profiles.json`` or the template cannot be read.
    """
    config = config or ProfileConfig()
    profiles = read_profiles(config.profiles_dir)
    if any(p.get("name") == config.name for p in profiles):
        _log.info(f"{config.name} RuneLite profile already installed")
        return False

    if not config.template.is_file():
        raise AssetLoadError(f"profile template not found: {config.template}")
    _log.info(f"{config.name} RuneLite profile missing, installing...")
    profile_id = unique_id(profiles, clock)
    shutil.copyfile(config.template, config.profiles_dir / f"{config.name}-{profile_id}.properties")
    profiles.append({
        "id": profile_id,
        "name": config.name,
        "sync": False,
        "active": False,
        "rev": -1,
        "defaultForRsProfiles": [],
    })
    write_profiles(config.profiles_dir, profiles)
    _log.success(f"installed {config.name} profile {profile_id}")
    return True
