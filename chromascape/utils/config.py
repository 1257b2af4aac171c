"""Runtime configuration dataclasses.

Each dataclass reads its defaults from :data:`chromascape.utils.chroma_config.cfg`
(``CHROMA_*`` env first, then ``config.yaml``) at construction time.
Override individual fields when constructing from code (e.g. in tests).

NOTE: every field uses ``default_factory`` so values are resolved at
**instantiation** time, which keeps ``monkeypatch.setenv`` effective.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from chromascape.utils.chroma_config import cfg

PACKAGE_DIR = Path(__file__).resolve().parent.parent
DEFAULT_RESOURCE_ROOT = PACKAGE_DIR / "resources"


@dataclass(slots=True)
class WindowConfig:
    """Where to find the game client and its drawing canvas."""

    title: str = field(default_factory=lambda: cfg.get_str("window.title", "RuneLite"))
    child_class: str = field(default_factory=lambda: cfg.get_str("window.child_class", "SunAwtCanvas"))
    # 1-based position among children of ``child_class``
    child_index: int = field(default_factory=lambda: cfg.get_int("window.child_index", 2))


@dataclass(slots=True)
class InjectorConfig:
    """Native input-injection module settings."""

    library_dir: str = field(default_factory=lambda: cfg.get_str("injector.library_dir", "."))
    control_library: str = field(default_factory=lambda: cfg.get_str("injector.control_library", "KInputCtrl64.dll"))
    module_files: tuple[str, ...] = field(
        default_factory=lambda: tuple(
            cfg.get_list("injector.module_files", ["KInputCtrl64.dll", "KInput64.dll"])
        )
    )
    cleanup_enabled: bool = field(default_factory=lambda: cfg.get_bool("injector.cleanup_enabled", True))
    cleanup_delay_seconds: int = field(default_factory=lambda: cfg.get_int("injector.cleanup_delay_seconds", 2))

    def module_paths(self) -> list[Path]:
        base = Path(self.library_dir)
        return [base / name for name in self.module_files]


@dataclass(slots=True)
class HotkeyConfig:
    """Pause chord: every key must be held at the same time."""

    chord: tuple[str, ...] = field(
        default_factory=lambda: tuple(str(k) for k in cfg.get_list("hotkey.chord", ["=", "-"]))
    )


@dataclass(slots=True)
class ResourceConfig:
    """Root directory holding ``fonts/`` and ``images/``."""

    root: Path = field(
        default_factory=lambda: Path(cfg.get_str("resources.root", str(DEFAULT_RESOURCE_ROOT)))
    )
    prewarm_fonts: tuple[str, ...] = field(
        default_factory=lambda: tuple(
            cfg.get_list("resources.prewarm_fonts", ["Plain 11", "Plain 12", "Bold 12"])
        )
    )


@dataclass(slots=True)
class CaptureConfig:
    """Frame source: ``window`` (canvas DC copy) or ``screen`` (composited, via mss)."""

    backend: str = field(default_factory=lambda: cfg.get_str("capture.backend", "window").strip().lower())


@dataclass(slots=True)
class ScriptConfig:
    """Cooperative loop pacing.  ``max_runtime_seconds=0`` disables the cap."""

    min_cycle_delay_ms: int = field(default_factory=lambda: cfg.get_int("script.min_cycle_delay_ms", 100))
    max_cycle_delay_ms: int = field(default_factory=lambda: cfg.get_int("script.max_cycle_delay_ms", 300))
    max_runtime_seconds: float = field(default_factory=lambda: cfg.get_float("script.max_runtime_seconds", 0.0))


@dataclass(slots=True)
class OverlayConfig:
    """Cursor overlay window."""

    enabled: bool = field(default_factory=lambda: cfg.get_bool("overlay.enabled", True))
    dot_radius: int = field(default_factory=lambda: cfg.get_int("overlay.dot_radius", 3))
    color: str = field(default_factory=lambda: cfg.get_str("overlay.color", "#ff1744"))


@dataclass(slots=True)
class ProfileConfig:
    """RuneLite profile store and the bundled bot profile template."""

    profiles_dir: Path = field(
        default_factory=lambda: Path(
            cfg.get_str("profile.profiles_dir", str(Path.home() / ".runelite" / "profiles2"))
        ).expanduser()
    )
    name: str = field(default_factory=lambda: cfg.get_str("profile.name", "ChromaScape"))
    template: Path = field(
        default_factory=lambda: Path(
            cfg.get_str("profile.template", str(DEFAULT_RESOURCE_ROOT / "profiles" / "ChromaScape.properties"))
        )
    )
