from __future__ import annotations

import cv2
import numpy as np
import pytest

from chromascape.tools.compass import CompassReader, mssim
from chromascape.tools.geometry import Rectangle
from chromascape.tools.visual_overlay import draw_rectangles, preview_mask, save_debug_frame
from chromascape.utils.chroma_config import ChromaConfig
from chromascape.utils.config import InjectorConfig, ScriptConfig, WindowConfig
from chromascape.utils.errors import AssetLoadError, EmptyImage
from chromascape.utils.imaging import load_resource_image, resolve_resource, to_bgr, to_bgra
from chromascape.utils.logger import ChromaLogger, set_log_sink


def _write_yaml(tmp_path) -> ChromaConfig:
    path = tmp_path / "config.yaml"
    path.write_text(
        "window:\n"
        "  title: OldSchool\n"
        "  child_index: 3\n"
        "script:\n"
        "  max_runtime_seconds: 12.5\n"
        "injector:\n"
        "  cleanup_enabled: false\n"
        "  module_files: [a.dll, b.dll]\n",
        encoding="utf-8",
    )
    return ChromaConfig(path)


def test_yaml_values_are_read(tmp_path) -> None:
    config = _write_yaml(tmp_path)

    assert config.get_str("window.title") == "OldSchool"
    assert config.get_int("window.child_index") == 3
    assert config.get_float("script.max_runtime_seconds") == 12.5
    assert config.get_bool("injector.cleanup_enabled", True) is False
    assert config.get_list("injector.module_files") == ["a.dll", "b.dll"]
    assert config.get_str("window.missing", "fallback") == "fallback"


def test_environment_wins_over_yaml(tmp_path, monkeypatch) -> None:
    config = _write_yaml(tmp_path)
    monkeypatch.setenv("CHROMA_WINDOW_TITLE", "RuneLite - Tester")
    monkeypatch.setenv("CHROMA_WINDOW_CHILD_INDEX", "not-a-number")
    monkeypatch.setenv("CHROMA_INJECTOR_MODULE_FILES", "x.dll, y.dll")

    assert config.get_str("window.title") == "RuneLite - Tester"
    assert config.get_int("window.child_index") == 3
    assert config.get_list("injector.module_files") == ["x.dll", "y.dll"]


def test_missing_file_uses_defaults(tmp_path) -> None:
    config = ChromaConfig(tmp_path / "absent.yaml")

    assert config.get_int("window.child_index", 2) == 2
    assert config.get_dict("window") == {}


def test_dataclasses_resolve_at_construction(monkeypatch) -> None:
    monkeypatch.setenv("CHROMA_WINDOW_CHILD_CLASS", "CustomCanvas")
    monkeypatch.setenv("CHROMA_SCRIPT_MAX_CYCLE_DELAY_MS", "450")
    monkeypatch.setenv("CHROMA_INJECTOR_CLEANUP_DELAY_SECONDS", "5")

    assert WindowConfig().child_class == "CustomCanvas"
    assert ScriptConfig().max_cycle_delay_ms == 450
    injector = InjectorConfig(library_dir="/opt/kinput")
    assert injector.cleanup_delay_seconds == 5
    assert [p.name for p in injector.module_paths()] == list(injector.module_files)


# ── Imaging ───────────────────────────────────────────────────────


def test_resource_paths_strip_leading_slash(tmp_path) -> None:
    assert resolve_resource(tmp_path, "/images/ui/inv.png") == tmp_path / "images" / "ui" / "inv.png"


def test_load_resource_image(tmp_path) -> None:
    image = np.full((4, 6, 3), 120, dtype=np.uint8)
    cv2.imwrite(str(tmp_path / "grey.png"), image)

    assert np.array_equal(load_resource_image(tmp_path, "grey.png"), image)
    with pytest.raises(AssetLoadError):
        load_resource_image(tmp_path, "missing.png")


def test_channel_conversions() -> None:
    grey = np.zeros((3, 3), dtype=np.uint8)

    assert to_bgra(grey).shape == (3, 3, 4)
    assert to_bgr(grey).shape == (3, 3, 3)
    assert to_bgr(to_bgra(grey)).shape == (3, 3, 3)


# ── Compass ───────────────────────────────────────────────────────


def _arrow(angle: int) -> np.ndarray:
    image = np.zeros((24, 24, 3), dtype=np.uint8)
    rad = np.deg2rad(angle)
    end = (int(12 + 10 * np.sin(rad)), int(12 - 10 * np.cos(rad)))
    cv2.line(image, (12, 12), end, (255, 255, 255), 2)
    return image


def test_mssim_of_identical_images_is_one() -> None:
    image = _arrow(45)

    assert mssim(image, image) == pytest.approx(1.0)
    assert mssim(image, _arrow(225)) < mssim(image, image)


def test_compass_picks_best_angle() -> None:
    reader = CompassReader({deg: _arrow(deg) for deg in (0, 45, 90, 135, 180, 225, 270, 315)})

    assert reader.angle(_arrow(135)) == 135
    assert reader.angle(_arrow(270)) == 270


def test_compass_prefers_cardinal_on_tie() -> None:
    same = _arrow(0)
    reader = CompassReader({7: same, 0: same})

    assert reader.angle(same) == 0


def test_empty_compass_library_raises() -> None:
    with pytest.raises(EmptyImage):
        CompassReader({})


# ── Overlay helpers ───────────────────────────────────────────────


def test_draw_rectangles_leaves_input_untouched() -> None:
    frame = np.zeros((50, 50, 3), dtype=np.uint8)

    out = draw_rectangles(frame, {"slot": Rectangle(110, 210, 10, 10)}, origin=(100, 200))

    assert frame.max() == 0
    assert out[10, 10].any()


def test_preview_mask_keeps_masked_pixels(tmp_path) -> None:
    frame = np.full((10, 10, 3), 80, dtype=np.uint8)
    mask = np.zeros((10, 10), dtype=np.uint8)
    mask[2:4, 2:4] = 255

    out = preview_mask(frame, mask)
    path = save_debug_frame(out, tmp_path / "debug", "preview")

    assert out[3, 3].tolist() == [80, 80, 80]
    assert out[8, 8].tolist() == [0, 0, 0]
    assert path.exists()


# ── Logger ────────────────────────────────────────────────────────


def test_log_lines_reach_the_sink() -> None:
    lines: list[str] = []
    set_log_sink(lines.append)
    try:
        ChromaLogger("Zones").warn("anchor missing")
        ChromaLogger("Zones").status("retrying")
    finally:
        set_log_sink(None)

    assert lines[0].endswith("[Zones] ! anchor missing")
    assert lines[1].endswith("[Zones] retrying")


def test_failing_sink_does_not_raise() -> None:
    def sink(_line: str) -> None:
        raise RuntimeError("socket closed")

    set_log_sink(sink)
    try:
        ChromaLogger("Script").info("still running")
    finally:
        set_log_sink(None)
