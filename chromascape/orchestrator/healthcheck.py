"""Command-line entry point: list scripts, check zones, or run a script.

Usage::

    python -m chromascape --list
    python -m chromascape --zones
    python -m chromascape --script DemoMining
    python -m chromascape --install-profile

While a script runs, holding the hotkey chord (``=`` + ``-`` by default)
or pressing Ctrl+C stops it and shuts the controller down.
"""

from __future__ import annotations

import argparse
from pathlib import Path

from chromascape.agent.hotkey_listener import HotkeyListener
from chromascape.orchestrator.controller import Controller
from chromascape.orchestrator.engine import ScriptRunner
from chromascape.orchestrator.registry import RunConfig, scripts
from chromascape.orchestrator.statistics import stats
from chromascape.tools.visual_overlay import draw_zone_map, save_debug_frame
from chromascape.utils.client_profile import install_bot_profile
from chromascape.utils.errors import ChromaError
from chromascape.utils.logger import ChromaLogger

_log = ChromaLogger("Healthcheck")


def check_zones(controller: Controller, debug_dir: Path | None = None) -> int:
    """Bring the controller up, print the zone map, shut down.

    With *debug_dir* an annotated capture of every zone is saved there.
    """
    controller.init()
    try:
        zones = controller.zones()
        _log.highlight(f"layout: {'fixed' if zones.is_fixed else 'resizable'}")
        for group, mapping in (
            ("minimap", zones.minimap),
            ("ctrl panel", zones.ctrl_panel),
            ("chat", zones.chat_tabs),
            ("grid info", zones.grid_info),
        ):
            for name, rect in mapping.items():
                _log.info(f"{group:<10} {name:<18} {rect.as_tuple()}")
        for index, rect in enumerate(zones.inventory_slots):
            _log.info(f"{'inventory':<10} {'slot ' + str(index):<18} {rect.as_tuple()}")
        _log.info(f"{'mouse over':<10} {'':<18} {zones.mouse_over.as_tuple()}")
        if debug_dir is not None:
            grabber = controller.grabber()
            origin = grabber.canvas_origin()
            annotated = draw_zone_map(grabber.capture(), zones.zone_map, (origin.x, origin.y))
            _log.success(f"zone map saved to {save_debug_frame(annotated, debug_dir, 'zones')}")
    finally:
        controller.shutdown()
    return 0


def run_script(controller: Controller, name: str) -> int:
    script = scripts.resolve(RunConfig(name), controller)
    runner = ScriptRunner(script)
    hotkeys = HotkeyListener(on_chord=controller.pause)
    hotkeys.start()
    runner.start()
    try:
        while runner.is_alive:
            runner.join(0.5)
    except KeyboardInterrupt:
        _log.warn("interrupted by user. stopping script")
        runner.stop()
    finally:
        hotkeys.stop()
    snap = stats.snapshot()
    _log.success(
        f"run finished time={snap.duration} cycles={snap.cycles} "
        f"inputs={snap.inputs} objects={snap.objects_detected}"
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    # Importing the workflows package registers the bundled scripts.
    import chromascape.workflows  # noqa: F401

    parser = argparse.ArgumentParser(description="ChromaScape — colour-based game automation")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--list", action="store_true", help="List registered scripts")
    group.add_argument("--zones", action="store_true", help="Map UI zones and print them")
    group.add_argument("--script", type=str, default="", help="Run a registered script by name")
    group.add_argument(
        "--install-profile", action="store_true",
        help="Add the ChromaScape profile to RuneLite if it is missing",
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Record input events instead of sending them to the game",
    )
    parser.add_argument(
        "--debug-dir", type=Path, default=None,
        help="With --zones, save an annotated zone capture here",
    )
    args = parser.parse_args(argv)

    if args.list:
        for name in scripts.names():
            print(name)
        return 0

    if args.install_profile:
        try:
            install_bot_profile()
        except ChromaError as exc:
            _log.error(f"{type(exc).__name__}: {exc}")
            return 1
        return 0

    controller = Controller(dry_run=args.dry_run)
    try:
        if args.zones:
            return check_zones(controller, args.debug_dir)
        return run_script(controller, args.script)
    except ChromaError as exc:
        _log.error(f"{type(exc).__name__}: {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
