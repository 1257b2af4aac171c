from .controller import Controller, ControllerState
from .engine import BaseScript, ScriptRunner
from .registry import RunConfig, ScriptRegistry, register_script, scripts

__all__ = [
    "BaseScript",
    "Controller",
    "ControllerState",
    "RunConfig",
    "ScriptRegistry",
    "ScriptRunner",
    "register_script",
    "scripts",
]
