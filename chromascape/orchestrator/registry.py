"""Script registry — name → factory lookup for runnable scripts.

Scripts register themselves with :func:`register_script`; launchers
resolve a :class:`RunConfig` through :data:`scripts` instead of loading
classes by name at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from chromascape.utils.errors import InvalidArgument

ScriptFactory = Callable[..., Any]


@dataclass(frozen=True, slots=True)
class RunConfig:
    """Launch request; ``script`` is a registered name (``"DemoMining"``)."""

    script: str


@dataclass(slots=True)
class ScriptRegistry:
    """Named-script container.

    Attributes:
        factories: Registered factories ``(controller, **kwargs) -> BaseScript``.
    """

    factories: dict[str, ScriptFactory] = field(default_factory=dict)

    def register(self, name: str, factory: ScriptFactory) -> None:
        """Store *factory* under *name*; names are unique."""
        if name in self.factories:
            raise InvalidArgument(f"script {name!r} already registered")
        self.factories[name] = factory

    def names(self) -> list[str]:
        return sorted(self.factories)

    def create(self, name: str, controller: Any, **kwargs: Any) -> Any:
        """Instantiate the script registered under *name*."""
        try:
            factory = self.factories[name]
        except KeyError:
            raise InvalidArgument(
                f"unknown script {name!r} (available: {', '.join(self.names()) or 'none'})"
            ) from None
        return factory(controller, **kwargs)

    def resolve(self, config: RunConfig, controller: Any, **kwargs: Any) -> Any:
        return self.create(config.script.strip(), controller, **kwargs)


scripts = ScriptRegistry()


def register_script(name: str) -> Callable[[ScriptFactory], ScriptFactory]:
    """Class decorator adding a script to :data:`scripts`."""

    def _decorate(factory: ScriptFactory) -> ScriptFactory:
        scripts.register(name, factory)
        return factory

    return _decorate
