"""
Command registry: maps command paths to handlers.

Handlers are registered once at startup, then the registry is sealed and
only read from. Reads after sealing need no locking because the route
tables are never mutated again.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Callable

from .errors import RegistrationError
from .interactions import Action, InteractionEvent, InteractionKind

logger = logging.getLogger(__name__)

Handler = Callable[[InteractionEvent], Action]


class RegistryState(str, Enum):
    """Lifecycle of a command registry."""

    UNINITIALIZED = "uninitialized"
    REGISTERING = "registering"
    SEALED = "sealed"


def join_path(prefix: str, path: str) -> str:
    """
    Join route segments the way nested routes are declared.

    ``join_path("/wiki", "/")`` is ``"/wiki"``; ``join_path("/a", "/b")``
    is ``"/a/b"``.
    """
    segments = [s for s in f"{prefix}/{path}".split("/") if s]
    return "/" + "/".join(segments)


@dataclass(frozen=True)
class CommandRegistration:
    """Handlers bound to one command path."""

    path: str
    handler: Handler
    autocomplete: Handler | None = None


class RouteGroup:
    """Registers handlers under a shared path prefix."""

    def __init__(self, registry: "CommandRegistry", prefix: str):
        self.registry = registry
        self.prefix = prefix

    def command(self, path: str, handler: Handler) -> None:
        self.registry.command(join_path(self.prefix, path), handler)

    def autocomplete(self, path: str, handler: Handler) -> None:
        self.registry.autocomplete(join_path(self.prefix, path), handler)

    def route(self, prefix: str) -> "RouteGroup":
        return RouteGroup(self.registry, join_path(self.prefix, prefix))


class CommandRegistry:
    """
    Routes interaction events to handlers by exact command path.

    Registering the same path twice, or registering anything after the
    registry is sealed, raises ``RegistrationError``. The first dispatch
    seals the registry if ``seal()`` was not called explicitly.
    """

    def __init__(self):
        self.state = RegistryState.UNINITIALIZED
        self._commands: dict[str, Handler] = {}
        self._autocompletes: dict[str, Handler] = {}
        self._routes: MappingProxyType = MappingProxyType({})

    def _check_open(self, path: str) -> None:
        if self.state == RegistryState.SEALED:
            raise RegistrationError(f"cannot register {path}: registry is sealed")
        self.state = RegistryState.REGISTERING

    def command(self, path: str, handler: Handler) -> None:
        """Register the handler invoked when ``path`` is submitted."""
        path = join_path(path, "")
        self._check_open(path)
        if path in self._commands:
            raise RegistrationError(f"command {path} is already registered")
        self._commands[path] = handler

    def autocomplete(self, path: str, handler: Handler) -> None:
        """Register the handler invoked while an option of ``path`` is typed."""
        path = join_path(path, "")
        self._check_open(path)
        if path in self._autocompletes:
            raise RegistrationError(f"autocomplete for {path} is already registered")
        self._autocompletes[path] = handler

    def route(self, prefix: str) -> RouteGroup:
        """Group registrations under ``prefix``."""
        return RouteGroup(self, prefix)

    def seal(self) -> None:
        """Freeze the route table. Sealing twice is a no-op."""
        if self.state == RegistryState.SEALED:
            return

        orphans = sorted(set(self._autocompletes) - set(self._commands))
        if orphans:
            raise RegistrationError(f"autocomplete without a command: {', '.join(orphans)}")

        self._routes = MappingProxyType(
            {
                path: CommandRegistration(
                    path=path,
                    handler=handler,
                    autocomplete=self._autocompletes.get(path),
                )
                for path, handler in self._commands.items()
            }
        )
        self.state = RegistryState.SEALED
        logger.info(f"Command registry sealed with {len(self._routes)} command(s)")

    @property
    def routes(self) -> MappingProxyType:
        """Sealed path → registration table (empty until sealed)."""
        return self._routes

    def resolve(self, event: InteractionEvent) -> Handler | None:
        """Find the handler for an event, or None when nothing is registered."""
        registration = self._routes.get(event.path)
        if registration is None:
            return None
        if event.kind == InteractionKind.AUTOCOMPLETE:
            return registration.autocomplete
        return registration.handler

    def dispatch(self, event: InteractionEvent) -> Action | None:
        """
        Run the handler registered for the event's path.

        The handler's action is passed to ``event.respond`` (when set) and
        returned. Unknown paths return None; answering those is left to
        the caller.
        """
        if self.state != RegistryState.SEALED:
            self.seal()

        handler = self.resolve(event)
        if handler is None:
            logger.warning(f"No {event.kind.name.lower()} handler for {event.path}")
            return None

        action = handler(event)
        if event.respond is not None:
            event.respond(action)
        return action
