"""
Incoming interaction events and outgoing response actions.

Events are parsed from the platform's interaction JSON; actions serialise
back to interaction callback bodies. Nothing here talks to the network.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable

from .embeds import Embed
from .models import Suggestion

EPHEMERAL_FLAG = 1 << 6


class InteractionKind(IntEnum):
    """Interaction types we handle."""

    PING = 1
    COMMAND = 2
    AUTOCOMPLETE = 4


class CallbackType(IntEnum):
    """Interaction callback types."""

    PONG = 1
    CHANNEL_MESSAGE = 4
    AUTOCOMPLETE_RESULT = 8


class OptionType(IntEnum):
    SUB_COMMAND = 1
    SUB_COMMAND_GROUP = 2
    STRING = 3


@dataclass
class MessageResponse:
    """Reply to a command with a single message."""

    content: str | None = None
    embeds: list[Embed] = field(default_factory=list)
    ephemeral: bool = True

    def to_callback(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.content:
            data["content"] = self.content
        if self.embeds:
            data["embeds"] = [e.to_dict() for e in self.embeds]
        if self.ephemeral:
            data["flags"] = EPHEMERAL_FLAG
        return {"type": CallbackType.CHANNEL_MESSAGE.value, "data": data}


@dataclass
class AutocompleteResult:
    """Reply to an autocomplete request with a list of choices."""

    choices: list[Suggestion] = field(default_factory=list)

    def to_callback(self) -> dict[str, Any]:
        return {
            "type": CallbackType.AUTOCOMPLETE_RESULT.value,
            "data": {"choices": [c.to_dict() for c in self.choices]},
        }


Action = MessageResponse | AutocompleteResult


@dataclass
class InteractionEvent:
    """
    One incoming command or autocomplete request.

    ``path`` is the command name plus any sub-command group/sub-command,
    e.g. ``/wiki`` or ``/admin/records/delete``. ``options`` is the
    flattened option bag of the innermost command. ``respond`` is the
    channel the registry hands the handler's action to.
    """

    kind: InteractionKind
    path: str
    options: dict[str, Any] = field(default_factory=dict)
    focused: str | None = None
    interaction_id: str = ""
    token: str = ""
    respond: Callable[[Action], Any] | None = None

    def string_option(self, name: str, default: str = "") -> str:
        """Return a string option, or ``default`` when it is absent."""
        value = self.options.get(name)
        if value is None:
            return default
        return str(value)

    @classmethod
    def from_payload(
        cls,
        payload: dict[str, Any],
        respond: Callable[[Action], Any] | None = None,
    ) -> "InteractionEvent":
        """
        Parse an interaction JSON body.

        Raises:
            ValueError: if the payload is not a command or autocomplete
                interaction, lacks a command name, or carries malformed options.
        """
        try:
            kind = InteractionKind(payload.get("type"))
        except ValueError as e:
            raise ValueError(f"unsupported interaction type {payload.get('type')!r}") from e
        if kind == InteractionKind.PING:
            raise ValueError("ping interactions carry no command")

        data = payload.get("data") or {}
        name = data.get("name")
        if not name:
            raise ValueError("interaction has no command name")

        parts = [str(name)]
        options = data.get("options") or []
        values: dict[str, Any] = {}
        focused = None
        try:
            # Sub-command groups and sub-commands nest the real options
            while options and options[0].get("type") in (
                OptionType.SUB_COMMAND,
                OptionType.SUB_COMMAND_GROUP,
            ):
                parts.append(str(options[0]["name"]))
                options = options[0].get("options") or []

            for option in options:
                values[option["name"]] = option.get("value")
                if option.get("focused"):
                    focused = option["name"]
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"malformed options in /{name} interaction: {e!r}") from e

        return cls(
            kind=kind,
            path="/" + "/".join(parts),
            options=values,
            focused=focused,
            interaction_id=str(payload.get("id", "")),
            token=payload.get("token", ""),
            respond=respond,
        )
