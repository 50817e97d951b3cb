from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from textual.command import CommandListItem, SimpleCommand, SimpleProvider
from textual.screen import Screen
from textual.style import Style

if TYPE_CHECKING:
    from port11.app import Port11App


class Port11CommandProvider(SimpleProvider):
    """Command palette provider for the debugger entry points."""

    _COMMAND_DEFS: tuple[tuple[str, str, str], ...] = (
        (
            "Play Debugger",
            "Build and start the Port11 debugger agent.",
            "action_play",
        ),
        (
            "Stop Debugger",
            "Send a termination signal to the running debugger agent.",
            "action_stop",
        ),
        (
            "Clear Debugger Output",
            "Clear the debugger output console.",
            "action_clear_output",
        ),
    )

    def __init__(self, screen: Screen[Any], match_style: Style | None = None) -> None:
        app = cast("Port11App", screen.app)
        commands: list[CommandListItem] = [
            SimpleCommand(label, getattr(app, handler_name), description)
            for label, description, handler_name in self._COMMAND_DEFS
        ]
        super().__init__(screen, commands)
        if match_style is not None:
            self._SimpleProvider__match_style = match_style  # type: ignore[attr-defined]
