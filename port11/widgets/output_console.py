from __future__ import annotations

from textual.widgets import Log


class OutputConsole(Log):
    """Append-only console for the debugger's raw output."""

    def __init__(self, *, title: str = "Port11 Debugger", id: str | None = None) -> None:
        super().__init__(id=id or "output_console", highlight=False, auto_scroll=True)
        self._title = title

    def on_mount(self) -> None:
        self.border_title = self._title

    def append(self, text: str) -> None:
        self.write(text)

    def show(self) -> None:
        self.display = True
        self.scroll_end(animate=False)
