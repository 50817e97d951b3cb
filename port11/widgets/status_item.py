from textual.widgets import Button


class StatusItem(Button):
    """A bar button that can be shown or hidden as a whole."""

    def show(self) -> None:
        self.display = True

    def hide(self) -> None:
        self.display = False

    @property
    def is_shown(self) -> bool:
        return bool(self.display)
