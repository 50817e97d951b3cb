from textual.message import Message

from port11.core.models import LifecycleEvent


class LifecycleUpdate(Message):
    """Carries a supervisor event from a worker thread onto the UI thread."""

    def __init__(self, event: LifecycleEvent) -> None:
        self.event = event
        super().__init__()
