from .debugger_bar import DebuggerBar
from .output_console import OutputConsole
from .status_item import StatusItem

__all__ = [
    "DebuggerBar",
    "OutputConsole",
    "StatusItem",
]
