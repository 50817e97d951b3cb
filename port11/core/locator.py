from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from port11.core.models import CommandSpec
from port11.core.settings_model import ToolSettings


@dataclass(frozen=True)
class ToolLocator:
    """Finds the debugger agent's project root relative to a workspace.

    The agent lives next to the workspace: its root is the workspace's parent
    directory unless ``ToolSettings.rootPath`` points somewhere explicitly.
    """

    workspace: Path
    tool: ToolSettings = field(default_factory=ToolSettings)

    def resolve_root(self) -> Path:
        override = self.tool.rootPath.strip()
        if override:
            return Path(override).expanduser()
        return self.workspace.expanduser().resolve().parent

    def probe(self, root: Path) -> bool:
        try:
            return (root / self.tool.marker).is_file()
        except OSError:
            return False

    def resolve_spec(self) -> CommandSpec:
        return CommandSpec(
            executable=self.tool.executable,
            args=tuple(self.tool.args),
            cwd=self.resolve_root(),
        )
