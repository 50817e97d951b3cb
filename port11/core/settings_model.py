from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class UserPreferences(BaseModel):
    model_config = ConfigDict(extra="allow")

    theme: str = "textual-dark"


class ToolSettings(BaseModel):
    model_config = ConfigDict(extra="allow")

    executable: str = "cargo"
    args: list[str] = Field(default_factory=lambda: ["run"])
    marker: str = "Cargo.toml"
    rootPath: str = ""


class SettingsModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    schemaVersion: int = 1
    userPreferences: UserPreferences = Field(default_factory=UserPreferences)
    tool: ToolSettings = Field(default_factory=ToolSettings)
