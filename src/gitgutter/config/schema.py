"""Configuration schema — dataclasses for every config section."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Literal

from gitgutter.git.models import SignKind

OutputFormat = Literal["terminal", "json", "yaml"]

OUTPUT_FORMATS = ("terminal", "json", "yaml")


@dataclass
class DiffConfig:
    revision: str = ""  # blob to diff against; "" = the index, e.g. "HEAD"


@dataclass
class SignsConfig:
    enabled: bool = True
    add: str = "+"
    change: str = "~"
    delete: str = "_"
    topdelete: str = "‾"
    changedelete: str = "~_"

    def text_for(self, kind: SignKind) -> str:
        return getattr(self, kind.value)


@dataclass
class BlameConfig:
    enabled: bool = True
    show_summary: bool = True


@dataclass
class ConflictConfig:
    enabled: bool = True


@dataclass
class NavigationConfig:
    wrapscan: bool = True


@dataclass
class OutputConfig:
    format: OutputFormat = "terminal"
    show_summary: bool = True


@dataclass
class GitGutterConfig:
    version: str = "1.0"
    diff: DiffConfig = field(default_factory=DiffConfig)
    signs: SignsConfig = field(default_factory=SignsConfig)
    blame: BlameConfig = field(default_factory=BlameConfig)
    conflict: ConflictConfig = field(default_factory=ConflictConfig)
    navigation: NavigationConfig = field(default_factory=NavigationConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def sign_texts(self) -> Dict[SignKind, str]:
        return {kind: self.signs.text_for(kind) for kind in SignKind}
