"""CodeBridge - Bundle related project files into LLM-ready context."""

__version__ = "0.1.0"

from .config import Config
from .workspace import Workspace, WorkspaceFolder, TextCache, to_file_ref
from .patterns import is_ignored, glob_to_regex
from .analysis import (
    Strategy,
    WalkBudget,
    ExpansionResult,
    ExpansionCoordinator,
    FrontierWalker,
    TargetFilter,
)
from .backends import LanguageHost, LocalLanguageHost, InMemoryLanguageHost

__all__ = [
    "Config",
    "Workspace",
    "WorkspaceFolder",
    "TextCache",
    "to_file_ref",
    "is_ignored",
    "glob_to_regex",
    "Strategy",
    "WalkBudget",
    "ExpansionResult",
    "ExpansionCoordinator",
    "FrontierWalker",
    "TargetFilter",
    "LanguageHost",
    "LocalLanguageHost",
    "InMemoryLanguageHost",
]
