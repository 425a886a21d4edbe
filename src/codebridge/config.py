"""Configuration management for CodeBridge."""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from .analysis.models import MAX_SYMBOLS_PER_FILE, Strategy, WalkBudget
from .analysis.coordinator import DEFAULT_CONCURRENT_WALKS
from .backends.models import SymbolKind
from .workspace import DEFAULT_MAX_FILE_SIZE


load_dotenv()


ALWAYS_EXCLUDED = "**/.git"

DEFAULT_SYMBOL_KINDS = ["class", "function", "interface", "constant", "variable", "enum"]

# Later layers win; mirrors the editor's global -> copy -> analysis scopes.
CONFIG_LAYERS = ("copy", "analysis")


class ConfigError(Exception):
    """Raised when a settings file cannot be loaded."""


class Config(BaseModel):
    """Application configuration."""

    # Expansion Settings
    strategy: Strategy = Field(default=Strategy.SHALLOW)
    max_files: int = Field(default=5, ge=0)
    symbol_kinds: List[str] = Field(default_factory=lambda: DEFAULT_SYMBOL_KINDS.copy())
    max_symbols_per_file: int = Field(default=MAX_SYMBOLS_PER_FILE, ge=0)
    provider_timeout: Optional[float] = Field(default=10.0)
    max_concurrent_walks: int = Field(default=DEFAULT_CONCURRENT_WALKS, ge=1)

    # Filter Settings
    excludes: List[str] = Field(default_factory=list)
    max_file_size: int = Field(default=DEFAULT_MAX_FILE_SIZE)  # 10MB

    @field_validator("provider_timeout")
    @classmethod
    def _zero_disables_timeout(cls, value: Optional[float]) -> Optional[float]:
        return value if value else None

    @property
    def exclude_patterns(self) -> List[str]:
        """Configured excludes plus the always-excluded VCS directory."""
        patterns: List[str] = []
        for pattern in [*self.excludes, ALWAYS_EXCLUDED]:
            if pattern not in patterns:
                patterns.append(pattern)
        return patterns

    def parsed_symbol_kinds(self) -> frozenset[SymbolKind]:
        """Known symbol kinds from ``symbol_kinds``; unknown names are dropped."""
        kinds = (SymbolKind.parse(k) for k in self.symbol_kinds)
        return frozenset(k for k in kinds if k is not None)

    def walk_budget(self) -> WalkBudget:
        return WalkBudget.for_strategy(self.strategy, self.max_files, self.exclude_patterns)

    @classmethod
    def from_env(cls, base: Optional["Config"] = None) -> "Config":
        """Load configuration from environment variables.

        Args:
            base: Values used where the environment is silent (defaults
                when omitted).
        """
        base = base or cls()

        def _parse_int(value: Optional[str], fallback: int) -> int:
            try:
                return int(value) if value is not None else fallback
            except ValueError:
                return fallback

        def _parse_float(value: Optional[str], fallback: Optional[float]) -> Optional[float]:
            try:
                return float(value) if value is not None else fallback
            except ValueError:
                return fallback

        def _split(value: str) -> List[str]:
            return [entry.strip() for entry in value.split(",") if entry.strip()]

        excludes = base.excludes.copy()
        extra_excludes = os.getenv("CODEBRIDGE_EXCLUDES")
        if extra_excludes:
            excludes.extend(_split(extra_excludes))

        symbol_kinds = base.symbol_kinds.copy()
        kinds_env = os.getenv("CODEBRIDGE_SYMBOL_KINDS")
        if kinds_env is not None:
            symbol_kinds = _split(kinds_env)

        return cls(
            strategy=os.getenv("CODEBRIDGE_STRATEGY", base.strategy.value),
            max_files=_parse_int(os.getenv("CODEBRIDGE_MAX_FILES"), base.max_files),
            symbol_kinds=symbol_kinds,
            max_symbols_per_file=base.max_symbols_per_file,
            provider_timeout=_parse_float(
                os.getenv("CODEBRIDGE_PROVIDER_TIMEOUT"), base.provider_timeout
            ),
            max_concurrent_walks=base.max_concurrent_walks,
            excludes=excludes,
            max_file_size=base.max_file_size,
        )

    @classmethod
    def from_file(cls, path: Path) -> "Config":
        """Load configuration from a YAML settings file.

        The file's ``filters.excludes`` and ``safety.maxFileSizeKB`` form the
        base layer; ``copy`` and ``analysis`` mappings are merged on top.

        Raises:
            ConfigError: If the file cannot be read, is not a mapping, or
                holds values of the wrong type.
        """
        try:
            raw = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot load settings from {path}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigError(f"Settings file {path} must contain a mapping")

        settings = _base_layer(raw)
        for layer in CONFIG_LAYERS:
            settings = merge_layers(settings, _normalize_keys(_section(raw, layer)))

        try:
            return cls(**{k: v for k, v in settings.items() if k in cls.model_fields})
        except ValidationError as e:
            raise ConfigError(f"Invalid settings in {path}: {e}") from e


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = raw.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"'{name}' must be a mapping, got {type(section).__name__}")
    return section


def _base_layer(raw: Dict[str, Any]) -> Dict[str, Any]:
    filters = _section(raw, "filters")
    safety = _section(raw, "safety")

    excludes = filters.get("excludes") or []
    if not isinstance(excludes, list):
        raise ConfigError("'filters.excludes' must be a list of patterns")
    base: Dict[str, Any] = {"excludes": [str(pattern) for pattern in excludes]}

    if "maxFileSizeKB" in safety:
        try:
            base["max_file_size"] = int(safety["maxFileSizeKB"]) * 1024
        except (TypeError, ValueError) as e:
            raise ConfigError(f"'safety.maxFileSizeKB' must be a number: {e}") from e
    return base


_KEY_ALIASES = {
    "maxFiles": "max_files",
    "symbolKinds": "symbol_kinds",
    "maxSymbolsPerFile": "max_symbols_per_file",
    "providerTimeout": "provider_timeout",
    "maxConcurrentWalks": "max_concurrent_walks",
}


def _normalize_keys(layer: Dict[str, Any]) -> Dict[str, Any]:
    return {_KEY_ALIASES.get(k, k): v for k, v in layer.items()}


def merge_layers(base: Dict[str, Any], layer: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay ``layer`` on ``base``.

    None values are skipped. Nested mappings merge one level deep; any
    other value (lists included) replaces the base value.
    """
    result = dict(base)
    for key, value in layer.items():
        if value is None:
            continue
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = {**result[key], **value}
        else:
            result[key] = value
    return result
