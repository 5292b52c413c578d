"""Configuration loading and parsing for linefocus.

This module provides the ConfigLoader class for reading TOML configuration files
and the Config dataclass for storing configuration values.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import tomli
from pydantic import ValidationError

from linefocus.core.history import DEFAULT_HISTORY_LIMIT
from linefocus.core.saved import SavedPatternLibrary
from linefocus.models.saved_pattern import SavedPattern
from linefocus.utils.git import find_git_root

CONFIG_FILENAME = "linefocus.toml"
DEFAULT_STATE_FILE = "~/.local/state/linefocus/state.json"


class ConfigError(Exception):
    """Exception raised for configuration parsing errors.

    Attributes:
        message: Error description
        line: Line number where error occurred (if available)
        path: Path to the config file (if available)
    """

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        path: Optional[Path] = None
    ):
        self.line = line
        self.path = path

        parts = []
        if path:
            parts.append(f"Error in {path}")
        if line is not None:
            parts.append(f"at line {line}")
        if parts:
            full_message = f"{' '.join(parts)}: {message}"
        else:
            full_message = message

        super().__init__(full_message)


@dataclass
class FilterConfig:
    """Filtering behaviour flags."""

    hide_empty_lines: bool = True
    include_child_items: bool = True
    include_heading_child_items: bool = False
    enable_template_variables: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "FilterConfig":
        """Create FilterConfig from a dictionary."""
        return cls(
            hide_empty_lines=data.get("hide_empty_lines", True),
            include_child_items=data.get("include_child_items", True),
            include_heading_child_items=data.get("include_heading_child_items", False),
            enable_template_variables=data.get("enable_template_variables", False),
        )


@dataclass
class HistoryConfig:
    """Manual pattern history settings."""

    limit: int = DEFAULT_HISTORY_LIMIT

    @classmethod
    def from_dict(cls, data: dict) -> "HistoryConfig":
        """Create HistoryConfig from a dictionary."""
        return cls(limit=data.get("limit", DEFAULT_HISTORY_LIMIT))


@dataclass
class StorageConfig:
    """Where per-document filters and history are kept."""

    state_file: str = DEFAULT_STATE_FILE

    @classmethod
    def from_dict(cls, data: dict) -> "StorageConfig":
        """Create StorageConfig from a dictionary."""
        return cls(state_file=data.get("state_file", DEFAULT_STATE_FILE))

    @property
    def state_path(self) -> Path:
        return Path(os.path.expanduser(self.state_file))


@dataclass
class Config:
    """Complete linefocus configuration.

    Attributes:
        filter: Filtering behaviour flags
        history: Manual pattern history settings
        storage: State file location
        saved: Saved pattern tables ([[saved]] entries)
    """

    filter: FilterConfig = field(default_factory=FilterConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    saved: list[dict] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        """Create Config from a dictionary.

        Args:
            data: Dictionary parsed from TOML file

        Returns:
            Config instance with values from dictionary
        """
        saved = data.get("saved", [])
        # A single [saved] table instead of [[saved]]
        if isinstance(saved, dict):
            saved = [saved]

        return cls(
            filter=FilterConfig.from_dict(data.get("filter", {})),
            history=HistoryConfig.from_dict(data.get("history", {})),
            storage=StorageConfig.from_dict(data.get("storage", {})),
            saved=list(saved),
        )

    def saved_library(self) -> SavedPatternLibrary:
        """Build the saved pattern library from the [[saved]] entries."""
        return SavedPatternLibrary.from_dicts(
            self.saved,
            enable_template_variables=self.filter.enable_template_variables,
        )


class ConfigLoader:
    """Loader for linefocus TOML configuration files.

    Example usage:
        loader = ConfigLoader()
        config = loader.load(Path("linefocus.toml"))

        # Or load defaults when no file exists
        config = loader.load(None)
    """

    def load(self, path: Optional[Path]) -> Config:
        """Load configuration from a TOML file.

        Args:
            path: Path to the TOML configuration file, or None to use defaults

        Returns:
            Config instance with values from file or defaults

        Raises:
            ConfigError: If the file contains invalid TOML or an invalid
                saved pattern
            FileNotFoundError: If the path is specified but file doesn't exist
        """
        if path is None:
            return Config()

        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        try:
            content = path.read_text(encoding="utf-8")
            data = tomli.loads(content)
        except tomli.TOMLDecodeError as e:
            line = self._extract_line_number(str(e))
            raise ConfigError(str(e), line=line, path=path) from e

        config = Config.from_dict(data)
        self._check_saved(config, path)
        return config

    def _check_saved(self, config: Config, path: Optional[Path]) -> None:
        """Validate [[saved]] entries so bad patterns fail at load time.

        Raises:
            ConfigError: Naming the first invalid entry.
        """
        context = {"enable_template_variables": config.filter.enable_template_variables}
        for index, entry in enumerate(config.saved, start=1):
            if not isinstance(entry, dict):
                raise ConfigError(f"saved entry {index} must be a table", path=path)
            try:
                SavedPattern.model_validate(entry, context=context)
            except ValidationError as e:
                details = "; ".join(err["msg"] for err in e.errors())
                raise ConfigError(f"invalid saved entry {index}: {details}", path=path) from e

        try:
            config.saved_library()
        except ValueError as e:
            raise ConfigError(str(e), path=path) from e

    def _extract_line_number(self, error_message: str) -> Optional[int]:
        """Extract line number from tomli error message.

        Args:
            error_message: The error message from tomli

        Returns:
            Line number if found, None otherwise
        """
        match = re.search(r"(?:at )?line (\d+)", error_message, re.IGNORECASE)
        if match:
            return int(match.group(1))
        return None

    def discover_configs(self, start_path: Optional[Path] = None) -> list[Path]:
        """Discover configuration files in order of precedence.

        Precedence order (lowest to highest):
        1. User config: ~/.config/linefocus/config.toml
        2. Git root: <git_root>/linefocus.toml
        3. Local (start_path): <start_path>/linefocus.toml

        CLI arguments have highest precedence but are handled separately.

        Args:
            start_path: Starting directory for local config search. If None,
                uses current working directory.

        Returns:
            List of existing config file paths in precedence order (lowest first).
        """
        if start_path is None:
            start_path = Path.cwd()
        else:
            start_path = Path(start_path).resolve()

        configs: list[Path] = []

        user_config = Path(os.path.expanduser("~")) / ".config" / "linefocus" / "config.toml"
        if user_config.exists():
            configs.append(user_config)

        git_root = find_git_root(start_path)
        if git_root:
            git_config = git_root / CONFIG_FILENAME
            if git_config.exists():
                if git_config.resolve() not in [c.resolve() for c in configs]:
                    configs.append(git_config)

        local_config = start_path / CONFIG_FILENAME
        if local_config.exists():
            if local_config.resolve() not in [c.resolve() for c in configs]:
                configs.append(local_config)

        return configs

    def load_merged(self, start_path: Optional[Path] = None) -> Config:
        """Load and merge configuration from all discovered config files.

        Later (higher precedence) files override values from earlier files.
        Tables merge key by key; arrays such as [[saved]] are replaced whole.

        Args:
            start_path: Starting directory for config discovery. If None,
                uses current working directory.

        Returns:
            Config instance with merged values from all sources.

        Raises:
            ConfigError: If any config file contains invalid TOML, or the
                merged saved patterns are invalid.
        """
        merged_data: dict = {}
        config_paths = self.discover_configs(start_path)

        for config_path in config_paths:
            try:
                content = config_path.read_text(encoding="utf-8")
                data = tomli.loads(content)
                merged_data = self._deep_merge(merged_data, data)
            except tomli.TOMLDecodeError as e:
                line = self._extract_line_number(str(e))
                raise ConfigError(str(e), line=line, path=config_path) from e

        config = Config.from_dict(merged_data)
        self._check_saved(config, config_paths[-1] if config_paths else None)
        return config

    def _deep_merge(self, base: dict, override: dict) -> dict:
        """Deep merge two dictionaries.

        Values from override take precedence over base. Nested dictionaries
        are merged recursively. Lists and other values are replaced entirely.

        Args:
            base: Base dictionary (lower precedence)
            override: Override dictionary (higher precedence)

        Returns:
            New dictionary with merged values.
        """
        result = base.copy()

        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
