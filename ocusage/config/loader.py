"""
Configuration management and loading.

Handles the optional YAML settings file and its defaults.
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

import yaml


class OutputMode(Enum):
    """How reports are written to standard output."""
    TABLE = "table"
    JSON = "json"
    XML = "xml"


@dataclass(frozen=True)
class ReportConfig:
    """Report settings from the config file.

    ``None`` means the setting was not configured and the built-in default
    applies.
    """
    data_dir: Optional[str] = None
    show_models: Optional[bool] = None
    output: Optional[OutputMode] = None

    def resolve_output(self, json_flag: bool, xml_flag: bool) -> OutputMode:
        """Command-line flags win over the configured output mode; XML wins over JSON."""
        if xml_flag:
            return OutputMode.XML
        if json_flag:
            return OutputMode.JSON
        return self.output or OutputMode.TABLE

    def resolve_show_models(self, flag: Optional[bool]) -> bool:
        if flag is not None:
            return flag
        return True if self.show_models is None else self.show_models

    def resolve_data_dir(self, option: Optional[str]) -> Optional[str]:
        return option or self.data_dir


def default_config_path() -> Path:
    """``$XDG_CONFIG_HOME/ocusage/config.yaml`` (``~/.config`` if unset)."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    base = Path(config_home) if config_home else Path.home() / ".config"
    return base / "ocusage" / "config.yaml"


def load_report_config(path: Optional[str] = None) -> ReportConfig:
    """Load and validate report configuration from a YAML file.

    Without an explicit path the default location is used, and a missing
    default file simply yields the defaults.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated ReportConfig object

    Raises:
        FileNotFoundError: If an explicitly given config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    if path is None:
        config_path = default_config_path()
        if not config_path.exists():
            return ReportConfig()
    else:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {config_path}: {e}")

    if raw_config is None:
        return ReportConfig()
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a mapping")

    allowed_keys = {'data_dir', 'show_models', 'output'}
    unknown_keys = set(raw_config.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    data_dir = raw_config.get('data_dir')
    if data_dir is not None and not isinstance(data_dir, str):
        raise ValueError("'data_dir' must be a string")

    show_models = raw_config.get('show_models')
    if show_models is not None and not isinstance(show_models, bool):
        raise ValueError("'show_models' must be true or false")

    output = None
    output_str = raw_config.get('output')
    if output_str is not None:
        if not isinstance(output_str, str):
            raise ValueError("'output' must be a string")
        try:
            output = OutputMode(output_str.lower())
        except ValueError:
            valid_modes = [mode.value for mode in OutputMode]
            raise ValueError(f"'output' must be one of: {valid_modes}")

    return ReportConfig(
        data_dir=os.path.expanduser(data_dir) if data_dir else None,
        show_models=show_models,
        output=output
    )
