import os
import tempfile
from pathlib import Path
from typing import Optional

import yaml

from ashmail_core.template import EditorTemplate

DEFAULT_CONFIG_PATH = "~/.ash-mailcap.yml"

DEFAULT_CONFIG: dict = {
    "template": None,  # None = built-in vim wrapper; set to a path string to override
    "fallback": None,  # shell command run when the file has no comment link
    "cache": False,
    "review_command": "ash",
    "temp_dir": None,  # None = system temporary directory
}


class ConfigError(Exception):
    """Raised when the configuration file cannot be used."""


def load_config(config_path: str = DEFAULT_CONFIG_PATH, cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. The YAML config file, if it exists
      3. CLI argument overrides
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(os.path.expanduser(config_path))
    if path.exists():
        try:
            with open(path) as f:
                file_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"can't load config file {path}: {e}") from e
        if not isinstance(file_config, dict):
            raise ConfigError(f"config file {path} must contain a mapping")
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    if not config.get("temp_dir"):
        config["temp_dir"] = tempfile.gettempdir()

    return config


def load_template(config: dict) -> EditorTemplate:
    """
    Load the editor wrapper template.

    If ``template`` is set in config, parses that file (relative to cwd).
    Otherwise falls back to the built-in default.
    """
    custom_path = config.get("template")
    if custom_path:
        return EditorTemplate.from_file(os.path.expanduser(custom_path))
    return EditorTemplate.default()
