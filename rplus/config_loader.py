# rplus/config_loader.py
import os
from typing import Any, Dict

import yaml

DEFAULT_CONFIG_PATH = "config.yml"


class ConfigError(RuntimeError):
    """Configuration could not be read or failed validation. Fatal at startup."""


def normalize_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Turn YAML-style keys ("required-reviews") into settings field names
    ("required_reviews"), recursing into nested sections like webhook-server.
    """
    out: Dict[str, Any] = {}
    for k, v in data.items():
        key = str(k).strip().lower().replace("-", "_")
        if isinstance(v, dict):
            v = normalize_keys(v)
        out[key] = v
    return out


def load_config_file(path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """
    Load the bot's YAML config file.
    Raises ConfigError if the file is missing, unreadable or not a mapping.
    An empty file yields an empty dict.
    """
    if not os.path.exists(path):
        raise ConfigError(f"Failed to read config file '{path}': no such file")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Failed to read config file '{path}': {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse config file '{path}': {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Failed to parse config file '{path}': expected a mapping at the top level"
        )
    return normalize_keys(data)
