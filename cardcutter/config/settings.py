"""
Pipeline configuration.

Usage:
    from cardcutter.config.settings import load_settings

    settings = load_settings()
    settings.priority_rules, settings.context_rules, settings.data_dir

Lookup order for the YAML file:
    1. explicit path argument
    2. $CARDCUTTER_CONFIG
    3. config/pipeline.yaml in the working directory
    4. the default pipeline.yaml shipped inside the package

Environment (also read from a .env file):
    CARDCUTTER_CONFIG     path to the YAML config
    CARDCUTTER_DATA_DIR   training data store directory
    CARDCUTTER_LOG_LEVEL  DEBUG / INFO / WARNING ...
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from dotenv import load_dotenv

from cardcutter.training.context import ContextRules, context_rules_from_config
from cardcutter.training.priority import PriorityRules, rules_from_config

logger = logging.getLogger(__name__)

_PACKAGE_CONFIG_DIR = Path(__file__).resolve().parent
_env_path = Path.cwd() / ".env"

# Load .env file on module import
if _env_path.exists():
    load_dotenv(_env_path)
else:
    load_dotenv()

DEFAULT_CONFIG_NAME = "config/pipeline.yaml"
PACKAGED_CONFIG_PATH = _PACKAGE_CONFIG_DIR / "pipeline.yaml"
DEFAULT_DATA_DIR = "training-data"


class ConfigError(Exception):
    """Raised when the pipeline config file exists but can't be used."""
    pass


@dataclass(frozen=True)
class Settings:
    priority_rules: PriorityRules
    context_rules: ContextRules
    data_dir: Path
    config_path: Optional[Path] = None


def config_paths(explicit: Optional[Union[str, Path]] = None) -> List[Path]:
    paths = []
    if explicit:
        paths.append(Path(explicit))
    env_path = os.environ.get("CARDCUTTER_CONFIG", "").strip()
    if env_path:
        paths.append(Path(env_path))
    paths.append(Path(DEFAULT_CONFIG_NAME))
    paths.append(PACKAGED_CONFIG_PATH)
    return paths


def load_pipeline_config(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Load the pipeline YAML config.

    An explicitly requested file that doesn't exist is an error; otherwise
    the first existing candidate is used, and no file at all means defaults.

    Returns:
        Config dict (empty when no file is found)

    Raises:
        ConfigError: Missing explicit file, invalid YAML, or a non-mapping document
    """
    if path is not None and not Path(path).exists():
        raise ConfigError(f"Config file not found: {path}")

    for candidate in config_paths(path):
        if not candidate.exists():
            continue
        try:
            with open(candidate, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {candidate}: {e}")
        if not isinstance(data, dict):
            raise ConfigError(f"Config {candidate} must be a mapping")
        logger.debug(f"Loaded pipeline config from {candidate}")
        return data

    return {}


def get_log_level() -> str:
    return os.environ.get("CARDCUTTER_LOG_LEVEL", "INFO").strip() or "INFO"


def load_settings(
    config_path: Optional[Union[str, Path]] = None,
    data_dir: Optional[Union[str, Path]] = None,
) -> Settings:
    """Resolve settings from config file, environment and explicit overrides."""
    config = load_pipeline_config(config_path)
    store = config.get("store") or {}

    resolved_dir = (
        data_dir
        or os.environ.get("CARDCUTTER_DATA_DIR", "").strip()
        or store.get("data_dir")
        or DEFAULT_DATA_DIR
    )

    try:
        priority_rules = rules_from_config(config.get("priority"))
        context_rules = context_rules_from_config(config.get("context"))
    except (TypeError, ValueError, AttributeError) as e:
        raise ConfigError(f"Invalid pipeline config: {e}")

    return Settings(
        priority_rules=priority_rules,
        context_rules=context_rules,
        data_dir=Path(resolved_dir),
        config_path=Path(config_path) if config_path else None,
    )
