"""Root logger setup for the cardcutter CLI.

Handlers are attached to the root logger once per process. A later call
leaves existing handlers (including ones a host application installed)
alone and only applies the requested level.
"""

import logging
import os
from typing import List, Optional, Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE_NAME = "cardcutter.log"


def resolve_level(name: Union[int, str], default: int = logging.INFO) -> int:
    """Map a level name such as ``"debug"`` (or a level number) to its ``logging`` constant."""
    if isinstance(name, int):
        return name
    level = logging.getLevelName(str(name).strip().upper())
    return level if isinstance(level, int) else default


def build_handlers(log_dir: Optional[str] = "logs") -> List[logging.Handler]:
    """Console handler, plus a file handler under ``log_dir`` when it can be created."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if not log_dir:
        return handlers
    try:
        os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(os.path.join(log_dir, LOG_FILE_NAME), encoding="utf-8"))
    except OSError:
        pass  # read-only working directory: console only
    return handlers


def configure_logging(level: Union[int, str] = logging.INFO, log_dir: Optional[str] = "logs") -> None:
    root = logging.getLogger()
    if not root.handlers:
        formatter = logging.Formatter(LOG_FORMAT)
        for handler in build_handlers(log_dir):
            handler.setFormatter(formatter)
            root.addHandler(handler)
    root.setLevel(resolve_level(level))
