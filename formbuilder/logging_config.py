from __future__ import annotations

"""Central logging configuration for the Form Builder toolkit.

Import and call :func:`setup_logging` at application start-up.
"""

import copy
import logging
import logging.config
import os
from typing import Any, Dict, List

from formbuilder.config import ConfigManager

__all__ = ["setup_logging"]

_TRUTHY = {'1', 'true', 'yes', 'on'}


def setup_logging() -> None:
    """Configure logging for the application using configuration from YAML files."""
    log_dir = os.environ.get("FORMBUILDER_LOG_DIR", "logs")
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, "formbuilder.log")

    try:
        config_manager = ConfigManager()
        logging_config: Dict[str, Any] = copy.deepcopy(config_manager.get_logging_config())

        if logging_config and isinstance(logging_config, dict) and logging_config.get("version"):
            # Update the filename dynamically
            if "handlers" in logging_config and "file" in logging_config["handlers"]:
                logging_config["handlers"]["file"]["filename"] = log_file

            logging.config.dictConfig(logging_config)
            logging.info("===== Logging initialised from config files =====")
        else:
            # No valid config found, use minimal fallback
            _setup_minimal_logging()
    except (ValueError, TypeError, AttributeError, ImportError, OSError) as exc:
        # dictConfig reports bad configs as ValueError/TypeError
        print(f"Error loading logging config: {exc}")
        _setup_minimal_logging()

    _apply_debug_overrides()


def _setup_minimal_logging() -> None:
    """Set up minimal console-only logging when config is unavailable."""
    minimal_config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'simple': {
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            },
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'simple',
                'level': 'INFO',
            },
        },
        'root': {
            'level': 'INFO',
            'handlers': ['console'],
        },
        # Provide a module logger entry so we can flip it via env even in minimal mode
        'loggers': {
            'formbuilder.core.services.structure_editing_service': {
                'handlers': ['console'],
                'level': 'INFO',
                'propagate': False,
            }
        }
    }

    logging.config.dictConfig(minimal_config)
    logging.warning("===== Logging initialised with minimal fallback =====")


def _debug_targets() -> List[str]:
    targets: List[str] = []
    if os.environ.get('FORMBUILDER_DEBUG_EDITS', '').strip().lower() in _TRUTHY:
        targets.append('formbuilder.core.services.structure_editing_service')
        targets.append('formbuilder.core.services.drag_service')
    extra_modules = os.environ.get('FORMBUILDER_DEBUG_MODULES', '').strip()
    if extra_modules:
        targets.extend([m.strip() for m in extra_modules.split(',') if m.strip()])
    return targets


def _apply_debug_overrides() -> None:
    """Apply environment-driven module-specific debug overrides.

    Supports:
    - FORMBUILDER_DEBUG_EDITS=true -> DEBUG for the editing and drag services
    - FORMBUILDER_DEBUG_MODULES=comma,separated,logger,names -> DEBUG for listed loggers
    """
    for name in _debug_targets():
        logger = logging.getLogger(name)
        logger.setLevel(logging.DEBUG)
        # Ensure at least one handler emits DEBUG for this logger
        has_debug_handler = any(
            h.level == logging.NOTSET or h.level <= logging.DEBUG for h in logger.handlers
        )
        if not has_debug_handler:
            h = logging.StreamHandler()
            h.setLevel(logging.DEBUG)
            h.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
            logger.addHandler(h)
        logger.info("Debug override active for logger '%s'", name)
