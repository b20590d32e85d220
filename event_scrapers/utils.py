import json
import logging
from datetime import datetime, date, time as dt_time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from event_scrapers.config import settings


# --- Logger Setup ---
_loggers: Dict[str, logging.Logger] = {}


def _resolve_level(level: Optional[Union[int, str]]) -> int:
    if level is None:
        level = settings.log_level
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        return resolved if isinstance(resolved, int) else logging.INFO
    return level


def setup_logger(logger_name: str, log_file_prefix: str, level: Optional[Union[int, str]] = None) -> logging.Logger:
    """Configures and returns a logger that outputs to console and a timestamped file."""
    if logger_name in _loggers:
        return _loggers[logger_name]

    log_level = _resolve_level(level)
    logger = logging.getLogger(logger_name)
    logger.setLevel(log_level)
    logger.propagate = False

    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(module)s.%(funcName)s:%(lineno)d - %(message)s"
    )

    ch = logging.StreamHandler()
    ch.setLevel(log_level)
    ch.setFormatter(formatter)
    logger.addHandler(ch)

    log_dir = settings.file_outputs.log_output_directory
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file_path = log_dir / f"{log_file_prefix}_{timestamp}.log"
        fh = logging.FileHandler(log_file_path, encoding="utf-8")
        fh.setLevel(log_level)
        fh.setFormatter(formatter)
        logger.addHandler(fh)
    except OSError as e:
        logger.error(f"Failed to create file handler for logger {logger_name} at {log_dir}: {e}", exc_info=True)

    _loggers[logger_name] = logger
    logger.debug(f"Logger '{logger_name}' initialized. Logging to console and file (if path valid).")
    return logger


# --- File Output Utilities ---

def _ensure_output_dir_exists(base_dir_path: Path, sub_folder_name: Optional[str], logger_obj: logging.Logger) -> Optional[Path]:
    """Helper to create output directory: base_dir_path / sub_folder_name."""
    target_dir = base_dir_path / sub_folder_name if sub_folder_name else base_dir_path
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        logger_obj.debug(f"Ensured output directory exists: {target_dir}")
        return target_dir
    except OSError as e:
        logger_obj.error(f"Could not create output directory {target_dir}: {e}", exc_info=True)
        return None


def _serialize_item(item: Any) -> Any:
    """json.dump default hook for types the encoder does not know."""
    if isinstance(item, (datetime, date, dt_time)):
        return item.isoformat()
    if isinstance(item, Path):
        return str(item)
    return str(item)


def save_to_json_file(
    data_to_save: Union[List[Dict[str, Any]], Dict[str, Any]],
    filename_prefix: str,
    sub_folder: Optional[str] = None,
    filename: Optional[str] = None,
    logger_obj: Optional[logging.Logger] = None
) -> Optional[Path]:
    """
    Writes data as indented UTF-8 JSON under the configured output directory.

    With ``filename`` the file is overwritten in place on every call; otherwise a
    timestamped ``{filename_prefix}_{YYYYmmdd_HHMMSS}.json`` is created.
    An empty list is still written so the artifact always reflects the last run.
    Returns the written path, or None when output is disabled or the write failed.
    """
    current_logger = logger_obj or logging.getLogger(__name__)
    if not settings.file_outputs.enable_json_output:
        current_logger.debug(f"JSON output disabled globally. Skipping save for '{filename_prefix}'.")
        return None

    actual_sub_folder = sub_folder if sub_folder else filename_prefix
    output_path = _ensure_output_dir_exists(settings.file_outputs.base_output_directory, actual_sub_folder, current_logger)
    if not output_path:
        return None

    if not filename:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"{filename_prefix}_{timestamp}.json"
    filepath = output_path / filename

    try:
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(data_to_save, f, indent=2, ensure_ascii=False, default=_serialize_item)
        current_logger.info(f"Data successfully saved to JSON file: {filepath}")
        return filepath
    except (OSError, TypeError) as e:
        current_logger.error(f"Error saving data to JSON file {filepath}: {e}", exc_info=True)
        return None
