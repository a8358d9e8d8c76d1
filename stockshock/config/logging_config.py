"""
Logging configuration for the stock monitor.
"""
import logging
import logging.handlers
import sys
from typing import Optional

from .environment import Environment
from .config_manager import ConfigManager


def configure_logging(config: ConfigManager, level_override: Optional[str] = None) -> logging.Logger:
    """Configure root logging from the ``logging`` config section."""
    log_config = config.get_logging_config()
    log_level_str = level_override or log_config.get('level', Environment.get_log_level())
    log_format = log_config.get('format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    log_level = getattr(logging, str(log_level_str).upper(), None)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    logs_dir = Environment.get_logs_dir()
    log_file = logs_dir / log_config.get('file_path', 'stockshock.log')
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Clear existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=log_config.get('max_file_size', 10485760),
        backupCount=log_config.get('backup_count', 5),
        encoding='utf-8'
    )
    file_handler.setFormatter(logging.Formatter(log_format))
    root_logger.addHandler(file_handler)

    console_level = log_level
    if Environment.is_production():
        # In production, only show warnings and above in console
        console_level = max(log_level, logging.WARNING)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter(log_format))
    root_logger.addHandler(console_handler)

    # Third-party transports are chatty at INFO
    logging.getLogger('discord').setLevel(max(log_level, logging.WARNING))
    logging.getLogger('aiohttp').setLevel(max(log_level, logging.WARNING))

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized at level {logging.getLevelName(log_level)}")
    logger.info(f"Environment: {Environment.get_env()}")
    logger.info(f"Data directory: {Environment.get_data_dir()}")
    return logger
