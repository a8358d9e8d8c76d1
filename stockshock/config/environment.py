"""
Environment-specific configuration handling.
"""
import os
import sys
import logging
from typing import Optional
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Environment:
    """Environment configuration handler."""

    @staticmethod
    def get_env() -> str:
        """Get current environment (development, production, testing)."""
        return os.getenv('ENVIRONMENT', 'development').lower()

    @staticmethod
    def is_production() -> bool:
        """Check if running in production environment."""
        return Environment.get_env() == 'production'

    @staticmethod
    def get_data_dir() -> Path:
        """Get data directory path (cooldown files, price database)."""
        path = Path(os.getenv('DATA_DIR', 'data'))
        path.mkdir(parents=True, exist_ok=True)
        return path

    @staticmethod
    def get_logs_dir() -> Path:
        """Get logs directory path."""
        path = Path(os.getenv('LOGS_DIR', 'logs'))
        path.mkdir(parents=True, exist_ok=True)
        return path

    @staticmethod
    def get_config_file() -> Optional[str]:
        """Get the config file given through CONFIG_FILE, if any."""
        return os.getenv('CONFIG_FILE')

    @staticmethod
    def get_log_level() -> str:
        """Get logging level from environment."""
        return os.getenv('LOG_LEVEL', 'INFO').upper()

    @staticmethod
    def setup_basic_logging() -> None:
        """Set up basic logging before config is loaded."""
        log_level = Environment.get_log_level()
        logging.basicConfig(
            level=getattr(logging, log_level, logging.INFO),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            handlers=[logging.StreamHandler(sys.stdout)]
        )
