"""
Configuration management for the Go game record engine.

Loads configuration from config.yaml and provides typed access.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from .board import BOARD_SIZE, validate_board_size

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(message)s'


@dataclass
class BoardConfig:
    """Board settings."""
    size: int = BOARD_SIZE


@dataclass
class DatabaseConfig:
    """Draft database configuration."""
    path: str = "data/drafts.db"


@dataclass
class ApiConfig:
    """Records API configuration."""
    host: str = "127.0.0.1"
    port: int = 8000
    page_size: int = 20
    max_page_size: int = 100


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    format: str = LOG_FORMAT


@dataclass
class AppConfig:
    """Main application configuration."""
    board: BoardConfig = field(default_factory=BoardConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config.yaml. If None, searches in:
                     1. Current directory
                     2. Project root (relative to this file)

    Returns:
        AppConfig instance

    Raises:
        FileNotFoundError: If config file not found
        ValueError: If config file is invalid
    """
    if config_path is None:
        search_paths = [
            Path.cwd() / "config.yaml",
            get_project_root() / "config.yaml",
        ]

        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break
        else:
            raise FileNotFoundError(
                f"config.yaml not found. Searched in: {[str(p) for p in search_paths]}"
            )

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not data:
        raise ValueError(f"Config file is empty: {config_path}")
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")

    board_data = data.get("board") or {}
    board_config = BoardConfig(
        size=validate_board_size(board_data.get("size", BOARD_SIZE)),
    )

    db_data = data.get("database") or {}
    db_config = DatabaseConfig(
        path=db_data.get("path", "data/drafts.db"),
    )

    api_data = data.get("api") or {}
    api_config = ApiConfig(
        host=api_data.get("host", "127.0.0.1"),
        port=int(api_data.get("port", 8000)),
        page_size=int(api_data.get("page_size", 20)),
        max_page_size=int(api_data.get("max_page_size", 100)),
    )
    if not (1 <= api_config.page_size <= api_config.max_page_size):
        raise ValueError(
            f"api.page_size must be between 1 and {api_config.max_page_size}, "
            f"got {api_config.page_size}"
        )

    log_data = data.get("logging") or {}
    log_config = LoggingConfig(
        level=str(log_data.get("level", "INFO")).upper(),
        format=log_data.get("format", LOG_FORMAT),
    )
    if not isinstance(logging.getLevelName(log_config.level), int):
        raise ValueError(f"Unknown logging level: {log_config.level}")

    return AppConfig(
        board=board_config,
        database=db_config,
        api=api_config,
        logging=log_config,
    )


def setup_logging(config: Optional[AppConfig] = None, level: Optional[str] = None) -> None:
    """Configure root logging from the config (``level`` overrides it)."""
    log_config = config.logging if config is not None else LoggingConfig()
    logging.basicConfig(
        level=level or log_config.level,
        format=log_config.format,
    )


def get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


def get_db_path(config: AppConfig) -> Path:
    """
    Get the absolute path to the database file.

    Args:
        config: Application configuration

    Returns:
        Absolute path to database file
    """
    db_path = Path(config.database.path)
    if not db_path.is_absolute():
        db_path = get_project_root() / db_path
    return db_path
