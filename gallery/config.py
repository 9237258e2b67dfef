"""
Gallery configuration - single-user local settings
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from pathlib import Path
import os


def get_data_dir() -> Path:
    """Get gallery data directory"""
    override = os.environ.get('GALLERY_DATA_DIR')
    if override:
        data_dir = Path(override)
    else:
        if os.name == 'nt':  # Windows
            base = Path(os.environ.get('APPDATA', Path.home() / 'AppData' / 'Roaming'))
        else:  # Linux/Mac
            base = Path.home()
        data_dir = base / '.gallery'

    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_default_database_url() -> str:
    """Get SQLite database URL inside the data directory"""
    return f"sqlite+aiosqlite:///{get_data_dir() / 'gallery.db'}"


class Settings(BaseSettings):
    # Storage
    data_dir: str = str(get_data_dir())
    images_dir: str = str(get_data_dir() / 'images')
    database_url: str = get_default_database_url()
    max_file_size: int = 100 * 1024 * 1024  # 100MB

    # Sync
    sync_deactivate_missing: bool = True  # Mark rows inactive when their file is gone
    sync_on_startup: bool = True

    # Server
    host: str = "127.0.0.1"  # Localhost only
    port: int = 8788
    debug: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "GALLERY_"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
