import os
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_DATA_DIR = "data"


def load_env():
    """Load environment variables from env file.

    Defaults to config/local.env for local development.
    Set ENV_FILE environment variable to override.
    """
    env = os.getenv("ENV_FILE", "config/local.env")
    load_dotenv(env)


def get_data_dir(override: str | None = None) -> Path:
    """Directory holding the enriched artifacts.

    An explicit override (the --data-dir flag) wins over TMDB_DATA_DIR.
    """
    if override:
        return Path(override)
    return Path(os.getenv("TMDB_DATA_DIR", DEFAULT_DATA_DIR))
