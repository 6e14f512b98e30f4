import os
from pathlib import Path

APP_ENV_HOME = "PRACTICE_OS_HOME"
APP_ENV_DB = "PRACTICE_OS_DB"
APP_ENV_CONFIG = "PRACTICE_OS_CONFIG"


def project_root() -> Path:
    """
    Repository root directory.
    Contains practice/, api/, cli/, config/ and tests/.
    """
    return Path(__file__).parent.parent.resolve()


def app_home() -> Path:
    """
    User-writable home for Practice OS.
    Override with PRACTICE_OS_HOME.
    """
    if os.environ.get(APP_ENV_HOME):
        return Path(os.environ[APP_ENV_HOME]).expanduser().resolve()
    return (Path.home() / ".practice_os").resolve()


def data_dir() -> Path:
    d = app_home() / "data"
    d.mkdir(parents=True, exist_ok=True)
    return d


def db_path() -> Path:
    """
    Canonical DB path.

    Resolution order:
    1. PRACTICE_OS_DB env var (explicit override)
    2. ~/.practice_os/data/practice_os.db (default)
    """
    if os.environ.get(APP_ENV_DB):
        return Path(os.environ[APP_ENV_DB]).expanduser().resolve()
    return data_dir() / "practice_os.db"


def config_path() -> Path:
    """
    YAML settings file.

    PRACTICE_OS_CONFIG wins; otherwise the repository's config/practice.yaml.
    """
    if os.environ.get(APP_ENV_CONFIG):
        return Path(os.environ[APP_ENV_CONFIG]).expanduser().resolve()
    return project_root() / "config" / "practice.yaml"
