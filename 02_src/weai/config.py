"""Project-level configuration and path helpers."""

from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_DB_PATH = DATA_DIR / "weai.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

# Turns of chat history sent along with a model request
DEFAULT_HISTORY_WINDOW = 20
DEFAULT_MODEL = "claude-3-5-sonnet-20241022"

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def resolve_history_window(env_value: str | None = None) -> int:
    """Parse HISTORY_WINDOW, falling back to the default on bad input."""
    if not env_value:
        return DEFAULT_HISTORY_WINDOW

    try:
        window = int(env_value)
    except ValueError:
        return DEFAULT_HISTORY_WINDOW

    return window if window > 0 else DEFAULT_HISTORY_WINDOW
