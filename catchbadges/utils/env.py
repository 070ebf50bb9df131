import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from catchbadges.utils.constants import DEFAULT_TIMEZONE

logger = logging.getLogger(__name__)


def _find_project_root(start: Optional[Path] = None) -> Path:
    start = start or Path(__file__).resolve()
    current = start if start.is_dir() else start.parent
    while True:
        if (current / 'pyproject.toml').exists() or (current / '.git').exists():
            return current
        if current.parent == current:
            return start if start.is_dir() else start.parent
        current = current.parent


def _resolve_env_filename() -> str:
    env_file = os.getenv('ENV_FILE')
    if env_file:
        return env_file

    env = (os.getenv('ENV') or os.getenv('PYTHON_ENV') or 'local').lower()
    if env in {'prod', 'production'}:
        return '.env.prod'
    return '.env.local'


def load_env(override: bool = False) -> Path:
    '''Load the environment file for the current ENV, falling back to .env'''
    root = _find_project_root()
    env_path = Path(_resolve_env_filename())
    if not env_path.is_absolute():
        env_path = root / env_path

    if env_path.exists():
        load_dotenv(dotenv_path=env_path, override=override)
    else:
        fallback = root / '.env'
        if fallback.exists():
            load_dotenv(dotenv_path=fallback, override=override)

    return env_path


def int_setting(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f'Ignoring non-integer {name}={raw!r}, using {default}')
        return default


def badge_timezone() -> str:
    return os.getenv('BADGE_TIMEZONE') or DEFAULT_TIMEZONE
