# backend/config.py
"""
Settings for the simulator, read from the environment.

A .env file in the working directory is loaded first, so local runs can keep
AWS credentials and table names out of the code.
"""
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


def env_flag(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).lower() == 'true'


def env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == '':
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def env_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw == '':
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass
class Settings:
    update_interval: float = 2.0
    alert_interval: float = 30.0
    alert_kickoff: float = 5.0
    cleanup_interval: float = 24 * 60 * 60
    retention_days: float = 7.0
    record_history: bool = False
    generate_suggestions: bool = False
    random_seed: Optional[int] = None
    log_level: str = 'INFO'


def load_settings() -> Settings:
    load_dotenv()
    return Settings(
        update_interval=env_float('UPDATE_INTERVAL_SECONDS', 2.0),
        alert_interval=env_float('ALERT_INTERVAL_SECONDS', 30.0),
        alert_kickoff=env_float('ALERT_KICKOFF_SECONDS', 5.0),
        cleanup_interval=env_float('CLEANUP_INTERVAL_SECONDS', 24 * 60 * 60),
        retention_days=env_float('SUGGESTION_RETENTION_DAYS', 7.0),
        record_history=env_flag('RECORD_HISTORY'),
        generate_suggestions=env_flag('GENERATE_SUGGESTIONS'),
        random_seed=env_int('RANDOM_SEED'),
        log_level=os.getenv('LOG_LEVEL', 'INFO').upper(),
    )
