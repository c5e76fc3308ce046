"""Configuration management for the shared meal planner."""
import os
from typing import Final
from pathlib import Path

from dotenv import load_dotenv

from mealplan.utilities.constants import CONFLICT_POLICIES, POLICY_REBASE

BASE_DIR: Final[Path] = Path(__file__).parent.parent

# Values already present in the environment win over the .env file
load_dotenv(BASE_DIR / '.env')

# Application Settings
APP_HOST: Final[str] = os.getenv('APP_HOST', '0.0.0.0')
APP_PORT: Final[int] = int(os.getenv('APP_PORT', '8000'))
DEBUG: Final[bool] = os.getenv('DEBUG', 'False').lower() == 'true'
LOG_LEVEL: Final[str] = os.getenv('LOG_LEVEL', 'INFO').upper()

# Storage
DATA_DIR: Final[Path] = Path(os.getenv('DATA_DIR', str(BASE_DIR / 'data')))
STORE_FILE: Final[Path] = DATA_DIR / os.getenv('STORE_FILE', 'store.json')

# Shared plan writes
_policy = os.getenv('PLAN_CONFLICT_POLICY', POLICY_REBASE).strip().lower()
PLAN_CONFLICT_POLICY: Final[str] = _policy if _policy in CONFLICT_POLICIES else POLICY_REBASE
PLAN_REBASE_ATTEMPTS: Final[int] = max(1, int(os.getenv('PLAN_REBASE_ATTEMPTS', '3')))

# Change feed polled by browser clients
CHANGE_EVENTS_MAX: Final[int] = int(os.getenv('CHANGE_EVENTS_MAX', '300'))
