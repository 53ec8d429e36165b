# In coromondex/config.py
import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

PACKAGE_DIR = Path(__file__).resolve().parent

DATABASE_URL = os.environ.get("COROMONDEX_DATABASE_URL", "sqlite+aiosqlite:///coromon.db")
DATA_DIR = Path(os.environ.get("COROMONDEX_DATA_DIR", PACKAGE_DIR / "data"))
SQL_ECHO = os.environ.get("COROMONDEX_SQL_ECHO", "").lower() in ("1", "true", "yes")
LOG_LEVEL = os.environ.get("COROMONDEX_LOG_LEVEL", "INFO").upper()

# Species ids above this are Titans: bonus encounters that never evolve.
MAX_CHAIN_SPECIES_ID = 999
