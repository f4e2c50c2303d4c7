import logging
import os
import sys
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

####################################
# Load .env file
####################################

BACKEND_DIR = Path(__file__).parent  # the path containing this file
BASE_DIR = BACKEND_DIR.parent  # the path containing the backend/

load_dotenv(find_dotenv(str(BASE_DIR / ".env")))


####################################
# LOGGING
####################################

GLOBAL_LOG_LEVEL = os.environ.get("GLOBAL_LOG_LEVEL", "").upper()
if GLOBAL_LOG_LEVEL in logging.getLevelNamesMapping():
    logging.basicConfig(stream=sys.stdout, level=GLOBAL_LOG_LEVEL, force=True)
else:
    GLOBAL_LOG_LEVEL = "INFO"

log = logging.getLogger(__name__)
log.info(f"GLOBAL_LOG_LEVEL: {GLOBAL_LOG_LEVEL}")

log_sources = [
    "DB",
    "MODELS",
    "SERVICES",
]

SRC_LOG_LEVELS = {}

for source in log_sources:
    log_env_var = source + "_LOG_LEVEL"
    SRC_LOG_LEVELS[source] = os.environ.get(log_env_var, "").upper()
    if SRC_LOG_LEVELS[source] not in logging.getLevelNamesMapping():
        SRC_LOG_LEVELS[source] = GLOBAL_LOG_LEVEL
    log.info(f"{log_env_var}: {SRC_LOG_LEVELS[source]}")

log.setLevel(SRC_LOG_LEVELS["DB"])


####################################
# DATA/DATABASE
####################################

DATA_DIR = Path(os.getenv("DATA_DIR", BASE_DIR / "data")).resolve()
DATA_DIR.mkdir(parents=True, exist_ok=True)

DATABASE_URL = os.environ.get("DATABASE_URL", f"sqlite:///{DATA_DIR}/shared_lists.db")

# Replace the postgres:// with postgresql://
if "postgres://" in DATABASE_URL:
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://")

DATABASE_ECHO = os.environ.get("DATABASE_ECHO", "False").lower() == "true"


####################################
# LISTS / INVITES / EVENTS
####################################


def _int_env(name: str, default: int) -> int:
    value = os.environ.get(name, "")
    try:
        return int(value) if value.strip() else default
    except ValueError:
        log.warning(f"Invalid integer for {name}: {value!r}, using {default}")
        return default


EVENTS_PAGE_SIZE_DEFAULT = _int_env("EVENTS_PAGE_SIZE_DEFAULT", 10)
EVENTS_PAGE_SIZE_MAX = _int_env("EVENTS_PAGE_SIZE_MAX", 50)

# 16 bytes = 128 bits of entropy, the floor for share links
INVITE_TOKEN_BYTES = max(16, _int_env("INVITE_TOKEN_BYTES", 16))

BOOTSTRAP_EMAIL_DOMAIN = os.environ.get("BOOTSTRAP_EMAIL_DOMAIN", "example.com")
