# projecthub/config.py

import os

from dotenv import load_dotenv

# ---------------- ENV ----------------
load_dotenv(dotenv_path=os.path.join(os.path.dirname(__file__), ".env"))
load_dotenv()


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./projecthub.db")
SQL_ECHO = _flag("SQL_ECHO")

SECRET_KEY = os.getenv("SECRET_KEY")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
# 7 days
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "10080"))

APP_ENV = os.getenv("APP_ENV", "production").lower()
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
FRONTEND_ORIGIN = os.getenv("FRONTEND_ORIGIN")

# user_liked is only computed when the caller names a viewer, unless this is set
FEED_ALWAYS_INCLUDE_USER_LIKED = _flag("FEED_ALWAYS_INCLUDE_USER_LIKED")

if not SECRET_KEY:
    raise RuntimeError("SECRET_KEY missing in .env!")


def is_development() -> bool:
    return APP_ENV == "development"
