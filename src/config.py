import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

POSTGRES_USER = os.getenv("POSTGRES_USER")
POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD")
POSTGRES_DB = os.getenv("POSTGRES_DB_URL")

postgres_file_name = f"{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_DB}"

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+asyncpg://{postgres_file_name}",
)

MEDIA_DIR = Path(os.getenv("MEDIA_DIR", "media"))
MEDIA_URL = os.getenv("MEDIA_URL", "/media")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

RANKING_LIMIT = int(os.getenv("RANKING_LIMIT", "20"))

MAX_AVATAR_BYTES = 2 * 1024 * 1024
DEFAULT_CATEGORIES = ["masculino", "feminino", "misto"]
