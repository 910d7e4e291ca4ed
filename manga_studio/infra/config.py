import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DATA_DIR = Path(os.environ.get("MANGA_STUDIO_DATA_DIR", Path.home() / ".manga-studio"))
DB_PATH = DATA_DIR / "documents.db"

# Manga projects live in the same collection as plain text books;
# the "type" field tells them apart.
PROJECTS_COLLECTION = os.environ.get("MANGA_PROJECTS_COLLECTION", "books")

# Seconds of editor inactivity before a pending auto-save fires
AUTO_SAVE_DELAY_SECONDS: float = float(os.environ.get("MANGA_AUTO_SAVE_DELAY", "3.0"))

CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("MANGA_STUDIO_CORS_ORIGINS", "http://localhost:8081").split(",")
    if origin.strip()
]

LOG_LEVEL = os.environ.get("MANGA_STUDIO_LOG_LEVEL", "info")


def update_auto_save_delay(seconds: float) -> None:
    """Update AUTO_SAVE_DELAY_SECONDS at runtime."""
    global AUTO_SAVE_DELAY_SECONDS  # noqa: PLW0603
    if seconds <= 0:
        raise ValueError("auto-save delay must be positive")
    AUTO_SAVE_DELAY_SECONDS = seconds


def ensure_data_dir() -> None:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
