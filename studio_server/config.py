"""Server settings, read from the environment (and a local .env file)."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()  # load environment variables from .env file

DEFAULT_DATA_DIR = Path(__file__).parent / "data"

STUDIO_DB_PATH = Path(os.getenv("STUDIO_DB_PATH", str(DEFAULT_DATA_DIR / "studio.db")))
STUDIO_TOOLS_FILE = Path(os.getenv("STUDIO_TOOLS_FILE", str(DEFAULT_DATA_DIR / "tools.json")))
STUDIO_NEURONS_FILE = Path(
    os.getenv("STUDIO_NEURONS_FILE", str(DEFAULT_DATA_DIR / "neurons.json"))
)

# comma-separated values for multiple origins, or "*" for all (development only)
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")
