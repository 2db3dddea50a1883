"""Default configuration for the ComicTranslate desktop application."""
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

# Application identity
APP_NAME = "ComicTranslate"
APP_VERSION = "0.1.0"

# Paths
BASE_PATH = Path(__file__).resolve().parent
STYLES_DIR = BASE_PATH / "resources" / "styles"

# Input files
ARCHIVE_EXTENSIONS = (".cbz", ".cbr", ".zip")
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp", ".gif")
# Documented upload ceiling; archives are opened lazily so it is not enforced.
MAX_UPLOAD_BYTES = 1024 * 1024 * 1024

# Upload preprocessing
MAX_UPLOAD_DIMENSION = 1536
UPLOAD_JPEG_QUALITY = 0.85

# Translation service
DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_TEMPERATURE = 0.2
GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
# First match wins.
API_KEY_ENV_VARS = ("API_KEY", "GEMINI_API_KEY")

# Overlay text fitting (pixel sizes)
FIT_MIN_FONT_SIZE = 8
FIT_START_MIN_FONT_SIZE = 10
FIT_START_MAX_FONT_SIZE = 30
FIT_DEFAULT_FONT_SIZE = 20

# Confidence display
LOW_CONFIDENCE_THRESHOLD = 50
HIGH_CONFIDENCE_THRESHOLD = 90
MEDIUM_CONFIDENCE_THRESHOLD = 70

# Preferred font families for overlay text, first installed one is used.
DEFAULT_COMIC_FONT_FAMILIES = ("Comic Neue", "Comic Sans MS", "Bangers")


@dataclass
class AppConfig:
    comic_font_family: Optional[str] = None


app_config = AppConfig()
