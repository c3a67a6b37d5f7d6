"""
core/config.py
Centralized configuration using environment variables.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings:
    # App
    APP_HOST: str = os.getenv("APP_HOST", "0.0.0.0")
    APP_PORT: int = int(os.getenv("APP_PORT", 8000))
    FRONTEND_ORIGIN: str = os.getenv("FRONTEND_ORIGIN", "http://localhost:8081")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # MongoDB
    MONGO_URI: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    MONGO_DB_NAME: str = os.getenv("MONGO_DB_NAME", "certdesk")

    # Signing service
    SIGNING_SERVICE_URL: str = os.getenv(
        "SIGNING_SERVICE_URL", "http://localhost:8080/signCertificate"
    )
    SIGNING_TIMEOUT_SECONDS: float = float(os.getenv("SIGNING_TIMEOUT_SECONDS", 30))

    # Templates
    TEMPLATES_PREFIX: str = os.getenv("TEMPLATES_PREFIX", "templates")
    DEFAULT_TEMPLATE: str = os.getenv("DEFAULT_TEMPLATE", "adeverinta_template.docx")
    TEMPLATES_DIR: Path = Path(os.getenv("TEMPLATES_DIR", BASE_DIR / "templates"))
    TEMPLATE_EXTENSION: str = ".docx"
    MAX_TEMPLATE_BYTES: int = int(os.getenv("MAX_TEMPLATE_BYTES", 10 * 1024 * 1024))

    # Requests
    OTHER_PURPOSE_CODE: str = os.getenv("OTHER_PURPOSE_CODE", "other")
    RECENT_REVIEWED_LIMIT: int = int(os.getenv("RECENT_REVIEWED_LIMIT", 10))


settings = Settings()
