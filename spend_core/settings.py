import logging
import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


class Settings:
    PROJECT_NAME: str = "Site Spending Dashboard"
    VERSION: str = "0.1.0"

    # Google Sheet export source
    SHEET_ID: str = os.getenv("SHEET_ID", "14PZTMvf1iLqV-0_XrGIRq6l1zkoCj4cKe-4IXqKRBUs")
    SHEET_GID: int = int(os.getenv("SHEET_GID", "1825334005"))
    SHEET_TIMEOUT_SECONDS: float = float(os.getenv("SHEET_TIMEOUT_SECONDS", "30"))

    # Narrative generation (OpenAI-compatible endpoint)
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    OPENAI_BASE_URL: Optional[str] = os.getenv("OPENAI_BASE_URL") or None

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # CORS, comma-separated
    ALLOWED_ORIGINS: list = [
        x.strip()
        for x in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
        if x.strip()
    ]


settings = Settings()


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
