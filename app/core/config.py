import os
from dotenv import load_dotenv
from urllib.parse import quote_plus

load_dotenv()

DEFAULT_BROWSER_APP_KEYWORDS = "chrome,msedge,edge,firefox,opera,brave,arc,vivaldi,safari"


def _split_csv(value: str):
    return [item.strip().lower() for item in value.split(",") if item.strip()]


class Settings:
    # Environment setting
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

    # Clerk Configuration
    CLERK_SECRET_KEY = os.getenv("CLERK_SECRET_KEY")

    # db creds
    DB_HOST = os.getenv("DB_HOST", "localhost")
    DB_USER = os.getenv("DB_USER", "postgres")
    DB_PASSWORD = os.getenv("DB_PASSWORD")
    DB_NAME = os.getenv("DB_NAME", "usage_ledger")
    DB_PORT = os.getenv("DB_PORT", "5432")

    # Process names that mark a native app as a browser (case-insensitive substring match)
    BROWSER_APP_KEYWORDS = _split_csv(os.getenv("BROWSER_APP_KEYWORDS", DEFAULT_BROWSER_APP_KEYWORDS))

    # Ingestion limits
    MAX_SESSION_DURATION_MS = int(os.getenv("MAX_SESSION_DURATION_MS", str(24 * 60 * 60 * 1000)))
    INGEST_TIMEOUT_SECONDS = float(os.getenv("INGEST_TIMEOUT_SECONDS", "10"))

    LOG_DIR = os.getenv("LOG_DIR", "logs")

    def _build_database_url(self):
        override = os.getenv("DATABASE_URL")
        if override:
            return override
        password = quote_plus(self.DB_PASSWORD or "")
        return f"postgresql+asyncpg://{self.DB_USER}:{password}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    @property
    def DATABASE_URL(self):
        return self._build_database_url()

    @property
    def IS_DEVELOPMENT(self):
        return self.ENVIRONMENT == "development"


settings = Settings()
