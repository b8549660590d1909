from typing import List, Optional, Tuple
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # App
    APP_NAME: str = "Status Hub"
    DEBUG: bool = False
    PORT: int = 8787
    LOG_FILE: str = "logs/status-hub.log"
    CORS_ORIGINS: str = "*" # e.g. "https://dash.example.com,http://localhost:5173"

    # Ingest security
    SHARED_SECRET: str = "change-me"
    TS_TOLERANCE_MS: int = 120_000
    MAX_BODY_BYTES: int = 256 * 1024

    # Log history
    LOG_RETENTION: int = 200

    # Postgres
    POSTGRES_USER: str = "status"
    POSTGRES_PASSWORD: str = "secret"
    POSTGRES_HOST: str = "postgres"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "status_db"
    DB_SSL: bool = False
    DATABASE_URL_OVERRIDE: Optional[str] = None # Full DSN, wins over POSTGRES_*
    DB_INIT_RETRIES: int = 5
    DB_INIT_DELAY: float = 2.0 # seconds, doubled after each failed attempt

    # Probe
    INGEST_URL: str = "http://localhost:8787/api/ingest"
    PROBE_TARGETS: str = "" # e.g. "api=http://api:8000/health,worker=http://worker:8000/health"
    PROBE_INTERVAL: float = 30.0
    PROBE_TIMEOUT: float = 3.0

    @property
    def DATABASE_URL(self) -> str:
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def cors_origins_list(self) -> List[str]:
        if not self.CORS_ORIGINS: return []
        return [x.strip() for x in self.CORS_ORIGINS.split(",") if x.strip()]

    @property
    def probe_targets_list(self) -> List[Tuple[str, str]]:
        """Parses "name=url" pairs, skipping malformed entries."""
        targets = []
        for item in self.PROBE_TARGETS.split(","):
            name, sep, url = item.partition("=")
            if sep and name.strip() and url.strip():
                targets.append((name.strip(), url.strip()))
        return targets

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
