"""
Application settings loaded from environment variables or .env file.

Priority:
  1. Environment variables (always win)
  2. .env file in project root (local dev)
  3. Defaults

When ENVIRONMENT is staging/production and DB_PASSWORD is not set, the
credentials are fetched from AWS Secrets Manager named by DB_SECRET_ID.

DATABASE_URL_OVERRIDE, when set, replaces every other DB setting (tests and
one-off scripts point it at SQLite).
"""
import json
import logging
from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_repo_root = Path(__file__).resolve().parents[3]  # backend/ → project root


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_repo_root / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # ------------------------------------------------------------------ #
    # Runtime environment
    # ------------------------------------------------------------------ #
    environment: str = "development"

    # ------------------------------------------------------------------ #
    # Database
    # ------------------------------------------------------------------ #
    db_host: str = ""
    db_port: int = 5432
    db_name: str = "opmc_ops"
    db_user: str = "postgres"
    db_password: str = ""

    # Local dev overrides (used when ENVIRONMENT=development)
    local_db_host: str = "localhost"
    local_db_port: int = 5433
    local_db_name: str = "opmc_ops_dev"
    local_db_user: str = "postgres"
    local_db_password: str = "localpassword"

    database_url_override: str = ""

    # Connection pool (not applied to SQLite URLs)
    db_pool_size: int = 3
    db_max_overflow: int = 2

    # ------------------------------------------------------------------ #
    # AWS
    # ------------------------------------------------------------------ #
    aws_region: str = "ap-south-1"
    db_secret_id: str = "opmc-ops/report-db"

    # ------------------------------------------------------------------ #
    # Daily operational report
    # ------------------------------------------------------------------ #
    report_timezone: str = "Asia/Colombo"
    drop_wire_item_code: str = "OSPFTA003"

    # ------------------------------------------------------------------ #
    # CORS (ignored in development, where every origin is allowed)
    # ------------------------------------------------------------------ #
    cors_origins: list[str] = []

    # ------------------------------------------------------------------ #
    # Computed properties
    # ------------------------------------------------------------------ #

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def database_url(self) -> str:
        """Async asyncpg URL."""
        if self.database_url_override:
            return self.database_url_override
        host, port, name, user, password = self._resolve_db_credentials()
        return f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{name}"

    @property
    def database_url_sync(self) -> str:
        """Sync psycopg2 URL (Alembic, seed runner)."""
        host, port, name, user, password = self._resolve_db_credentials()
        return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{name}"

    def _resolve_db_credentials(self) -> tuple[str, int, str, str, str]:
        if self.is_development:
            return (
                self.local_db_host,
                self.local_db_port,
                self.local_db_name,
                self.local_db_user,
                self.local_db_password,
            )

        host = self.db_host
        password = self.db_password
        user = self.db_user

        # Host without password: the password lives in DB_SECRET_ID
        if host and not password:
            password, user = self._fetch_db_credentials_from_secrets_manager(user)

        if not host:
            raise RuntimeError("DB_HOST is not set. Update your .env or the task definition.")

        return host, self.db_port, self.db_name, user, password

    def _fetch_db_credentials_from_secrets_manager(
        self, default_user: str
    ) -> tuple[str, str]:
        try:
            import boto3

            client = boto3.client("secretsmanager", region_name=self.aws_region)
            secret = client.get_secret_value(SecretId=self.db_secret_id)
            creds = json.loads(secret["SecretString"])
            return creds.get("password", ""), creds.get("username", default_user)
        except Exception as exc:
            logger.error("Secrets Manager lookup of %s failed: %s", self.db_secret_id, exc)
            raise RuntimeError(f"No DB credentials: secret {self.db_secret_id} unavailable") from exc

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        allowed = {"development", "staging", "production"}
        if v.lower() not in allowed:
            raise ValueError(f"ENVIRONMENT must be one of {allowed}")
        return v.lower()

    @field_validator("report_timezone")
    @classmethod
    def validate_report_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"REPORT_TIMEZONE {v!r} is not a known IANA zone") from exc
        return v

    @field_validator("drop_wire_item_code")
    @classmethod
    def normalize_drop_wire_code(cls, v: str) -> str:
        return v.strip().upper()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
