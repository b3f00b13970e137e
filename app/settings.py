from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from gateway.descriptor import ConnectionDescriptor, Engine


@dataclass
class Settings:
    """
    Centralized application configuration.

    Does NOT depend on pydantic. Values are loaded from environment
    variables via Settings.from_env().
    """

    # --- App ---
    app_version: str = "dev"
    log_level: str = "INFO"

    # --- Gateway ---
    query_timeout_sec: float = 30.0

    # --- Liveness pool (process-wide MySQL pool for /ping) ---
    mysql_host: str = "localhost"
    mysql_user: str = "root"
    mysql_password: str = ""
    mysql_database: str = ""
    mysql_port: int = 3306
    ping_pool_size: int = 10
    ping_timeout_sec: float = 5.0

    @classmethod
    def from_env(cls) -> "Settings":
        """Build Settings from environment variables with sane fallbacks."""

        def getenv_int(name: str, default: int) -> int:
            raw = os.getenv(name)
            if raw is None or raw.strip() == "":
                return default
            try:
                return int(raw)
            except ValueError:
                return default

        def getenv_float(name: str, default: float) -> float:
            raw = os.getenv(name)
            if raw is None or raw.strip() == "":
                return default
            try:
                value = float(raw)
            except ValueError:
                return default
            return value if value > 0 else default

        return cls(
            app_version=os.getenv("APP_VERSION", cls.app_version),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
            query_timeout_sec=getenv_float("QUERY_TIMEOUT_SEC", cls.query_timeout_sec),
            mysql_host=os.getenv("MYSQL_HOST", cls.mysql_host),
            mysql_user=os.getenv("MYSQL_USER", cls.mysql_user),
            mysql_password=os.getenv("MYSQL_PASSWORD", cls.mysql_password),
            mysql_database=os.getenv("MYSQL_DATABASE", cls.mysql_database),
            mysql_port=getenv_int("MYSQL_PORT", cls.mysql_port),
            ping_pool_size=getenv_int("PING_POOL_SIZE", cls.ping_pool_size),
            ping_timeout_sec=getenv_float("PING_TIMEOUT_SEC", cls.ping_timeout_sec),
        )

    def ping_descriptor(self) -> ConnectionDescriptor:
        return ConnectionDescriptor(
            engine=Engine.MYSQL,
            host=self.mysql_host,
            port=self.mysql_port,
            user=self.mysql_user,
            password=self.mysql_password,
            database=self.mysql_database or None,
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings.from_env()
