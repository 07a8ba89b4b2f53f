# asn_monitor/core/config.py
from functools import lru_cache
from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path

class Settings(BaseSettings):
    APP_NAME: str = "ASN Monitoring API"
    APP_VERSION: str = "0.1.0"
    APP_DESCRIPTION: str = "Registro de pegawai ASN y jadwal de KGB / kenaikan pangkat."
    API_PREFIX: str = "/api"

    API_KEY: str = "changeme"
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD: str = "123456"
    LOG_LEVEL: str = "INFO"

    # "sql" -> tabla relacional via SQLAlchemy, "local" -> archivo JSON embebido
    STORE_BACKEND: Literal["sql", "local"] = "sql"

    # URL completa; si viene vacía se arma con los datos de MySQL
    DATABASE_URL: str = ""
    CREATE_TABLES: bool = True

    # MySQL
    MYSQL_HOST: str = "localhost"
    MYSQL_PORT: int = 3306
    MYSQL_DB: str = "asn_monitoring"
    MYSQL_USER: str = "root"
    MYSQL_PASSWORD: str = ""
    MYSQL_CHARSET: str = "utf8mb4"

    LOCAL_STORE_PATH: str = "./data/asn.json"
    DATA_DIR: str = "./data/inbox"

    # jadwal
    KGB_INTERVAL_YEARS: int = 2
    PANGKAT_INTERVAL_YEARS: int = 4
    DUE_SOON_DAYS: int = 90
    NOTIFICATION_LIMIT: int = 200

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def data_path(self) -> Path:
        return Path(self.DATA_DIR).expanduser().resolve()

    @property
    def local_store_path(self) -> Path:
        return Path(self.LOCAL_STORE_PATH).expanduser().resolve()

    @property
    def sqlalchemy_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"mysql+pymysql://{self.MYSQL_USER}:{self.MYSQL_PASSWORD}"
            f"@{self.MYSQL_HOST}:{self.MYSQL_PORT}/{self.MYSQL_DB}"
            f"?charset={self.MYSQL_CHARSET}"
        )

@lru_cache
def get_settings() -> Settings:
    return Settings()
