from psycopg.conninfo import make_conninfo
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    DB_HOST: str = "localhost"
    DB_NAME: str = "db"
    DB_USER: str = "root"
    DB_PASS: str = "root"
    DB_PORT: int = 5432
    DB_POOL_MIN: int = 1
    DB_POOL_MAX: int = 5
    # Apply migrations/*.sql on startup (CREATE TABLE IF NOT EXISTS)
    DB_AUTO_MIGRATE: bool = True

    # API
    PORT: int = 3001
    CORS_ORIGINS: str = "*"
    DEBUG: bool = False

    # File store: uploads land in UPLOADS_DIR/master-plans/<doc_id>/
    UPLOADS_DIR: str = "uploads"
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024

    @property
    def conninfo(self) -> str:
        return make_conninfo(
            host=self.DB_HOST,
            dbname=self.DB_NAME,
            user=self.DB_USER,
            password=self.DB_PASS,
            port=self.DB_PORT,
        )

    def cors_origins(self) -> list[str]:
        if not self.CORS_ORIGINS.strip() or self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
