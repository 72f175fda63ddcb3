from typing import List, Optional

from pydantic_settings import BaseSettings
from urllib.parse import quote_plus


class Settings(BaseSettings):
    env: str = "local"

    postgres_user: str = "postgres"
    postgres_password: str = ""
    postgres_db: str = "storefront"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    # full URL wins over the postgres_* parts (sqlite for local runs / tests)
    sqlalchemy_url: Optional[str] = None

    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    tiptoppay_public_id: str = ""
    tiptoppay_api_key: str = ""
    tiptoppay_api_url: str = "https://api.tiptoppay.kz/v1"
    tiptoppay_timeout: float = 15.0
    tiptoppay_enforce_signature: bool = False

    guest_retention_days: int = 30

    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    @property
    def database_url(self):
        if self.sqlalchemy_url:
            return self.sqlalchemy_url

        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"
        frozen = True

settings = Settings()
