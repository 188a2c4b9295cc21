import os
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy.engine import URL, make_url

load_dotenv()

INSECURE_JWT_SECRET = "carnival-secret-key"


class Settings:
    """Runtime configuration, read from the environment when instantiated."""

    def __init__(self):
        self.APP_NAME: str = os.getenv("APP_NAME", "Carnival Marketplace API")
        self.ENVIRONMENT: str = os.getenv("APP_ENV", os.getenv("NODE_ENV", "development"))
        self.HOST: str = os.getenv("HOST", "0.0.0.0")
        self.PORT: int = int(os.getenv("PORT", "3001"))
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

        self.DATABASE_URL: Optional[str] = os.getenv("DATABASE_URL")
        self.DB_HOST: str = os.getenv("DB_HOST", "localhost")
        self.DB_PORT: int = int(os.getenv("DB_PORT", "5432"))
        self.DB_NAME: str = os.getenv("DB_NAME", "carnival_marketplace")
        self.DB_USER: str = os.getenv("DB_USER", "postgres")
        self.DB_PASSWORD: str = os.getenv("DB_PASSWORD", "password")
        self.DB_POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "5"))
        self.DB_POOL_TIMEOUT: int = int(os.getenv("DB_POOL_TIMEOUT", "30"))
        self.DB_POOL_RECYCLE: int = int(os.getenv("DB_POOL_RECYCLE", "300"))

        self.FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:8888")

        self.JWT_SECRET: str = os.getenv("JWT_SECRET", INSECURE_JWT_SECRET)
        self.JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
        self.ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)))
        self.BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))

        self.RATE_LIMIT_MAX: int = int(os.getenv("RATE_LIMIT_MAX", "100"))
        self.RATE_LIMIT_WINDOW_SECONDS: int = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", str(15 * 60)))
        self.MAX_BODY_BYTES: int = int(os.getenv("MAX_BODY_BYTES", str(10 * 1024 * 1024)))

        self.UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", "uploads")
        self.MAX_UPLOAD_BYTES: int = int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))
        self.PLATFORM_FEE_PERCENT: str = os.getenv("PLATFORM_FEE_PERCENT", "5")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def uses_insecure_secret(self) -> bool:
        return self.JWT_SECRET == INSECURE_JWT_SECRET

    @property
    def database_url(self) -> URL:
        if self.DATABASE_URL:
            raw = self.DATABASE_URL
            # SQLAlchemy no longer accepts the short scheme many hosts hand out
            if raw.startswith("postgres://"):
                raw = "postgresql://" + raw[len("postgres://"):]
            return make_url(raw)
        return URL.create(
            "postgresql+psycopg2",
            username=self.DB_USER,
            password=self.DB_PASSWORD,
            host=self.DB_HOST,
            port=self.DB_PORT,
            database=self.DB_NAME,
        )

    @property
    def database_ssl(self) -> bool:
        """TLS is always requested for DATABASE_URL, only in production otherwise."""
        if self.DATABASE_URL:
            return True
        return self.is_production


settings = Settings()
