from dotenv import load_dotenv
from pydantic import BaseModel
from typing import List, Optional
import os

# Loads .env automatically
load_dotenv()


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "development")
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./expenses.db")
    jwt_secret: str = os.getenv("JWT_SECRET", "change-me")
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    session_cookie_name: str = os.getenv("SESSION_COOKIE_NAME", "__session")

    # Identity provider directory (user profile lookups)
    identity_api_url: Optional[str] = os.getenv("IDENTITY_API_URL")
    identity_api_key: Optional[str] = os.getenv("IDENTITY_API_KEY")
    identity_api_timeout: float = float(os.getenv("IDENTITY_API_TIMEOUT", "5.0"))

    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    cors_origins: List[str] = _split_origins(
        os.getenv(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,http://127.0.0.1:3000",
        )
    )


# Global settings instance
settings = Settings()
