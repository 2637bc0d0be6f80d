# pooladmin/config.py
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # --- Organization ---
    organization_name: str = "Junta Usuarios Piscina Albrook"

    # --- Database ---
    database_url: str = "sqlite:///pooladmin/pool_dev.db"
    auto_create_tables: bool = True

    # --- Security / JWT ---
    jwt_secret: str = "dev-secret-please-change"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 12  # 12 hours
    refresh_token_expire_minutes: int = 60 * 24 * 14  # 14 days
    login_rate_limit: int = 10
    login_rate_window_seconds: int = 60

    # --- CORS ---
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    # --- Logging ---
    log_level: str = "INFO"
    log_json: bool = True

    # --- Document Generation ---
    pdf_output_dir: str = "uploads/pdfs"

    # --- Assistant ---
    assistant_api_key: Optional[str] = None
    assistant_model: str = "gemini-1.5-flash"
    assistant_api_url: str = "https://generativelanguage.googleapis.com/v1beta"
    assistant_timeout_seconds: float = 60.0
    assistant_temperature: float = 0.3

    @property
    def assistant_is_configured(self) -> bool:
        return bool(self.assistant_api_key)


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()

# Ensure path directory exists (for SQLite)
if settings.database_url.startswith("sqlite:///"):
    db_path = Path(settings.database_url.replace("sqlite:///", ""))
    db_path.parent.mkdir(parents=True, exist_ok=True)

# --- SQLAlchemy setup ---
engine = create_engine(
    settings.database_url,
    connect_args={"check_same_thread": False}
    if settings.database_url.startswith("sqlite")
    else {},
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()
