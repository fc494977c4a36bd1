from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from dotenv import load_dotenv
load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite:///./mindspark.db"
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "qwen:latest"
    ollama_temperature: float = 0.7
    image_base_url: str = "https://image.pollinations.ai/prompt"
    explanation_words: int = 100
    jwt_secret_key: str = "your-secret-key-here-change-in-production"
    jwt_algorithm: str = "HS256"
    history_page_size: int = 10
    cors_allow_origins: str = "*"
    log_level: str = "INFO"
    log_dir: str = "logs"
    host: str = "0.0.0.0"
    port: int = 5001

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_allow_origins.split(",") if origin.strip()] or ["*"]


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()


def _engine_kwargs(url: str) -> dict:
    # SQLite connections are handed between the event loop and the threadpool.
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {}


engine = create_engine(settings.database_url, **_engine_kwargs(settings.database_url))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

def create_db():
    # Import models so they register on Base before create_all.
    from api.models import models  # noqa: F401
    Base.metadata.create_all(bind=engine)
