from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_RENDER_INTERVAL = 0.05


class ClientSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="MINDSPARK_", env_file=".env", extra="ignore")

    base_url: str = "http://localhost:5001"
    token: str | None = None
    render_interval: float = DEFAULT_RENDER_INTERVAL
    timeout: float = 60.0
