"""Application configuration loaded from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "REFERENCER_",
        "extra": "ignore",
    }

    # Database
    database_url: str = "sqlite:///./yt_referencer.db"

    # CORS
    extension_origin: str = "chrome-extension://gnnmpolacegkhdellgjmpjbmnhabloop"
    allowed_origins: str = ""

    # Sessions (issued by the auth provider, read here)
    session_cookie_name: str = "referencer_session"

    # Client
    api_base_url: str = "http://localhost:3000/api"
    request_timeout_sec: float = 15.0

    # Sharing
    share_slug_length: int = 10


settings = Settings()
