import sys

from pydantic_settings import BaseSettings

_ENV_FILE = None if "pytest" in sys.modules else ".env"


class Settings(BaseSettings):
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # "memory" or "cosmos"
    STORE_BACKEND: str = "memory"
    STORE_TIMEOUT_SECONDS: float = 10.0
    MAX_HIERARCHY_NODES: int = 10_000

    COSMOS_DB_ENDPOINT: str = ""
    COSMOS_DB_KEY: str = ""
    COSMOS_DB_DATABASE: str = "hierarchigraph"
    COSMOS_DB_VERTICES_CONTAINER: str = "employees"
    COSMOS_DB_EDGES_CONTAINER: str = "manages"

    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    model_config = {
        "env_file": _ENV_FILE,
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }


settings = Settings()
