# eduplatform/core/config.py
"""Application configuration using Pydantic."""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    database_url: str
    jwt_secret_key: str
    jwt_algorithm: str = 'HS256'
    access_token_expire_minutes: int = 60 * 24

    redis_url: str = 'redis://localhost:6379/0'
    rate_limit_backend: str = 'memory'  # 'memory' or 'redis'
    rate_limit_per_minute: int = 60
    auth_rate_limit_per_minute: int = 20

    api_prefix: str = '/api'
    app_version: str = '1.0.0'
    environment: str = 'development'
    log_level: str = 'info'
    allowed_origins: List[str] = ['*']

    db_pool_size: int = 15
    db_max_overflow: int = 25
    db_echo: bool = False

    model_config = {
        'env_file': '.env',
        'extra': 'ignore'
    }


settings = Settings()
