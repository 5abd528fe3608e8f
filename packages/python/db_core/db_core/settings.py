"""Configuration helpers for MongoDB connections used by db_core.

Values are read from ``MONGO_*`` environment variables (or a ``.env`` file)
when the module is imported. Tests and scripts can build their own
``MongoSettings`` and pass the values to ``get_mongo_client``/``get_db``.
"""
from loguru import logger

from pydantic_settings import BaseSettings, SettingsConfigDict


class MongoSettings(BaseSettings):
    """Basic MongoDB configuration shared by the comment repositories."""

    model_config = SettingsConfigDict(env_prefix="MONGO_", env_file=".env", extra="ignore")

    uri: str = "mongodb://localhost:27017"
    db_name: str = "deliberation"
    server_selection_timeout_ms: int = 5000


settings: MongoSettings = MongoSettings()
logger.info(f"MongoSettings initialized with uri={settings.uri} db_name={settings.db_name}")
