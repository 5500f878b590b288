"""
Environment configuration.

Values are read from the process environment, after loading a local
``.env`` file when one exists.
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_MONGO_URI = "mongodb://localhost:27017"
DEFAULT_DATABASE = "snack-track"
DEFAULT_USERS_COLLECTION = "users"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings(BaseModel):
    """Connection and behavior settings for the data store."""
    
    mongo_uri: str = DEFAULT_MONGO_URI
    database_name: str = DEFAULT_DATABASE
    users_collection: str = DEFAULT_USERS_COLLECTION
    strict_operators: bool = False
    timeout_seconds: Optional[float] = Field(None, gt=0)
    log_level: str = "INFO"
    
    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Settings":
        """
        Build settings from environment variables.
        
        Args:
            dotenv_path: Explicit .env file (searched for when omitted)
            
        Returns:
            Settings populated from MONGO_CONNECTION_URI, MONGO_DATABASE_NAME,
            MONGO_USERS_COLLECTION, QUERY_STRICT_OPERATORS,
            MONGO_TIMEOUT_SECONDS and LOG_LEVEL
        """
        load_dotenv(dotenv_path)
        
        return cls(
            mongo_uri=os.getenv("MONGO_CONNECTION_URI", DEFAULT_MONGO_URI),
            database_name=os.getenv("MONGO_DATABASE_NAME", DEFAULT_DATABASE),
            users_collection=os.getenv("MONGO_USERS_COLLECTION", DEFAULT_USERS_COLLECTION),
            strict_operators=os.getenv("QUERY_STRICT_OPERATORS", "false"),
            timeout_seconds=os.getenv("MONGO_TIMEOUT_SECONDS") or None,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for processes embedding the data store."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
