"""
Settings loaded from the environment (and a `.env` file when present).

    VERSIONIC_DATABASE_URL   SQLAlchemy URL (default sqlite:///versionic.db)
    VERSIONIC_ECHO_SQL       "1"/"true" to log emitted SQL
"""

import os

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field


class VersionicSettings(BaseModel):
    database_url: str = Field(default="sqlite:///versionic.db")
    echo_sql: bool = False


def load_settings() -> VersionicSettings:
    load_dotenv(find_dotenv(usecwd=True))
    kwargs: dict = {}

    if val := os.environ.get("VERSIONIC_DATABASE_URL"):
        kwargs["database_url"] = val

    if val := os.environ.get("VERSIONIC_ECHO_SQL"):
        kwargs["echo_sql"] = val.strip().lower() in ("1", "true", "yes", "on")

    return VersionicSettings(**kwargs)
