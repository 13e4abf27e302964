from __future__ import annotations
import os
from pydantic import BaseModel

class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "dev")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    database_url: str = os.getenv("DATABASE_URL", "postgresql+asyncpg://postgres:postgres@db:5432/pgcheck_dev")

    # Anonymous constraint names: <table>_<suffix>, suffix is 7 to 9 digits
    anon_suffix_min: int = int(os.getenv("PGCHECK_ANON_SUFFIX_MIN", "1000000"))
    anon_suffix_max: int = int(os.getenv("PGCHECK_ANON_SUFFIX_MAX", "999999999"))
    anon_name_attempts: int = int(os.getenv("PGCHECK_ANON_NAME_ATTEMPTS", "100"))

    # PostgreSQL NAMEDATALEN - 1
    max_identifier_length: int = int(os.getenv("PGCHECK_MAX_IDENTIFIER_LENGTH", "63"))

    snapshot_indent: int = int(os.getenv("PGCHECK_SNAPSHOT_INDENT", "2"))

settings = Settings()
