"""Store configuration.

Settings can be given directly or read from the environment. ``from_env``
loads a ``.env`` file first (values already present in the environment
win) and then reads the ``FILESTORE_*`` variables:

    FILESTORE_LOG_PATH       path of the durable operation log
    FILESTORE_APPEND_LOG     keep earlier sessions in the log file
    FILESTORE_READ_ONLY      start in read-only mode
    FILESTORE_SEED_DEMO      build the demo tree on start-up
    FILESTORE_RECENT_LIMIT   default number of records returned by recent()

Raw strings are handed to the model as-is; pydantic parses booleans
(``1/0/true/false/yes/no/on/off``, any case) and integers.
"""

import os
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "FILESTORE_"


class StoreConfig(BaseModel):
    """Settings for building a Store.

    Args:
        log_path: Path of the durable operation log file.
        append_log: Keep earlier sessions instead of truncating the log file.
        read_only: Whether the store starts in read-only mode.
        seed_demo: Whether to build the demo tree at construction.
        recent_limit: Default number of records returned by recent().
    """

    log_path: Path = Field(
        default=Path("operations.log"), description="Path of the durable operation log"
    )
    append_log: bool = Field(
        default=False, description="Keep earlier sessions in the log file"
    )
    read_only: bool = Field(default=False, description="Start in read-only mode")
    seed_demo: bool = Field(
        default=False, description="Build the demo tree at construction"
    )
    recent_limit: int = Field(
        default=100, description="Default number of records returned by recent()"
    )

    @field_validator("recent_limit")
    @classmethod
    def validate_recent_limit(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("recent_limit must be positive")
        return v

    @classmethod
    def from_env(
        cls, dotenv_path: Optional[Union[str, Path]] = None
    ) -> "StoreConfig":
        """Build a configuration from environment variables.

        Args:
            dotenv_path: Explicit .env file to load (defaults to searching
                from the working directory).

        Returns:
            New StoreConfig; unset or empty variables keep their defaults.

        Raises:
            ValidationError: If a variable holds an unparsable value.
        """
        load_dotenv(dotenv_path=dotenv_path, override=False)

        data = {}
        for field_name in cls.model_fields:
            raw = os.environ.get(f"{ENV_PREFIX}{field_name.upper()}")
            if raw is not None and raw.strip():
                data[field_name] = raw.strip()

        return cls(**data)
