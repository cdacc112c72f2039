"""Runtime configuration model for procspawn."""

import os

from pydantic import BaseModel, Field

from procspawn.constants import (
    DEFAULT_ENCODING,
    DEFAULT_FILE_MODE,
    DEFAULT_READ_CHUNK_SIZE,
    DEFAULT_SHELL,
)


class SpawnConfig(BaseModel):
    """Defaults applied when building and running a spawn request."""

    shell: str = DEFAULT_SHELL
    null_device: str = os.devnull
    file_mode: int = Field(default=DEFAULT_FILE_MODE, ge=0, le=0o7777)
    read_chunk_size: int = Field(default=DEFAULT_READ_CHUNK_SIZE, gt=0)
    encoding: str = DEFAULT_ENCODING
