"""Upload source consumed by the original store."""

from pathlib import Path

from pydantic import BaseModel, Field


class UploadSource(BaseModel):
    """A file received by a front end, not yet stored.

    The store moves ``temporary_file`` into place; ``untrusted_name`` is only
    used after sanitization.
    """

    temporary_file: Path = Field(..., description="Path of the received file")
    untrusted_name: str = Field(..., min_length=1, description="Client supplied name")
