"""Client-side view of a file the user picked for upload."""
from __future__ import annotations
import mimetypes
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class VideoFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    content_type: str = ""       # MIME type as reported by the picker, may be empty
    size: int = Field(ge=0)
    data: bytes = b""

    @classmethod
    def from_bytes(cls, name: str, data: bytes, content_type: str | None = None) -> "VideoFile":
        if content_type is None:
            content_type = mimetypes.guess_type(name)[0] or ""
        return cls(name=name, content_type=content_type, size=len(data), data=data)

    @classmethod
    def from_path(cls, path: str | Path) -> "VideoFile":
        path = Path(path)
        return cls.from_bytes(path.name, path.read_bytes())
