from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class Document(BaseModel):
    """Raw candidate document submitted to the pipeline."""

    document_id: str
    filename: str = Field(repr=False)
    content: bytes = Field(repr=False)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def suffix(self) -> str:
        return Path(self.filename).suffix.lower()

    @classmethod
    def from_path(cls, path: str | Path, *, document_id: str | None = None) -> "Document":
        path = Path(path)
        return cls(
            document_id=document_id or path.name,
            filename=path.name,
            content=path.read_bytes(),
        )
