"""Generated artifact models: the file tree plus its parsed descriptor."""

from __future__ import annotations

import json
import re
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..validator.result import ValidationResult

Stack = Literal["node", "ssjs"]

# Where each stack keeps its machine-readable descriptor
DESCRIPTOR_PATHS: dict[str, str] = {
    "node": "public/config.json",
    "ssjs": "config.json",
}

_DRIVE_RE = re.compile(r"^[A-Za-z]:")


def is_safe_path(path: str) -> bool:
    """True for a relative POSIX path that stays inside the project root."""
    if not path or path.startswith("/") or "\\" in path or _DRIVE_RE.match(path):
        return False
    return all(part not in ("", ".", "..") for part in path.split("/"))


class FileEntry(BaseModel):
    path: str
    content: str


class GeneratedArtifact(BaseModel):
    """A complete activity as produced by the template engine.

    ``descriptor`` is the parsed form of the descriptor file, or ``None``
    when that file is missing or not valid JSON.
    """

    model_config = ConfigDict(populate_by_name=True)

    stack: Stack = "node"
    file_tree: list[FileEntry] = Field(default=[], alias="fileTree")
    descriptor: Optional[Any] = Field(default=None, alias="configJson")
    validation: Optional[ValidationResult] = None

    @classmethod
    def from_files(cls, files: dict[str, str], stack: Stack = "node") -> GeneratedArtifact:
        """Build an artifact from a path -> content mapping, parsing the descriptor."""
        descriptor = None
        raw = files.get(DESCRIPTOR_PATHS[stack])
        if raw is not None:
            try:
                descriptor = json.loads(raw)
            except json.JSONDecodeError:
                descriptor = None
        return cls(
            stack=stack,
            file_tree=[FileEntry(path=path, content=content) for path, content in files.items()],
            descriptor=descriptor,
        )

    @property
    def files(self) -> dict[str, str]:
        return {entry.path: entry.content for entry in self.file_tree}

    def get(self, path: str) -> Optional[str]:
        for entry in self.file_tree:
            if entry.path == path:
                return entry.content
        return None
