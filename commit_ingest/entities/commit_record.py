"""Commit record entities - one structured record per visited commit."""

from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import ChangeKind, ContentType

# (line text, 0-based line index on its side)
Line = Tuple[str, int]


class FileSide(BaseModel):
    """One side (old or new) of a changed file."""

    model_config = ConfigDict(frozen=True)

    id: str  # Full hex object id
    path: str
    # Filled only when the content was loaded
    size: Optional[int] = None
    type: Optional[ContentType] = None


class Edit(BaseModel):
    """A contiguous replacement region of a line diff."""

    model_config = ConfigDict(frozen=True)

    removed: List[Line] = Field(default_factory=list)
    added: List[Line] = Field(default_factory=list)


class LineCount(BaseModel):
    model_config = ConfigDict(frozen=True)

    added: int = Field(default=0, ge=0)
    removed: int = Field(default=0, ge=0)


class ChangedFile(BaseModel):
    """
    A single path changed by a commit.

    The kind decides which sides exist: ``add`` has no old file, ``delete``
    has no new file, every other kind has both. ``diff`` is None when the
    content was not diffed (binary or gitlink sides).
    """

    model_config = ConfigDict(frozen=True)

    kind: ChangeKind
    old_file: Optional[FileSide] = None
    new_file: Optional[FileSide] = None
    diff: Optional[List[Edit]] = None
    loc: LineCount = Field(default_factory=LineCount)

    @model_validator(mode="after")
    def _check_sides(self) -> "ChangedFile":
        if self.kind.has_old_file != (self.old_file is not None):
            raise ValueError(f"{self.kind.value} change has inconsistent old_file")
        if self.kind.has_new_file != (self.new_file is not None):
            raise ValueError(f"{self.kind.value} change has inconsistent new_file")
        return self

    @property
    def path(self) -> str:
        side = self.new_file or self.old_file
        return side.path


class CommitRecord(BaseModel):
    """Structured description of one commit, consumed by the scoring engine."""

    model_config = ConfigDict(frozen=True)

    id: str
    author: str
    email: str
    timestamp: datetime  # Author time with the author's timezone
    between_time: int  # Committer seconds minus author seconds, may be negative
    message: str
    parents: List[str] = Field(default_factory=list)
    changed_files: List[ChangedFile] = Field(default_factory=list)

    @property
    def is_root(self) -> bool:
        return not self.parents

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1
