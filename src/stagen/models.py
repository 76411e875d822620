from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, computed_field

DIR_SIZE = "-"


class FileEntry(BaseModel):
    """One entry of the ``HEAD`` tree listing.

    Attributes:
        path: Repository-relative, slash-separated path.
        file_name: Basename of ``path``.
        mode: Git file mode string (e.g. ``100644``).
        size: Blob size in bytes as a string, or ``DIR_SIZE`` for directories.
    """

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Path relative to repository root")
    file_name: str = Field(..., description="Basename of the path")
    mode: str = Field(..., description="Git file mode")
    size: str = Field(..., description="Size in bytes, or '-' for directories")

    @computed_field
    @property
    def is_dir(self) -> bool:
        """Whether the entry stands for a directory rather than a blob."""
        return self.size == DIR_SIZE

    @computed_field
    @property
    def depth(self) -> int:
        """Number of path components, used to climb back to the output root."""
        return self.path.count("/") + 1


class CommitEntry(BaseModel):
    """A commit from the recent history, newest first."""

    model_config = ConfigDict(frozen=True)

    hash: str
    short_hash: str
    author: str
    date: str = Field(..., description="Author date, YYYY-MM-DD")
    subject: str
    body: str = ""
    files: list[str] = Field(default_factory=list, description="Paths touched by the commit")
    stats: str = Field(default="", description="git show --stat summary")


class RefEntry(BaseModel):
    """A branch, tag or other ref as listed by ``git for-each-ref``."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Short ref name")
    hash: str = Field(..., description="Object the ref points at")
    type: str = Field(..., description="Git object type of the target")
    ref: str = Field(default="", description="Full ref name, e.g. refs/heads/main")

    @computed_field
    @property
    def kind(self) -> str:
        """``branch``, ``tag`` or ``remote`` from the ref namespace, else the object type."""
        if self.ref.startswith("refs/tags/") or self.type == "tag":
            return "tag"
        if self.ref.startswith("refs/remotes/"):
            return "remote"
        if self.ref.startswith("refs/heads/") or (not self.ref and self.type == "commit"):
            return "branch"
        return self.type


class Repository(BaseModel):
    """Everything extracted from one repository, as persisted in the aggregate index."""

    model_config = ConfigDict(frozen=True)

    name: str
    desc: str = ""
    url: str = ""
    dir: str = Field(..., description="Output directory basename, identity key in the aggregate index")
    last_commit: str = ""
    files: list[FileEntry] = Field(default_factory=list)
    commits: list[CommitEntry] = Field(default_factory=list)
    refs: list[RefEntry] = Field(default_factory=list)
    readme_content: str = ""
    readme_name: str = ""
