from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class StagenError(Exception):
    """Base exception for errors in the stagen package."""


@dataclass(frozen=True)
class GitCommandError(StagenError):
    """Raised when an external command fails or cannot be launched."""

    command: str
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        detail = self.stderr.strip() or self.stdout.strip()
        return f"`{self.command}` exited with status {self.returncode}: {detail}"


@dataclass(frozen=True)
class OutputWriteError(StagenError):
    """Raised when a generated page or the index cannot be written."""

    path: Path
    reason: str

    def __str__(self) -> str:
        return f"cannot write {self.path}: {self.reason}"


@dataclass(frozen=True)
class MissingArgumentError(StagenError):
    """Raised when required settings are neither given on the command line nor in the environment."""

    names: tuple[str, ...]
    message: str = "Missing required arguments."

    def __str__(self) -> str:
        return f"{', '.join(self.names)} are required"
