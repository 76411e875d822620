from __future__ import annotations

import os
from pathlib import Path

from dotenv import dotenv_values, find_dotenv
from pydantic import BaseModel, ConfigDict, Field, computed_field

ENV_FILE = find_dotenv(usecwd=True)
ENV_PREFIX = "STAGEN_"
DEFAULT_MAX_COMMITS = 50
DEFAULT_STYLE_PATH = "/style.css"


class Settings(BaseModel):
    """Configuration settings for one stagen run."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    repo: Path = Field(..., description="Git repository path.")
    out: Path = Field(..., description="Output directory.")
    name: str = Field(..., min_length=1, description="Repository name.")
    desc: str = Field(default="", description="Repository description.")
    url: str = Field(default="", description="Repository url.")

    max_commits: int = Field(
        default=DEFAULT_MAX_COMMITS,
        ge=1,
        description="Number of recent commits kept.",
    )
    style_path: str = Field(
        default=DEFAULT_STYLE_PATH,
        description="Stylesheet href used by every page.",
    )
    templates: Path | None = Field(
        default=None,
        description="Directory of Jinja2 templates overriding the packaged ones.",
    )
    stylesheet: Path | None = Field(
        default=None,
        description="Stylesheet copied next to the aggregate index.",
    )
    timeout: float | None = Field(
        default=None,
        gt=0,
        description="Per git command timeout in seconds.",
    )
    log_file: str = Field(default="", description="Log file path.")

    @computed_field
    @property
    def identity_key(self) -> str:
        """Basename of the output directory, unique per entry of the aggregate index."""
        return self.out.name

    @computed_field
    @property
    def index_root(self) -> Path:
        """Directory holding the aggregate ``index.json`` and ``index.html``."""
        return self.out.parent


def env_defaults(env_file: str | None = None) -> dict[str, str]:
    """Collect ``STAGEN_*`` values from the ``.env`` file and the process environment.

    Process environment variables win over the ``.env`` file.

    Args:
        env_file (str | None): the ``.env`` file to read; defaults to the one found from the cwd.

    Returns:
        dict[str, str]: lower-cased setting names (prefix removed) mapped to their raw values.
    """
    path = ENV_FILE if env_file is None else env_file
    merged: dict[str, str | None] = dict(dotenv_values(path)) if path else {}
    merged.update(os.environ)
    out: dict[str, str] = {}
    for key, value in merged.items():
        if not key.startswith(ENV_PREFIX) or value is None:
            continue
        out[key.removeprefix(ENV_PREFIX).lower()] = value
    return out
