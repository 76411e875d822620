"""
stagen — Generate a static HTML viewer for a git repository.

Overview
--------
For one repository, stagen writes into ``--out``:

- ``index.html`` (file listing), ``log.html``, ``commits.html``, ``refs.html``
  and ``readme.html``;
- ``file/<path>.html`` for every file at ``HEAD``;
- ``commit/<hash>.html`` for each of the most recent commits, with the diff.

It then merges the repository into ``index.json`` next to ``--out`` and
re-renders the aggregate ``index.html`` listing every repository generated
there. Running it again for the same output directory replaces that entry.

Every option may also be given as a ``STAGEN_<OPTION>`` environment variable
or in a ``.env`` file.

Usage
-----
    stagen --repo ~/src/project --out public/project --name project --desc "My project"
"""

from __future__ import annotations

import argparse
import shutil
import sys
from typing import TYPE_CHECKING

from pydantic import ValidationError

from stagen import __version__
from stagen.exceptions import MissingArgumentError, OutputWriteError, StagenError
from stagen.extraction import extract_repository
from stagen.logging import logger, setup_logging
from stagen.main_index import update_main_index
from stagen.pages import PageAssembler, PageRenderer
from stagen.runner import SubprocessRunner
from stagen.settings import DEFAULT_MAX_COMMITS, DEFAULT_STYLE_PATH, Settings, env_defaults

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from stagen.runner import CommandRunner

REQUIRED = ("repo", "out", "name")


def build_parser(defaults: dict[str, str] | None = None) -> argparse.ArgumentParser:
    """Build the command line parser.

    Args:
        defaults (dict[str, str] | None): values taken from the environment, overriding built-in defaults

    Returns:
        argparse.ArgumentParser: Configured parser.
    """
    env = defaults or {}
    p = argparse.ArgumentParser(
        prog="stagen",
        description="Generate a static HTML viewer for a git repository.",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--repo", type=str, default=env.get("repo"), help="Git repository path (required).")
    p.add_argument("--out", type=str, default=env.get("out"), help="Output directory (required).")
    p.add_argument("--name", type=str, default=env.get("name"), help="Repository name (required).")
    p.add_argument("--desc", type=str, default=env.get("desc", ""), help="Repository description.")
    p.add_argument("--url", type=str, default=env.get("url", ""), help="Repository url.")
    p.add_argument(
        "--max-commits",
        type=int,
        default=env.get("max_commits", DEFAULT_MAX_COMMITS),
        help="Number of recent commits to render.",
    )
    p.add_argument(
        "--style-path",
        type=str,
        default=env.get("style_path", DEFAULT_STYLE_PATH),
        help="Stylesheet href used by the pages.",
    )
    p.add_argument(
        "--templates",
        type=str,
        default=env.get("templates"),
        help="Directory of templates overriding the packaged ones.",
    )
    p.add_argument(
        "--stylesheet",
        type=str,
        default=env.get("stylesheet"),
        help="Stylesheet published next to the aggregate index.",
    )
    p.add_argument(
        "--timeout",
        type=float,
        default=env.get("timeout"),
        help="Seconds before a git command is abandoned.",
    )
    p.add_argument("--log-file", type=str, default=env.get("log_file", ""), help="Log file path.")
    return p


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    """Parse command line arguments, completed by ``STAGEN_*`` environment values.

    Args:
        argv (Sequence[str] | None): Optional CLI arguments.

    Raises:
        MissingArgumentError: if repo, out or name are given nowhere.

    Returns:
        Settings: the validated run configuration
    """
    args = build_parser(env_defaults()).parse_args(argv)
    missing = tuple(f"--{name}" for name in REQUIRED if not getattr(args, name))
    if missing:
        raise MissingArgumentError(names=missing)
    return Settings.model_validate(vars(args))


def prepare_output(out: Path) -> None:
    """Start from an empty output directory.

    Raises:
        OutputWriteError: if the directory cannot be removed or created.
    """
    try:
        if out.exists():
            shutil.rmtree(out)
        out.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise OutputWriteError(path=out, reason=str(e)) from e


def generate(settings: Settings, runner: CommandRunner | None = None) -> Path:
    """Run the whole pipeline for one repository.

    Args:
        settings (Settings): run configuration
        runner (CommandRunner | None): runs git; a :class:`SubprocessRunner` by default

    Returns:
        Path: the output directory
    """
    runner = runner or SubprocessRunner(timeout=settings.timeout)
    renderer = PageRenderer(settings.templates)

    repo = extract_repository(settings, runner)
    prepare_output(settings.out)
    PageAssembler(settings, repo, renderer, runner).generate()
    update_main_index(
        settings.index_root,
        repo,
        renderer,
        stylesheet=settings.stylesheet,
        style_path=settings.style_path,
    )
    return settings.out


def main(argv: Sequence[str] | None = None) -> int:
    try:
        settings = parse_args(argv)
    except (MissingArgumentError, ValidationError) as e:
        sys.stderr.write(f"stagen: {e}\n")
        return 2
    if settings.log_file:
        setup_logging(settings.log_file)

    try:
        out = generate(settings)
    except StagenError as e:
        logger.error("generation failed", error=str(e), error_type=type(e).__name__)
        sys.stderr.write(f"stagen: {e}\n")
        return 1

    print(f"Generated static git viewer in {out}")  # noqa: T201
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
