"""Query a git repository and parse the answers into :class:`~stagen.models.Repository`."""

from __future__ import annotations

import posixpath
from typing import TYPE_CHECKING

from stagen.exceptions import GitCommandError
from stagen.logging import logger
from stagen.models import DIR_SIZE, CommitEntry, FileEntry, RefEntry, Repository

if TYPE_CHECKING:
    from pathlib import Path

    from stagen.runner import CommandRunner
    from stagen.settings import Settings

GIT = "git"
FIELD_SEP = "|"
RECORD_SEP = "\x1e"
NUL = "\0"
LOG_FORMAT = "%H|%h|%an|%ad|%s|%b%x1e"
REF_FORMAT = "%(refname:short)|%(objectname)|%(objecttype)|%(refname)"
MIN_COMMIT_FIELDS = 5
MIN_REF_FIELDS = 3
MIN_TREE_FIELDS = 4

README_CANDIDATES = ("README.md", "README.txt", "README", "readme.md", "readme.txt", "readme")


def split_nul(text: str) -> list[str]:
    """Split ``-z`` command output on NUL, dropping empty entries.

    Paths come back unquoted this way, whatever bytes they contain.

    Args:
        text (str): raw command output

    Returns:
        list[str]: the entries, in order
    """
    return [entry.strip("\n") for entry in text.split(NUL) if entry.strip("\n")]


def non_empty_lines(text: str) -> list[str]:
    """Split command output into lines, dropping blank ones.

    Args:
        text (str): raw command output

    Returns:
        list[str]: the non-blank lines, in order
    """
    return [line for line in text.splitlines() if line.strip()]


def parse_log_record(record: str) -> CommitEntry | None:
    """Parse one ``git log`` record produced with :data:`LOG_FORMAT`.

    Everything past the subject is the body; it is joined back with
    :data:`FIELD_SEP` since subjects and bodies may contain it.

    Args:
        record (str): one record, without its terminating :data:`RECORD_SEP`

    Returns:
        CommitEntry | None: the commit without files and stats, or None if the record is malformed
    """
    record = record.strip("\r\n")
    if not record.strip():
        return None
    parts = record.split(FIELD_SEP)
    if len(parts) < MIN_COMMIT_FIELDS:
        logger.debug("dropping malformed log record", record=record)
        return None
    return CommitEntry(
        hash=parts[0],
        short_hash=parts[1],
        author=parts[2],
        date=parts[3],
        subject=parts[4],
        body=FIELD_SEP.join(parts[MIN_COMMIT_FIELDS:]).strip(),
    )


def parse_log(text: str) -> list[CommitEntry]:
    """Parse the whole ``git log`` output, keeping the order git gave."""
    commits: list[CommitEntry] = []
    for record in text.split(RECORD_SEP):
        commit = parse_log_record(record)
        if commit is not None:
            commits.append(commit)
    return commits


def parse_tree_line(line: str) -> FileEntry | None:
    """Parse one line of ``git ls-tree -r -l``.

    The line reads ``<mode> <kind> <object> <size>\\t<path>``. Tree entries get
    :data:`DIR_SIZE` instead of a size.

    Args:
        line (str): the raw line

    Returns:
        FileEntry | None: the entry, or None if the line is malformed
    """
    meta, sep, path = line.partition("\t")
    fields = meta.split()
    if not sep:
        # no tab: fall back to pure whitespace tokenization
        fields = line.split(maxsplit=MIN_TREE_FIELDS)
        path = fields[MIN_TREE_FIELDS] if len(fields) > MIN_TREE_FIELDS else ""
        fields = fields[:MIN_TREE_FIELDS]
    if len(fields) < MIN_TREE_FIELDS or not path:
        logger.debug("dropping malformed tree line", line=line)
        return None
    mode, kind, _object_id, size = fields[:MIN_TREE_FIELDS]
    if kind == "tree":
        size = DIR_SIZE
    return FileEntry(
        path=path,
        file_name=posixpath.basename(path),
        mode=mode,
        size=size,
    )


def parse_tree(text: str) -> list[FileEntry]:
    """Parse NUL-separated ``git ls-tree -r -l -z`` output, sorted by path."""
    files: list[FileEntry] = []
    for line in split_nul(text):
        entry = parse_tree_line(line)
        if entry is not None:
            files.append(entry)
    return sorted(files, key=lambda f: f.path)


def parse_ref_line(line: str) -> RefEntry | None:
    """Parse one line of ``git for-each-ref`` produced with :data:`REF_FORMAT`.

    Args:
        line (str): the raw line

    Returns:
        RefEntry | None: the ref, or None if fewer than three fields are present
    """
    parts = line.split(FIELD_SEP)
    if len(parts) < MIN_REF_FIELDS:
        logger.debug("dropping malformed ref line", line=line)
        return None
    full = parts[MIN_REF_FIELDS] if len(parts) > MIN_REF_FIELDS else ""
    return RefEntry(name=parts[0], hash=parts[1], type=parts[2], ref=full)


def parse_refs(text: str) -> list[RefEntry]:
    refs: list[RefEntry] = []
    for line in non_empty_lines(text):
        ref = parse_ref_line(line)
        if ref is not None:
            refs.append(ref)
    return refs


def get_commits(repo: Path, runner: CommandRunner, limit: int = 50) -> list[CommitEntry]:
    """Fetch the ``limit`` most recent commits with their touched files and diffstat.

    Args:
        repo (Path): the repository to query
        runner (CommandRunner): runs git
        limit (int): how many commits to keep

    Returns:
        list[CommitEntry]: commits, newest first
    """
    text = runner(repo, GIT, "log", f"--format={LOG_FORMAT}", "--date=short", "-n", str(limit))
    commits: list[CommitEntry] = []
    for commit in parse_log(text):
        stats = runner(repo, GIT, "show", "--stat", "--format=", commit.hash)
        files = split_nul(runner(repo, GIT, "show", "--name-only", "-z", "--format=", commit.hash))
        commits.append(commit.model_copy(update={"files": files, "stats": stats}))
    return commits


def get_files(repo: Path, runner: CommandRunner) -> list[FileEntry]:
    return parse_tree(runner(repo, GIT, "ls-tree", "-r", "-l", "-z", "HEAD"))


def get_refs(repo: Path, runner: CommandRunner) -> list[RefEntry]:
    return parse_refs(runner(repo, GIT, "for-each-ref", f"--format={REF_FORMAT}"))


def get_last_commit(repo: Path, runner: CommandRunner) -> str:
    return runner(repo, GIT, "log", "-1", "--format=%ad", "--date=short")


def get_readme(repo: Path, runner: CommandRunner) -> tuple[str, str]:
    """Look up the README at ``HEAD`` among :data:`README_CANDIDATES`.

    A candidate that git cannot show is skipped; it is not an error.

    Args:
        repo (Path): the repository to query
        runner (CommandRunner): runs git

    Returns:
        tuple[str, str]: the matching file name and its content, or two empty strings
    """
    for filename in README_CANDIDATES:
        try:
            content = runner(repo, GIT, "show", f"HEAD:{filename}")
        except GitCommandError:
            continue
        if content:
            return filename, content
    logger.info("no README found", repo=str(repo))
    return "", ""


def extract_repository(settings: Settings, runner: CommandRunner) -> Repository:
    """Build the :class:`Repository` model for ``settings.repo``.

    Args:
        settings (Settings): run configuration (repository, metadata, output directory)
        runner (CommandRunner): runs git

    Raises:
        GitCommandError: if any query other than a README lookup fails.

    Returns:
        Repository: the extracted repository
    """
    repo = settings.repo
    readme_name, readme_content = get_readme(repo, runner)
    repository = Repository(
        name=settings.name,
        desc=settings.desc,
        url=settings.url,
        dir=settings.identity_key,
        last_commit=get_last_commit(repo, runner),
        files=get_files(repo, runner),
        commits=get_commits(repo, runner, limit=settings.max_commits),
        refs=get_refs(repo, runner),
        readme_content=readme_content,
        readme_name=readme_name,
    )
    logger.info(
        "repository extracted",
        repo=str(repo),
        files=len(repository.files),
        commits=len(repository.commits),
        refs=len(repository.refs),
        readme=readme_name or None,
    )
    return repository
