"""The aggregate index shared by every repository generated into the same parent directory."""

from __future__ import annotations

import shutil
import tempfile
from importlib import resources
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter, ValidationError

from stagen.exceptions import OutputWriteError
from stagen.logging import logger
from stagen.models import Repository

if TYPE_CHECKING:
    from collections.abc import Sequence

    from stagen.pages import PageRenderer

INDEX_JSON = "index.json"
INDEX_HTML = "index.html"
STYLESHEET = "style.css"

_REPOS = TypeAdapter(list[Repository])
_RAW_ENTRIES = TypeAdapter(list[Any])


def load_index(path: Path) -> list[Repository]:
    """Read the persisted repositories.

    A missing or unreadable file, or one that is not a JSON list, yields an
    empty list. Entries that fail validation are dropped one by one so the
    other repositories survive.

    Args:
        path (Path): the ``index.json`` file

    Returns:
        list[Repository]: the persisted repositories, in their stored order
    """
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        return []
    except OSError as e:
        logger.warning("index unreadable, starting empty", path=str(path), error=str(e))
        return []
    try:
        raw = _RAW_ENTRIES.validate_json(data)
    except ValidationError as e:
        logger.warning("index invalid, starting empty", path=str(path), errors=e.error_count())
        return []
    repos: list[Repository] = []
    for position, entry in enumerate(raw):
        try:
            repos.append(Repository.model_validate(entry))
        except ValidationError as e:
            logger.warning("dropping invalid index entry", path=str(path), position=position, errors=e.error_count())
    return repos


def upsert(repos: Sequence[Repository], repo: Repository) -> list[Repository]:
    """Insert ``repo`` or replace the entry sharing its ``dir``.

    The first entry with the same key is replaced where it stands and any later
    duplicate of that key is dropped. Without a match, ``repo`` is appended.

    Args:
        repos (Sequence[Repository]): the current entries, left untouched
        repo (Repository): the freshly extracted repository

    Returns:
        list[Repository]: the updated entries
    """
    out: list[Repository] = []
    replaced = False
    for r in repos:
        if r.dir != repo.dir:
            out.append(r)
        elif not replaced:
            out.append(repo)
            replaced = True
    if not replaced:
        out.append(repo)
    return out


def save_index(path: Path, repos: Sequence[Repository]) -> None:
    """Overwrite ``path`` with ``repos``, atomically.

    The temporary file is removed when the write or the final move fails.

    Raises:
        OutputWriteError: if the file cannot be written.
    """
    tmp_name: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile("wb", dir=path.parent, prefix=f".{path.name}.", delete=False) as tmp:
            tmp_name = tmp.name
            tmp.write(_REPOS.dump_json(list(repos), indent=2))
        Path(tmp_name).replace(path)
    except OSError as e:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)
        raise OutputWriteError(path=path, reason=str(e)) from e


def copy_stylesheet(root: Path, stylesheet: Path | None = None) -> Path:
    """Copy ``stylesheet`` (the packaged one by default) to ``root``."""
    target = root / STYLESHEET
    if stylesheet is not None:
        shutil.copyfile(stylesheet, target)
    else:
        target.write_bytes(resources.files("stagen").joinpath("templates", STYLESHEET).read_bytes())
    return target


def update_main_index(
    root: Path,
    repo: Repository,
    renderer: PageRenderer,
    *,
    stylesheet: Path | None = None,
    style_path: str = "/style.css",
) -> list[Repository]:
    """Merge ``repo`` into ``root/index.json`` and re-render ``root/index.html``.

    The JSON index is saved before anything else is attempted. Failures while
    copying the stylesheet or rendering the HTML page are logged and tolerated.

    Args:
        root (Path): the directory holding the aggregate index
        repo (Repository): the repository just generated
        renderer (PageRenderer): renders ``main-index.html.j2``
        stylesheet (Path | None): stylesheet to publish, the packaged one when None
        style_path (str): stylesheet href written into the page

    Raises:
        OutputWriteError: if ``index.json`` cannot be saved.

    Returns:
        list[Repository]: the persisted entries
    """
    index_path = root / INDEX_JSON
    repos = upsert(load_index(index_path), repo)
    save_index(index_path, repos)
    logger.info("index updated", path=str(index_path), repos=len(repos))

    try:
        copy_stylesheet(root, stylesheet)
    except OSError as e:
        logger.warning("stylesheet not copied", root=str(root), error=str(e))

    try:
        renderer.write(root / INDEX_HTML, "main-index.html.j2", repos=repos, title="Repositories", style_path=style_path)
    except OutputWriteError as e:
        logger.warning("aggregate index page not rendered", path=str(e.path), reason=e.reason)
    return repos
