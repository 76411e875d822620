"""Lay the extracted repository out as static HTML pages."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import markdown
from jinja2 import ChoiceLoader, Environment, FileSystemLoader, PackageLoader
from markupsafe import Markup

from stagen.exceptions import OutputWriteError
from stagen.extraction import GIT
from stagen.highlight import highlight_diff
from stagen.logging import logger

if TYPE_CHECKING:
    from pathlib import Path

    from stagen.models import CommitEntry, FileEntry, Repository
    from stagen.runner import CommandRunner
    from stagen.settings import Settings

MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "toc"]
PAGE_SUFFIX = ".html"


class PageRenderer:
    """Holds the Jinja2 environment used for every page of a run.

    Templates are looked up in ``templates_dir`` first, then in the templates
    shipped with the package, so a user directory may override only some pages.
    """

    def __init__(self, templates_dir: Path | None = None) -> None:
        loaders: list[Any] = []
        if templates_dir is not None:
            loaders.append(FileSystemLoader(str(templates_dir)))
        loaders.append(PackageLoader("stagen", "templates"))
        self.env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    def render(self, template: str, **context: Any) -> str:  # noqa: ANN401
        return self.env.get_template(template).render(**context)

    def write(self, path: Path, template: str, **context: Any) -> Path:  # noqa: ANN401
        """Render ``template`` into ``path``, creating parent directories.

        Raises:
            OutputWriteError: if the template fails to load or render, or the file cannot be written.

        Returns:
            Path: the written path
        """
        try:
            content = self.render(template, **context)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except Exception as e:  # noqa: BLE001
            raise OutputWriteError(path=path, reason=str(e)) from e
        return path


def render_readme(repo: Repository) -> Markup:
    """Render the README as HTML: Markdown for ``.md`` files, preformatted text otherwise."""
    if not repo.readme_content:
        return Markup("")
    if repo.readme_name.lower().endswith(".md"):
        return Markup(markdown.markdown(repo.readme_content, extensions=MARKDOWN_EXTENSIONS))
    return Markup("<pre>{}</pre>").format(repo.readme_content)


class PageAssembler:
    """Write every page of one repository under ``settings.out``.

    Page-local presentation (title, stylesheet, base path) is passed to the
    templates alongside the repository; the repository itself is never changed.
    """

    def __init__(
        self,
        settings: Settings,
        repo: Repository,
        renderer: PageRenderer,
        runner: CommandRunner,
    ) -> None:
        self.settings = settings
        self.repo = repo
        self.renderer = renderer
        self.runner = runner
        self.out = settings.out

    def _write(self, rel: str, template: str, *, title: str, base_path: str = "", **extra: Any) -> Path:  # noqa: ANN401
        return self.renderer.write(
            self.out / rel,
            template,
            repo=self.repo,
            title=title,
            style_path=self.settings.style_path,
            base_path=base_path,
            **extra,
        )

    def gen_index(self) -> Path:
        return self._write("index.html", "index.html.j2", title="Files")

    def gen_log(self) -> Path:
        return self._write("log.html", "log.html.j2", title="Log")

    def gen_commits(self) -> Path:
        return self._write("commits.html", "commits.html.j2", title="Commits")

    def gen_refs(self) -> Path:
        return self._write("refs.html", "refs.html.j2", title="Refs")

    def gen_readme(self) -> Path:
        return self._write("readme.html", "readme.html.j2", title="README", readme=render_readme(self.repo))

    def gen_file_page(self, file: FileEntry) -> Path:
        content = self.runner(self.settings.repo, GIT, "show", f"HEAD:{file.path}")
        return self._write(
            f"file/{file.path}{PAGE_SUFFIX}",
            "file.html.j2",
            title=file.path,
            base_path="../" * file.depth,
            file=file,
            content=content,
        )

    def gen_file_pages(self) -> list[Path]:
        """Write one page per blob; directories and submodules have no content to show."""
        return [self.gen_file_page(f) for f in self.repo.files if not f.is_dir]

    def gen_commit_page(self, commit: CommitEntry) -> Path:
        diff = self.runner(self.settings.repo, GIT, "show", commit.hash)
        return self._write(
            f"commit/{commit.hash}{PAGE_SUFFIX}",
            "commit.html.j2",
            title=commit.short_hash,
            base_path="../",
            commit=commit,
            diff=Markup(highlight_diff(diff)),  # noqa: S704
        )

    def gen_commit_pages(self) -> list[Path]:
        return [self.gen_commit_page(c) for c in self.repo.commits]

    def generate(self) -> list[Path]:
        """Write all pages.

        Raises:
            OutputWriteError: on the first page that cannot be written.
            GitCommandError: if fetching a file or a diff fails.

        Returns:
            list[Path]: every written page
        """
        written = [
            self.gen_index(),
            self.gen_log(),
            self.gen_commits(),
            self.gen_refs(),
            self.gen_readme(),
        ]
        written.extend(self.gen_file_pages())
        written.extend(self.gen_commit_pages())
        logger.info("pages written", out=str(self.out), pages=len(written))
        return written
