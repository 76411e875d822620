from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from git_fakes import HASH_A, HASH_B, LS_TREE

from stagen.exceptions import OutputWriteError
from stagen.extraction import extract_repository
from stagen.models import Repository
from stagen.pages import PageAssembler, PageRenderer, render_readme

if TYPE_CHECKING:
    from pathlib import Path

    from git_fakes import FakeRunner

    from stagen.settings import Settings


@pytest.mark.integration
def test_generate_writes_every_page(fake_runner: FakeRunner, settings: Settings) -> None:
    repo = extract_repository(settings, fake_runner)

    written = PageAssembler(settings, repo, PageRenderer(), fake_runner).generate()

    out = settings.out
    rel = sorted(str(p.relative_to(out)) for p in written)
    assert rel == sorted([
        "index.html",
        "log.html",
        "commits.html",
        "refs.html",
        "readme.html",
        "file/README.md.html",
        "file/build.sh.html",
        "file/src/app.py.html",
        f"commit/{HASH_A}.html",
        f"commit/{HASH_B}.html",
    ])
    assert not (out / "file" / "src.html").exists()


@pytest.mark.integration
def test_file_page_uses_relative_base_path_and_escapes(fake_runner: FakeRunner, settings: Settings) -> None:
    repo = extract_repository(settings, fake_runner)
    PageAssembler(settings, repo, PageRenderer(), fake_runner).generate()

    page = (settings.out / "file" / "src" / "app.py.html").read_text(encoding="utf-8")

    assert 'href="../../index.html"' in page
    assert "print(&#39;&lt;new&gt;&#39;)" in page
    assert 'href="/style.css"' in page
    assert "<title>src/app.py - demo</title>" in page


@pytest.mark.integration
def test_commit_page_embeds_highlighted_diff(fake_runner: FakeRunner, settings: Settings) -> None:
    repo = extract_repository(settings, fake_runner)
    PageAssembler(settings, repo, PageRenderer(), fake_runner).generate()

    page = (settings.out / "commit" / f"{HASH_A}.html").read_text(encoding="utf-8")

    assert '<span class="i">+print(&#x27;&lt;new&gt;&#x27;)</span>' in page
    assert '<span class="d">-print(&#x27;&lt;old&gt;&#x27;)</span>' in page
    assert 'href="../log.html"' in page
    assert "<title>aaaaaaa - demo</title>" in page


@pytest.mark.integration
def test_pages_do_not_mutate_repository(fake_runner: FakeRunner, settings: Settings) -> None:
    repo = extract_repository(settings, fake_runner)
    before = repo.model_dump()

    PageAssembler(settings, repo, PageRenderer(), fake_runner).generate()

    assert repo.model_dump() == before


@pytest.mark.integration
def test_user_templates_override_packaged_ones(fake_runner: FakeRunner, settings: Settings, tmp_path: Path) -> None:
    templates = tmp_path / "templates"
    templates.mkdir()
    (templates / "refs.html.j2").write_text("{% for r in repo.refs %}{{ r.name }};{% endfor %}", encoding="utf-8")
    repo = extract_repository(settings, fake_runner)

    PageAssembler(settings, repo, PageRenderer(templates), fake_runner).generate()

    assert (settings.out / "refs.html").read_text(encoding="utf-8") == "main;v1.0;"
    assert "<table>" in (settings.out / "index.html").read_text(encoding="utf-8")


@pytest.mark.integration
def test_broken_template_is_fatal(fake_runner: FakeRunner, settings: Settings, tmp_path: Path) -> None:
    templates = tmp_path / "templates"
    templates.mkdir()
    (templates / "log.html.j2").write_text("{% for %}", encoding="utf-8")
    repo = extract_repository(settings, fake_runner)

    with pytest.raises(OutputWriteError) as exc_info:
        PageAssembler(settings, repo, PageRenderer(templates), fake_runner).generate()

    assert exc_info.value.path == settings.out / "log.html"


@pytest.mark.unit
def test_render_readme_markdown_and_plain_text() -> None:
    md = Repository(name="x", dir="x", readme_name="README.md", readme_content="# Title\n\n*hi*")
    plain = Repository(name="x", dir="x", readme_name="README", readme_content="<b>raw</b>")
    empty = Repository(name="x", dir="x")

    assert "<em>hi</em>" in render_readme(md)
    assert str(render_readme(plain)) == "<pre>&lt;b&gt;raw&lt;/b&gt;</pre>"
    assert not render_readme(empty)


@pytest.mark.integration
def test_non_ascii_file_gets_its_page(fake_runner: FakeRunner, settings: Settings) -> None:
    fake_runner.outputs[LS_TREE] += "100644 blob 5555555555555555555555555555555555555555       6\tcafé.txt\0"
    fake_runner.outputs[("git", "show", "HEAD:café.txt")] = "crème"
    repo = extract_repository(settings, fake_runner)

    PageAssembler(settings, repo, PageRenderer(), fake_runner).generate()

    page = (settings.out / "file" / "café.txt.html").read_text(encoding="utf-8")
    assert "crème" in page
    assert ("git", "show", "HEAD:café.txt") in fake_runner.calls


@pytest.mark.integration
def test_template_runtime_error_is_an_output_error(
    fake_runner: FakeRunner,
    settings: Settings,
    tmp_path: Path,
) -> None:
    templates = tmp_path / "templates"
    templates.mkdir()
    (templates / "refs.html.j2").write_text("{{ repo.name + 1 }}", encoding="utf-8")
    repo = extract_repository(settings, fake_runner)

    with pytest.raises(OutputWriteError) as exc_info:
        PageAssembler(settings, repo, PageRenderer(templates), fake_runner).generate()

    assert exc_info.value.path == settings.out / "refs.html"
    assert isinstance(exc_info.value.__cause__, TypeError)
