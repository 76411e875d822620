"""Canned git answers shared by the unit and integration tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

from stagen.exceptions import GitCommandError
from stagen.extraction import LOG_FORMAT, REF_FORMAT

if TYPE_CHECKING:
    from pathlib import Path

HASH_A = "a" * 40
HASH_B = "b" * 40

LOG_OUTPUT = (
    f"{HASH_A}|aaaaaaa|Ada Lovelace|2025-03-02|Parse a|b pipes|Body keeps | pipes\nand a second line\x1e\n"
    f"{HASH_B}|bbbbbbb|Bob|2025-03-01|Initial commit|\x1e"
)
TREE_OUTPUT = (
    "100644 blob 1111111111111111111111111111111111111111      12\tsrc/app.py\0"
    "100644 blob 2222222222222222222222222222222222222222      30\tREADME.md\0"
    "040000 tree 3333333333333333333333333333333333333333       -\tsrc\0"
    "100755 blob 4444444444444444444444444444444444444444       7\tbuild.sh\0"
)
REFS_OUTPUT = f"main|{HASH_A}|commit|refs/heads/main\nv1.0|{HASH_B}|tag|refs/tags/v1.0"

LS_TREE = ("git", "ls-tree", "-r", "-l", "-z", "HEAD")


def name_only(commit_hash: str) -> tuple[str, ...]:
    return ("git", "show", "--name-only", "-z", "--format=", commit_hash)


class FakeRunner:
    """Answers git queries from a table of canned outputs.

    Unknown commands fail the way a missing object would with real git.
    """

    def __init__(self, outputs: dict[tuple[str, ...], str]) -> None:
        self.outputs = outputs
        self.calls: list[tuple[str, ...]] = []

    def __call__(self, cwd: Path, cmd: str, *args: str) -> str:
        key = (cmd, *args)
        self.calls.append(key)
        if key not in self.outputs:
            raise GitCommandError(command=" ".join(key), returncode=128, stdout="", stderr="fatal: not found")
        return self.outputs[key]


def canned_outputs(limit: int = 50) -> dict[tuple[str, ...], str]:
    return {
        ("git", "log", f"--format={LOG_FORMAT}", "--date=short", "-n", str(limit)): LOG_OUTPUT,
        ("git", "log", "-1", "--format=%ad", "--date=short"): "2025-03-02",
        LS_TREE: TREE_OUTPUT,
        ("git", "for-each-ref", f"--format={REF_FORMAT}"): REFS_OUTPUT,
        ("git", "show", "--stat", "--format=", HASH_A): " src/app.py | 2 +-\n 1 file changed",
        name_only(HASH_A): "src/app.py\0",
        ("git", "show", "--stat", "--format=", HASH_B): " README.md | 1 +\n build.sh | 1 +",
        name_only(HASH_B): "README.md\0build.sh\0",
        ("git", "show", HASH_A): "diff --git a/src/app.py b/src/app.py\n-print('<old>')\n+print('<new>')",
        ("git", "show", HASH_B): "diff --git a/README.md b/README.md\n+# Demo",
        ("git", "show", "HEAD:README.md"): "# Demo\n\nA *demo* repository.",
        ("git", "show", "HEAD:src/app.py"): "print('<new>')",
        ("git", "show", "HEAD:build.sh"): "echo ok",
    }
