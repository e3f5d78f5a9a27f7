from __future__ import annotations

from pathlib import Path

from repo_prompt.index import DirectoryIndex, IndexItem, render_tree, should_exclude, walk_repository
from repo_prompt.selection import LineRange


def _write(root: Path, relative: str, text: str = "x\n") -> None:
    target = root / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(text, encoding="utf-8")


def _make_repo(root: Path) -> None:
    _write(root, ".gitignore", "*.log\nbuild/\n")
    _write(root, "a.py", "print('a')\n")
    _write(root, "b.log")
    _write(root, "build/out.txt")
    _write(root, "src/main.py", "one\ntwo\n")
    _write(root, "src/.gitignore", "secret.txt\n")
    _write(root, "src/secret.txt")
    _write(root, ".git/HEAD")
    _write(root, "node_modules/pkg/index.js")


def test_walk_honors_nested_gitignore_and_excludes(tmp_path: Path) -> None:
    _make_repo(tmp_path)
    items = walk_repository(tmp_path, ("**/node_modules/**",))
    assert items == [
        IndexItem(path=".gitignore", is_dir=False),
        IndexItem(path="a.py", is_dir=False),
        IndexItem(path="src", is_dir=True),
        IndexItem(path="src/.gitignore", is_dir=False),
        IndexItem(path="src/main.py", is_dir=False),
    ]


def test_walk_lists_parents_before_children(tmp_path: Path) -> None:
    _write(tmp_path, "a/x.txt")
    _write(tmp_path, "a.txt")
    _write(tmp_path, "a/b/y.txt")
    assert [item.path for item in walk_repository(tmp_path)] == [
        "a",
        "a/b",
        "a/b/y.txt",
        "a/x.txt",
        "a.txt",
    ]


def test_should_exclude_matches_anchored_globs() -> None:
    assert should_exclude("node_modules/", ("**/node_modules/**",))
    assert should_exclude("pkg/__pycache__/m.pyc", ("**/__pycache__/**",))
    assert not should_exclude("src/app.py", ("**/node_modules/**",))


def test_select_files_merges_queries(tmp_path: Path) -> None:
    _make_repo(tmp_path)
    index = DirectoryIndex(tmp_path, ("**/node_modules/**",))
    assert index.select_all_files() == [".gitignore", "a.py", "src/.gitignore", "src/main.py"]
    selections = index.select_files("=src/main.py#1,1\n# comment\n*.py\n")
    assert [selection.path for selection in selections] == ["a.py", "src/main.py"]
    assert selections[1].ranges == (LineRange(1, 1),)


def test_tree_renders_full_and_filtered(tmp_path: Path) -> None:
    _make_repo(tmp_path)
    index = DirectoryIndex(tmp_path, ("**/node_modules/**",))
    root = str(tmp_path.resolve())
    assert index.tree() == (
        f"{root}\n"
        "├── .gitignore\n"
        "├── a.py\n"
        "└── src/\n"
        "    ├── .gitignore\n"
        "    └── main.py\n"
    )
    assert index.tree("main") == f"{root}\n└── src/\n    └── main.py\n"
    assert [item.path for item in index.filter("main")] == ["src", "src/main.py"]


def test_render_tree_with_deep_nesting() -> None:
    items = [
        IndexItem("a", True),
        IndexItem("a/b", True),
        IndexItem("a/b/c.txt", False),
        IndexItem("z.txt", False),
    ]
    assert render_tree(".", items) == (
        ".\n"
        "├── a/\n"
        "│   └── b/\n"
        "│       └── c.txt\n"
        "└── z.txt\n"
    )
