from pathlib import Path

from mcs.core.path_containment import is_contained, is_path_contained, relative_path, safe_path


def test_is_contained_accepts_root_and_children() -> None:
    """Test that the root itself and paths below it are contained."""
    assert is_contained("/a/b", "/a/b")
    assert is_contained("/a/b/", "/a/b")
    assert is_contained("/a/b/c/d.md", "/a/b")


def test_is_contained_rejects_sibling_with_shared_prefix() -> None:
    """Test that "/a/bar" is not treated as inside "/a/b"."""
    assert not is_contained("/a/bar", "/a/b")
    assert not is_contained("/a/bar/file", "/a/b/")


def test_safe_path_resolves_child(tmp_path: Path) -> None:
    """Test that a plain relative path joins onto the root."""
    result = safe_path("skills/ios/SKILL.md", tmp_path)

    assert result == (tmp_path / "skills" / "ios" / "SKILL.md").resolve()


def test_safe_path_rejects_parent_traversal(tmp_path: Path) -> None:
    """Test that `..` segments climbing out of the root are rejected."""
    root = tmp_path / "project"
    root.mkdir()

    assert safe_path("../../etc/passwd", root) is None
    assert safe_path("skills/../../outside.md", root) is None


def test_safe_path_allows_traversal_that_stays_inside(tmp_path: Path) -> None:
    """Test that `..` is fine as long as the result stays under the root."""
    result = safe_path("skills/../commands/x.md", tmp_path)

    assert result == (tmp_path / "commands" / "x.md").resolve()


def test_safe_path_rejects_absolute_path(tmp_path: Path) -> None:
    """Test that absolute paths are never accepted."""
    assert safe_path("/etc/passwd", tmp_path) is None


def test_safe_path_rejects_symlink_escape(tmp_path: Path) -> None:
    """Test that a symlink inside the root pointing outside is rejected."""
    root = tmp_path / "project"
    outside = tmp_path / "outside"
    root.mkdir()
    outside.mkdir()
    (root / "link").symlink_to(outside)

    assert safe_path("link/file.md", root) is None


def test_is_path_contained_follows_symlinks(tmp_path: Path) -> None:
    """Test that containment is decided on resolved paths."""
    root = tmp_path / "project"
    outside = tmp_path / "outside"
    root.mkdir()
    outside.mkdir()
    (root / "link").symlink_to(outside)

    assert is_path_contained(root / "inner" / "file", root)
    assert not is_path_contained(root / "link" / "file", root)


def test_relative_path_strips_root() -> None:
    """Test that a path under the root is made relative, others pass through."""
    assert relative_path("/p/.claude/skills/a.md", "/p") == ".claude/skills/a.md"
    assert relative_path("/other/a.md", "/p") == "/other/a.md"
