"""Test configuration and fixtures for treecopy."""

import pytest


def pytest_addoption(parser):
    """Add custom command-line options for tests."""
    parser.addoption("--run-cli-tests", action="store_true", default=False, help="Run CLI integration tests (slow)")


@pytest.fixture
def source_tree(tmp_path):
    """Create a small source tree with an excluded directory candidate."""
    src = tmp_path / "src"
    (src / "child").mkdir(parents=True)
    (src / "ignored_dir").mkdir()
    (src / "root_file.txt").write_text("root")
    (src / "child" / "child_file.txt").write_text("child")
    (src / "ignored_dir" / "ignored_file.txt").write_text("ignored")
    return src


@pytest.fixture
def destination(tmp_path):
    """Path of a destination directory that does not exist yet."""
    return tmp_path / "dst"
