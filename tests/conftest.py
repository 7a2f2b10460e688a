"""Pytest fixtures for ticketflow tests"""
import logging
import subprocess
import sys
import tempfile
from pathlib import Path
from unittest.mock import Mock
import pytest
import git

from ticketflow.services.git_service import GitService


def commit_file(repo: git.Repo, name: str, content: str, message: str) -> str:
    """Write a file, commit it on the checked-out branch and return the SHA."""
    path = Path(repo.working_dir) / name
    path.write_text(content)
    repo.index.add([name])
    return repo.index.commit(message).hexsha


def _sleeping_handle(seconds: float = 30):
    """Stand-in for GitPython's AutoInterrupt wrapping a long-running process."""
    proc = subprocess.Popen(
        [sys.executable, "-c", f"import time; time.sleep({seconds})"],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    )
    handle = Mock()
    handle.proc = proc
    return handle


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def mock_config():
    """Create a configuration dictionary."""
    return {
        'timeout': 30,
        'default_branch': 'main',
        'worktree_enabled': True,
        'worktree_base_dir': '.worktrees',
        'verbose': False,
        'debug': False,
    }


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository with one commit on main."""
    repo_path = temp_dir / "test_repo"
    repo_path.mkdir()

    repo = git.Repo.init(repo_path)

    # Configure git user for commits
    with repo.config_writer() as writer:
        writer.set_value("user", "name", "Test User")
        writer.set_value("user", "email", "test@example.com")

    commit_file(repo, "README.md", "# Test Repository\n", "Initial commit")

    # Rename master to main if needed
    repo.git.branch('-M', 'main')

    yield repo

    repo.close()


@pytest.fixture
def git_repo_with_branches(git_repo):
    """Create a Git repository with a merged and an unmerged branch."""
    repo = git_repo

    # Unmerged feature branch
    repo.git.checkout('-b', 'feature/test-feature')
    commit_file(repo, "feature.txt", "Feature content\n", "Add feature")

    # Merged branch
    repo.git.checkout('main')
    repo.git.checkout('-b', 'feature/to-merge')
    commit_file(repo, "merge.txt", "Merge content\n", "Feature to merge")
    repo.git.checkout('main')
    repo.git.merge('feature/to-merge', '--no-ff', '-m', 'Merge feature/to-merge')

    yield repo


@pytest.fixture
def service(git_repo):
    """GitService bound to the test repository."""
    return GitService(git_repo.working_dir, timeout=30)


@pytest.fixture
def worktree_root(temp_dir):
    """Directory that holds worktrees created by a test."""
    return temp_dir / ".worktrees"


@pytest.fixture
def commit():
    """Helper that commits a file on the checked-out branch."""
    return commit_file


@pytest.fixture
def sleeping_handle():
    """Factory for fake git handles whose process never finishes on its own."""
    handles = []

    def factory(seconds: float = 30):
        handle = _sleeping_handle(seconds)
        handles.append(handle)
        return handle

    yield factory

    for handle in handles:
        if handle.proc.poll() is None:
            handle.proc.kill()
        handle.proc.wait()
        handle.proc.stdout.close()
        handle.proc.stderr.close()


@pytest.fixture
def restore_logging():
    """setup_logging() reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    git_level = logging.getLogger("git").level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
    logging.getLogger("git").setLevel(git_level)
