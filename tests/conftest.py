"""Shared fixtures."""

from pathlib import Path

import pytest

from fakes import FakePrompter, FakeVcs
from vcsflow.lib.context import RepositoryContext
from vcsflow.notifications import Notifier


@pytest.fixture
def vcs():
    return FakeVcs()


@pytest.fixture
def prompter():
    return FakePrompter()


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def repo_path(tmp_path) -> Path:
    path = tmp_path / "repo"
    path.mkdir()
    return path


@pytest.fixture
def repo(vcs, repo_path):
    return RepositoryContext(vcs, repo_path)
