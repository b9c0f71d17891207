"""Shared fakes for the core test suite.

FakeVersionControl, StubClient and InMemoryReportStore stand in for git, the
Ollama server and the report file so the pipeline can be tested without any
of them.
"""

from __future__ import annotations

import shutil
import subprocess

import pytest

from reviewthis_core.providers.base import BaseInferenceClient
from reviewthis_core.vcs import VersionControl
from reviewthis_store.base import BaseReportStore
from reviewthis_store.models import ReviewRecord


class FakeVersionControl(VersionControl):
    """In-memory VersionControl: changed paths and per-file diffs are plain dicts."""

    def __init__(
        self,
        changed=None,
        branch_changed=None,
        diffs=None,
        tracked=None,
        ignored=None,
        repository=True,
        root=".",
    ):
        self.changed = list(changed or [])
        self.branch_changed = list(branch_changed or [])
        self.diffs = dict(diffs or {})
        self.tracked = set(tracked or [])
        self.ignored = set(ignored or [])
        self.repository = repository
        self.root = root
        self.intent_to_add_calls = 0
        self.branch_refs: list[str] = []

    def is_repository(self) -> bool:
        return self.repository

    def top_level(self) -> str:
        return self.root

    def intent_to_add(self) -> None:
        self.intent_to_add_calls += 1

    def working_tree_changes(self) -> list[str]:
        return list(self.changed)

    def branch_changes(self, ref: str) -> list[str]:
        self.branch_refs.append(ref)
        return list(self.branch_changed)

    def is_ignored(self, path: str) -> bool:
        return path in self.ignored

    def is_tracked(self, path: str) -> bool:
        return path in self.tracked

    def diff_working(self, path: str) -> str:
        return self.diffs.get(path, "")

    def diff_branch(self, ref: str, path: str) -> str:
        return self.diffs.get(path, "")


class StubClient(BaseInferenceClient):
    """Returns canned responses in order; an Exception in the list is raised instead."""

    def __init__(self, responses=None, default="N/A"):
        self.responses = list(responses or [])
        self.default = default
        self.prompts: list[str] = []
        self.pinged = False

    def _ping(self) -> None:
        self.pinged = True

    def _call_api(self, prompt: str) -> str:
        self.prompts.append(prompt)
        response = self.responses.pop(0) if self.responses else self.default
        if isinstance(response, Exception):
            raise response
        return response


class InMemoryReportStore(BaseReportStore):
    """List-backed report store, so the pipeline runs without touching disk."""

    def __init__(self):
        self.records: list[ReviewRecord] = []

    def initialize(self) -> None:
        self.records = []

    def append(self, record: ReviewRecord) -> None:
        self.records.append(record)

    def load(self) -> list[ReviewRecord]:
        return list(self.records)


@pytest.fixture
def fake_vcs():
    return FakeVersionControl


@pytest.fixture
def stub_client():
    return StubClient


@pytest.fixture
def memory_store():
    return InMemoryReportStore


@pytest.fixture
def in_tmp(tmp_path, monkeypatch):
    """Run the test from inside tmp_path, as the CLI does from the repo root."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


def git(cwd, *args) -> str:
    result = subprocess.run(["git", *args], cwd=cwd, capture_output=True, text=True, check=True)
    return result.stdout


@pytest.fixture
def run_git():
    return git


@pytest.fixture
def git_repo(tmp_path, monkeypatch):
    """An initialised repository on branch ``main`` with one commit, cwd set to its root."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "-q")
    git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    git(repo, "config", "user.email", "dev@example.com")
    git(repo, "config", "user.name", "Dev")
    git(repo, "config", "commit.gpgsign", "false")
    (repo / "a.py").write_text("x = 1\n")
    (repo / "b.py").write_text("y = 2\n")
    git(repo, "add", ".")
    git(repo, "commit", "-q", "-m", "initial")
    monkeypatch.chdir(repo)
    return repo

