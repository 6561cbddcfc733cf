"""Shared fixtures for wavecli tests."""

import pytest
import yaml
from click.testing import CliRunner

from wavecli import cli
from wavecli.executor import HttpResponse, MockBackend


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def wave_dir(tmp_path, monkeypatch):
    """cd into a temp project with an empty .wave/ collections directory."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("WAVE_DIR", raising=False)
    monkeypatch.delenv("WAVE_DEBUG", raising=False)
    d = tmp_path / ".wave"
    d.mkdir()
    return d


@pytest.fixture
def backend(monkeypatch):
    """Replace the network backend used by the CLI with a MockBackend."""
    mock = MockBackend(make_response())
    monkeypatch.setattr(cli, "make_backend", lambda defaults: mock)
    return mock


def make_response(status=200, body='{"ok": true}', headers=None):
    """Factory for HttpResponse objects."""
    if headers is None:
        headers = {"Content-Type": "application/json"}
    return HttpResponse(status=status, headers=headers, body=body)


def write_collection(directory, name, requests, variables=None, ext=".yaml"):
    """Write a collection YAML file and return its path."""
    data = {"requests": requests}
    if variables is not None:
        data["variables"] = variables
    path = directory / f"{name}{ext}"
    path.write_text(yaml.safe_dump(data, sort_keys=False))
    return path
