"""Fixtures for CLI tests."""

import pytest
from click.testing import CliRunner

from quickbite.cli.main import cli


@pytest.fixture
def database(tmp_path):
    return tmp_path / "store.sqlite"


@pytest.fixture
def run(database):
    """Invoke the CLI against a throwaway SQLite storefront."""
    runner = CliRunner()

    def invoke(*args, input=None):
        return runner.invoke(
            cli,
            ["--no-color", "--backend", "sqlite", "--database", str(database), *args],
            input=input,
        )

    return invoke


@pytest.fixture
def storefront(run):
    """A seeded storefront with one customer."""
    assert run("init").exit_code == 0
    result = run("user", "add", "alice", "--password", "secret", "--name", "Alice")
    assert result.exit_code == 0, result.output
    return run
