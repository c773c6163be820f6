"""Tests for the run command's error handling."""

from unittest.mock import MagicMock

import pytest

from resobooru.cli.commands import run as run_command
from resobooru.cli.console import Console
from resobooru.config import Config
from resobooru.domain.shared.error import (
    AuthenticationError,
    ExternalServiceError,
    RemoteCallFailed,
)
from resobooru.infrastructure.resonite.config import ResoniteConfig


@pytest.fixture
def console(monkeypatch: pytest.MonkeyPatch) -> Console:
    console = MagicMock(spec=Console)
    monkeypatch.setattr(run_command, "get_console", lambda: console)
    return console


@pytest.fixture
def config(monkeypatch: pytest.MonkeyPatch) -> Config:
    config = Config(
        resonite=ResoniteConfig(username="alice", password="hunter2", machine_id="machine-1")
    )
    monkeypatch.setattr(run_command, "load_config", lambda: config)
    return config


def fail_with(error: Exception):
    async def _run(config, totp):
        raise error

    return _run


class TestRunCommand:
    @pytest.mark.parametrize(
        "error",
        [
            ExternalServiceError("GET /users/U-alice/records failed: connection refused"),
            RemoteCallFailed("/users/U-alice/records", 401, "Unauthorized"),
        ],
    )
    def test_unreachable_service_exits_with_error(self, console, config, monkeypatch, error):
        monkeypatch.setattr(run_command, "_run", fail_with(error))

        with pytest.raises(SystemExit) as exc_info:
            run_command.run()

        assert exc_info.value.code == 1
        console.error.assert_called_once()
        assert error.message in console.error.call_args.args[0]

    def test_rejected_login_exits_with_error(self, console, config, monkeypatch):
        monkeypatch.setattr(
            run_command, "_run", fail_with(AuthenticationError("Authentication failed: 403"))
        )

        with pytest.raises(SystemExit) as exc_info:
            run_command.run()

        assert exc_info.value.code == 1

    def test_missing_credentials_exit_before_connecting(self, console, monkeypatch):
        monkeypatch.setattr(run_command, "load_config", lambda: Config(resonite=ResoniteConfig()))
        monkeypatch.setattr(run_command, "_run", fail_with(AssertionError("must not run")))

        with pytest.raises(SystemExit) as exc_info:
            run_command.run()

        assert exc_info.value.code == 1
        assert "username" in console.error.call_args.args[0]
