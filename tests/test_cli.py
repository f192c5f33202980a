"""Tests for perch.cli: ``perch run``."""

import sys
import types
from unittest.mock import MagicMock, patch

import pytest

from perch.app import App
from perch.cli import main
from perch.cli._resolve import resolve_init
from perch.config import ServeConfig


@pytest.fixture
def fake_module(monkeypatch: pytest.MonkeyPatch) -> types.ModuleType:
    """Register a fake module exposing an app and a factory."""
    app = App()
    app.get("/", lambda: "hi")
    mod = types.ModuleType("_perch_cli_app")
    mod.app = app  # type: ignore[attr-defined]
    mod.create_app = lambda: app  # type: ignore[attr-defined]
    mod.not_callable = 42  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "_perch_cli_app", mod)
    for name in ("PERCH_PORT", "PERCH_ADDRESS", "PERCH_HOTRELOAD", "PERCH_DEBUG"):
        monkeypatch.delenv(name, raising=False)
        monkeypatch.delenv(name.lower(), raising=False)
    return mod


class TestResolveInit:
    def test_app_instance_wrapped(self, fake_module: types.ModuleType) -> None:
        assert resolve_init("_perch_cli_app:app")() is fake_module.app

    def test_default_attribute_is_app(self, fake_module: types.ModuleType) -> None:
        assert resolve_init("_perch_cli_app")() is fake_module.app

    def test_factory_returned_as_is(self, fake_module: types.ModuleType) -> None:
        assert resolve_init("_perch_cli_app:create_app") is fake_module.create_app

    def test_not_callable(self, fake_module: types.ModuleType) -> None:
        with pytest.raises(TypeError, match="not an app or factory"):
            resolve_init("_perch_cli_app:not_callable")


class TestPerchRun:
    @patch("perch.server.run.run")
    def test_defaults_from_environment(self, mock_run: MagicMock, fake_module: types.ModuleType) -> None:
        main(["run", "_perch_cli_app:create_app"])
        init, config = mock_run.call_args[0]
        assert init is fake_module.create_app
        assert config == ServeConfig()

    @patch("perch.server.run.run")
    def test_flags_override_environment(
        self, mock_run: MagicMock, fake_module: types.ModuleType, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PERCH_PORT", "7000")
        main(["run", "_perch_cli_app:app", "--host", "0.0.0.0", "--port", "9000", "--no-reload", "--debug"])
        _, config = mock_run.call_args[0]
        assert config == ServeConfig(host="0.0.0.0", port=9000, hot_reload=False, debug=True)

    @patch("perch.server.run.run")
    def test_environment_used_without_flags(
        self, mock_run: MagicMock, fake_module: types.ModuleType, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PERCH_PORT", "7000")
        main(["run", "_perch_cli_app:app"])
        _, config = mock_run.call_args[0]
        assert config.port == 7000

    def test_missing_module_exits(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["run", "_perch_no_such_module:app"])
        assert exc_info.value.code == 1
        assert "Error" in capsys.readouterr().err

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0
        assert "perch" in capsys.readouterr().out
