"""Tests for tinybundler.app — bundle() and dev() entry points."""

from __future__ import annotations

from pathlib import Path

import pytest

from tinybundler._errors import ConfigError
from tinybundler.app import bundle, dev
from tinybundler.build import TemplateRegistry
from tinybundler.collaborators import Collaborators


def _registry() -> TemplateRegistry:
    registry = TemplateRegistry()
    registry.register("index", lambda: '<img src="@/img/a.png">')
    return registry


class TestBundle:
    """bundle() — one build with console reporting."""

    def test_builds_project(
        self, tmp_project: Path, fakes: Collaborators, capsys: pytest.CaptureFixture[str],
    ) -> None:
        result = bundle(tmp_project, collaborators=fakes, registry=_registry())

        assert result.output_dir == tmp_project / ".bundle"
        assert (tmp_project / ".bundle" / "index.html").is_file()
        err = capsys.readouterr().err
        assert "===== bundle start =====" in err
        assert "bundle end:" in err
        assert "index.html" in err

    def test_config_file_respected(self, tmp_project: Path, fakes: Collaborators) -> None:
        (tmp_project / "bundler.yaml").write_text("bundleDir: dist\nassetsDir: static\n")

        result = bundle(tmp_project, collaborators=fakes, registry=_registry())

        assert result.replacements["@/img/a.png"].startswith("/static/a.")
        assert (tmp_project / "dist" / "index.html").is_file()

    def test_none_overrides_ignored(self, tmp_project: Path, fakes: Collaborators) -> None:
        result = bundle(tmp_project, collaborators=fakes, registry=_registry(), bundle_dir=None)
        assert result.output_dir == tmp_project / ".bundle"

    def test_bad_config(self, tmp_project: Path, fakes: Collaborators) -> None:
        (tmp_project / "bundler.yaml").write_text("[not, a, mapping]\n")
        with pytest.raises(ConfigError):
            bundle(tmp_project, collaborators=fakes, registry=_registry())


class TestDev:
    """dev() — wiring of the controller, notifier and ticker."""

    @pytest.fixture
    def captured(self, monkeypatch: pytest.MonkeyPatch) -> dict[str, object]:
        seen: dict[str, object] = {}

        class _Controller:
            def __init__(self, config: object, build: object, **kwargs: object) -> None:
                seen["config"] = config
                seen["build"] = build
                seen.update(kwargs)

            async def run(self) -> None:
                seen["ran"] = True

        monkeypatch.setattr("tinybundler.dev.loop.DevLoopController", _Controller)
        return seen

    def test_without_auto_reload(
        self, tmp_project: Path, fakes: Collaborators, captured: dict[str, object],
    ) -> None:
        dev(tmp_project, collaborators=fakes, registry=_registry())

        assert captured["ran"] is True
        assert captured["notifier"] is None

    def test_with_auto_reload(
        self, tmp_project: Path, fakes: Collaborators, captured: dict[str, object],
    ) -> None:
        from tinybundler.dev.notifier import ReloadNotifier

        dev(tmp_project, collaborators=fakes, registry=_registry(), auto_reload=True, reload_port=8123)

        notifier = captured["notifier"]
        assert isinstance(notifier, ReloadNotifier)
        assert notifier.port == 8123
