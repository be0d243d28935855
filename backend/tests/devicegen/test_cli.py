"""Tests for the devicegen command line."""

from unittest.mock import AsyncMock

import pytest

from devicegen import cli
from devicegen.exceptions import ConfigSourceError


@pytest.fixture
def source(fake_source, monkeypatch):
    monkeypatch.setattr(cli, "create_config_source", lambda *args, **kwargs: fake_source)
    monkeypatch.setattr(cli, "get_generator_logger", lambda verbose=False: None)
    return fake_source


@pytest.fixture
def dirs(tmp_path):
    pages = tmp_path / "src" / "pages" / "devices"
    return [
        "--output-dir", str(pages),
        "--types-dir", str(tmp_path / "src" / "types" / "generated"),
        "--docs-dir", str(tmp_path / "docs"),
    ]


class TestParser:
    def test_defaults(self):
        args = cli.build_parser().parse_args([])
        assert args.continue_on_error is True
        assert args.max_concurrency == 3

    def test_csv_and_stop_on_error(self):
        args = cli.build_parser().parse_args(["--device-ids", "tv, amp,", "--stop-on-error"])
        assert args.device_ids == ["tv", "amp"]
        assert args.continue_on_error is False

    def test_mode_choices(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["--mode", "ftp"])


class TestMain:
    def test_list_classes(self, capsys, monkeypatch):
        monkeypatch.setattr(cli, "get_generator_logger", lambda verbose=False: None)
        assert cli.main(["--list-classes"]) == 0
        out = capsys.readouterr().out.split()
        assert "LgTv" in out
        assert "ScenarioDevice" in out

    def test_connection(self, source, capsys):
        assert cli.main(["--test-connection"]) == 0
        assert "reachable" in capsys.readouterr().out
        source.reachable = False
        assert cli.main(["--test-connection"]) == 1

    def test_single_device(self, source, dirs, tmp_path, capsys):
        assert cli.main(["--device-id", "living_room_tv", *dirs]) == 0
        assert (tmp_path / "src" / "pages" / "devices" / "living_room_tv.gen.tsx").exists()
        assert "Successful: 1" in capsys.readouterr().out

    def test_single_device_failure(self, source, dirs):
        assert cli.main(["--device-id", "ghost", *dirs]) == 1

    def test_partial_success_exits_zero(self, source, dirs):
        assert cli.main(["--device-ids", "living_room_tv,ghost", *dirs]) == 0

    def test_nothing_selected(self, source, dirs):
        assert cli.main(dirs) == 2

    def test_batch_with_router_and_docs(self, source, dirs, tmp_path):
        router = tmp_path / "src" / "App.tsx"
        router.parent.mkdir(parents=True)
        router.write_text("const routes = [];\n", encoding="utf-8")

        code = cli.main([
            "--batch", "--device-classes", "LgTv,AppleTVDevice",
            "--generate-router", "--router-file", str(router), "--generate-docs", *dirs,
        ])

        assert code == 0
        text = router.read_text(encoding="utf-8")
        assert "import AppleTvPage from './devices/apple_tv.gen';" in text
        assert "import LivingRoomTvPage from './devices/living_room_tv.gen';" in text
        assert (tmp_path / "src" / "pages" / "devices" / "index.gen.ts").exists()
        assert (tmp_path / "docs" / "devices" / "apple_tv.md").exists()
        assert (tmp_path / "docs" / "generated-device-system.md").exists()

    def test_validation_failure(self, source, dirs, monkeypatch):
        report = {
            "success": False,
            "component": {"errors": [{"rule": "missing_default_export"}]},
            "source": {"errors": []},
        }
        monkeypatch.setattr(cli, "run_validation_suite", AsyncMock(return_value=report))
        assert cli.main(["--device-id", "living_room_tv", "--validate", *dirs]) == 1

    def test_source_closed(self, source, dirs):
        source.close = AsyncMock()
        cli.main(["--device-id", "living_room_tv", *dirs])
        source.close.assert_awaited_once()

    def test_discovery_failure_exits_non_zero(self, source, dirs, capsys):
        source.discover_devices = AsyncMock(side_effect=ConfigSourceError("connection refused"))
        assert cli.main(["--batch", *dirs]) == 1
        out = capsys.readouterr().out
        assert "Total processed: 0" in out
        assert "Aborted: Device discovery failed" in out
