"""Tests for the command line entry point."""

from __future__ import annotations

import functools
import json

from PIL import Image

from travelroute import main as cli
from travelroute.background import Background, Projector
from travelroute.exporter import ExportOrchestrator
from travelroute.store import RouteStore


class _Backdrop:
    def generate(self, region, size):
        return Background(image=Image.new("RGB", size), projector=Projector(region, size))


class _Sink:
    def __init__(self, path, size, frame_rate):
        self.path = path
        self.frames = 0

    def open(self):
        return self

    def push(self, frame, index):
        self.frames += 1

    def finish(self):
        self.path.write_bytes(b"mp4")
        return self.path

    def cancel(self):
        pass

    def discard(self):
        pass


def _write_config(tmp_path, waypoints):
    path = tmp_path / "trip.json"
    path.write_text(json.dumps({"name": "Trip", "waypoints": waypoints}), encoding="utf8")
    return path


def _offline(monkeypatch):
    monkeypatch.setattr(
        cli,
        "ExportOrchestrator",
        functools.partial(ExportOrchestrator, background_service=_Backdrop(), sink_factory=_Sink),
    )


def test_parse_args_overrides():
    args = cli.parse_args(["trip.yaml", "-o", "out.mp4", "--duration", "5", "--aspect", "vertical", "-v"])

    assert str(args.config) == "trip.yaml"
    assert str(args.output) == "out.mp4"
    assert args.duration == 5.0
    assert args.aspect == "vertical"
    assert args.verbose is True
    assert args.vehicle is None


def test_main_exports_and_saves_route(tmp_path, monkeypatch, capsys):
    _offline(monkeypatch)
    config = _write_config(tmp_path, [{"name": "Paris"}, {"name": "Lyon"}, {"name": "Atlantis"}])
    output = tmp_path / "trip.mp4"
    store_path = tmp_path / "routes.json"

    code = cli.main(
        [str(config), "-o", str(output), "--duration", "3", "--vehicle", "bike", "--save-route", str(store_path)]
    )

    assert code == 0
    assert output.exists()
    assert "Saved animation" in capsys.readouterr().out
    routes = RouteStore(store_path).load_all()
    assert [wp.name for wp in routes[0].waypoints] == ["Paris", "Lyon"]
    assert routes[0].name == "Trip"


def test_main_reports_invalid_route(tmp_path, monkeypatch, capsys):
    _offline(monkeypatch)
    config = _write_config(tmp_path, [{"name": "Paris"}])

    code = cli.main([str(config), "-o", str(tmp_path / "out.mp4")])

    assert code == 1
    assert "Export failed" in capsys.readouterr().err


def test_main_rejects_out_of_range_duration(tmp_path, monkeypatch, capsys):
    _offline(monkeypatch)
    config = _write_config(tmp_path, [{"name": "Paris"}, {"name": "Lyon"}])

    code = cli.main([str(config), "--duration", "90"])

    assert code == 1
    err = capsys.readouterr().err
    assert "Invalid configuration" in err
    assert "Duration must be between" in err


def test_main_reports_missing_config(tmp_path, capsys):
    code = cli.main([str(tmp_path / "absent.json")])

    assert code == 1
    assert "absent.json" in capsys.readouterr().err


def test_main_reports_malformed_yaml(tmp_path, capsys):
    config = tmp_path / "trip.yaml"
    config.write_text("waypoints: [unclosed\n", encoding="utf8")

    assert cli.main([str(config)]) == 1
    assert "Malformed YAML" in capsys.readouterr().err
