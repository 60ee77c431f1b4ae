import importlib.util
import json
import os
import sys

import pytest

import mazegen
import mazegen.core.scheduler as scheduler_mod
from mazegen.core.config import MazeConfig
from mazegen.core.generator import MazeGenerator
from mazegen.utils.scene_host import DryRunSceneHost


_ROOT = os.path.dirname(os.path.dirname(__file__))
_TOOL = os.path.join(_ROOT, "tools", "maze_preview.py")


def _load_preview():
    spec = importlib.util.spec_from_file_location("maze_preview", _TOOL)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    monkeypatch.delenv("MAZEGEN_CONFIG", raising=False)
    monkeypatch.delenv("MAZEGEN_SEED", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    return tmp_path


class _FakeTimers:
    def __init__(self):
        self.registered = []

    def register(self, fn, first_interval=0.0):
        self.registered.append(fn)


class _FakeApp:
    def __init__(self):
        self.timers = _FakeTimers()


class _FakeBpy:
    def __init__(self):
        self.app = _FakeApp()


def test_bl_info_is_present():
    assert mazegen.bl_info["name"] == "Mazegen"
    assert mazegen.bl_info["blender"] >= (4, 0, 0)


def test_packaging_metadata_only_points_at_shipped_docs():
    with open(os.path.join(_ROOT, "pyproject.toml"), encoding="utf-8") as f:
        readme = [line.split("=", 1)[1].strip().strip('"') for line in f if line.startswith("readme")]
    for name in readme:
        assert name.lower().startswith("readme")
        assert os.path.isfile(os.path.join(_ROOT, name))


def test_register_and_unregister_round_trip():
    mazegen.register()
    mazegen.unregister()


def test_unregister_cancels_timer_driven_passes(monkeypatch):
    fake = _FakeBpy()
    monkeypatch.setattr(scheduler_mod, "bpy", fake)
    gen = MazeGenerator(MazeConfig(width=9, depth=9, structure_spawn_percentage=0), host=DryRunSceneHost())
    task = gen.start_generate(steps_per_tick=1)

    mazegen.unregister()
    fake.app.timers.registered[0]()

    assert task.status == "cancelled"
    assert not gen.running


def test_preview_prints_grid_and_summary(clean_env, monkeypatch, capsys):
    preview = _load_preview()
    monkeypatch.setattr(sys, "argv", ["maze_preview.py", "--width", "7", "--depth", "5", "--seed", "3"])
    assert preview.main() == 0
    out = capsys.readouterr().out
    lines = out.splitlines()
    assert all(len(line) == 7 for line in lines[:5])
    assert "perfect: True" in out


def test_preview_json_summary(clean_env, monkeypatch, capsys):
    preview = _load_preview()
    monkeypatch.setattr(sys, "argv", ["maze_preview.py", "--width", "9", "--depth", "9", "--seed", "1",
                                      "--probes", "--json"])
    assert preview.main() == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["perfect"] is True
    assert summary["rooms_visited"] == 25
    assert summary["exit"] == [8, 8]
    assert summary["route_length"] >= 16
    assert summary["instructions"]["reflection_probe"] == 25
    assert summary["instructions"]["outer_wall"] == 40


def test_preview_rejects_invalid_config(clean_env, monkeypatch, capsys):
    preview = _load_preview()
    monkeypatch.setattr(sys, "argv", ["maze_preview.py", "--width", "0"])
    assert preview.main() == 2
    assert "Error" in capsys.readouterr().err


def test_preview_reports_unreadable_config_file(clean_env, monkeypatch, capsys):
    preview = _load_preview()
    monkeypatch.setattr(sys, "argv", ["maze_preview.py", "--config", str(clean_env / "missing.json")])
    assert preview.main() == 2
