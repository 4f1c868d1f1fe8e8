import json
import sys
import types

import pytest

from amaru_bridge.app import BridgeApp
from amaru_bridge.cli import load_engine, load_object, main, missing_bootstrap, run_bridge
from amaru_bridge.config import BridgeSettings
from amaru_bridge.errors import ConfigError


class _Finished:
    async def join(self):
        return None


class _Engine:
    async def build_and_run(self, config):
        import logging

        logging.getLogger("amaru").info("epoch_transition", extra={"from": 3, "into": 4})
        return _Finished()


@pytest.fixture
def engine_module(monkeypatch):
    module = types.ModuleType("fake_amaru_node")
    module.engine = _Engine()
    module.Engine = _Engine
    module.make_engine = lambda: _Engine()
    module.not_an_engine = 42
    monkeypatch.setitem(sys.modules, "fake_amaru_node", module)
    return module


def test_load_object(engine_module):
    assert load_object("fake_amaru_node:not_an_engine") == 42


@pytest.mark.parametrize("reference", ["fake_amaru_node", ":engine", "fake_amaru_node:missing", "no_such_module_xyz:engine"])
def test_load_object_errors(engine_module, reference):
    with pytest.raises(ConfigError):
        load_object(reference)


def test_load_engine_accepts_instances_and_factories(engine_module):
    assert load_engine("fake_amaru_node:engine") is engine_module.engine
    assert isinstance(load_engine("fake_amaru_node:Engine"), _Engine)
    assert isinstance(load_engine("fake_amaru_node:make_engine"), _Engine)
    with pytest.raises(ConfigError):
        load_engine("fake_amaru_node:not_an_engine")


def test_run_prints_events(engine_module, tmp_path, capsys):
    app_dir = tmp_path / "app"
    (app_dir / "ledger.db").mkdir(parents=True)

    code = main(["run", "--app-data-dir", str(app_dir), "--engine", "fake_amaru_node:engine", "--interval", "0.01"])

    assert code == 0
    lines = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert lines == [{"type": "runtime", "payload": {"kind": "epoch_transition", "from": 3, "into": 4}}]


def test_run_without_bootstrap_fails_on_first_start(engine_module, tmp_path, capsys):
    code = main(["run", "--app-data-dir", str(tmp_path / "app"), "--engine", "fake_amaru_node:engine"])
    assert code == 1
    assert capsys.readouterr().out == ""


def test_run_with_bad_engine_reference(tmp_path):
    assert main(["run", "--app-data-dir", str(tmp_path), "--engine", "nope"]) == 2


def test_clear_commands(tmp_path):
    app_dir = tmp_path / "app"
    (app_dir / "ledger.db").mkdir(parents=True)
    (app_dir / "chain.db").mkdir()

    assert main(["clear-dbs", "--app-data-dir", str(app_dir)]) == 0
    assert not (app_dir / "ledger.db").exists()
    assert not (app_dir / "chain.db").exists()
    assert app_dir.exists()

    assert main(["clear-data", "--app-data-dir", str(app_dir)]) == 0
    assert not app_dir.exists()


def test_run_with_engine_class(engine_module, tmp_path, capsys):
    app_dir = tmp_path / "app"
    (app_dir / "ledger.db").mkdir(parents=True)

    code = main(["run", "--app-data-dir", str(app_dir), "--engine", "fake_amaru_node:Engine", "--interval", "0.01"])

    assert code == 0
    lines = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert lines == [{"type": "runtime", "payload": {"kind": "epoch_transition", "from": 3, "into": 4}}]


@pytest.mark.asyncio
async def test_run_bridge_subscribes_before_starting(tmp_path, monkeypatch, capsys):
    start = BridgeApp.start

    async def announce_then_start(app):
        # Raises NoSubscriberError unless the printer is already listening.
        app.channel.emit(app.settings.channel, {"type": "runtime", "payload": {"kind": "starting", "tip": 1}})
        await start(app)

    monkeypatch.setattr(BridgeApp, "start", announce_then_start)
    settings = BridgeSettings(app_data_dir=tmp_path / "app", polling_interval=0.01)
    settings.ledger_dir.mkdir(parents=True)

    assert await run_bridge(settings, _Engine(), missing_bootstrap) == 0
    lines = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert lines == [
        {"type": "runtime", "payload": {"kind": "starting", "tip": 1}},
        {"type": "runtime", "payload": {"kind": "epoch_transition", "from": 3, "into": 4}},
    ]
