from __future__ import annotations

import os
import threading

from bothost.core.error_reporter import ErrorReporter
from bothost.core.lifecycle import AppLifecycleEvents
from bothost.core.modules.loader import ModuleLoader
from bothost.core.modules.models import ModulePhase

from .helpers.fakes import FakeEventSink, FakeLogger, make_module, write_module_dir


def test_ready_phase_waits_for_the_signal(loader, lifecycle):
    calls = []
    loader.load_modules([make_module("alpha", on_started=lambda api: calls.append("start"), on_ready=lambda api: calls.append("ready"))])
    assert loader.join_ready_phase(timeout=0.2) is False
    assert calls == ["start"]

    lifecycle.publish(AppLifecycleEvents.HTTP_SERVER_READY)
    assert loader.join_ready_phase(timeout=5) is True
    assert calls == ["start", "ready"]


def test_signal_already_fired_runs_ready_promptly(loader, lifecycle):
    ready = threading.Event()
    lifecycle.publish(AppLifecycleEvents.HTTP_SERVER_READY)
    loader.load_modules([make_module("alpha", on_ready=lambda api: ready.set())])
    assert loader.join_ready_phase(timeout=5) is True
    assert ready.is_set()


def test_load_modules_does_not_block_on_ready(loader):
    gate = threading.Event()
    started = loader.load_modules([make_module("slow", on_ready=lambda api: gate.wait(5))])
    assert started == ["slow"]
    assert loader.join_ready_phase(timeout=0) is False


def test_ready_runs_in_candidate_order_and_skips_failed_starts(loader, lifecycle, logger, events):
    order = []

    def boom(_api):
        raise RuntimeError("start broke")

    mods = [
        make_module("a", on_ready=lambda api: order.append("a")),
        make_module("b", on_started=boom, on_ready=lambda api: order.append("b")),
        make_module("c", on_ready=lambda api: order.append("c")),
    ]
    loader.load_modules(mods)
    lifecycle.publish("http_server_ready")
    assert loader.join_ready_phase(timeout=5)
    assert order == ["a", "c"]
    assert 'Module "b" skipped' in logger.messages("warning")
    assert [e.payload["module"] for e in events.of_type("module.skipped")] == ["b"]
    assert [e.payload["module"] for e in events.of_type("module.ready_ok")] == ["a", "c"]


def test_ready_failure_keeps_module_loaded(loader, lifecycle, logger, events):
    def bad_ready(_api):
        raise ValueError("not today")

    loader.load_modules([make_module("flaky", on_ready=bad_ready), make_module("fine")])
    lifecycle.publish(AppLifecycleEvents.HTTP_SERVER_READY)
    assert loader.join_ready_phase(timeout=5)

    assert "Error in module \"flaky\" 'onServerReady'. Module will still be loaded. Err: not today" in logger.messages("warning")
    assert loader.get_module("flaky").definition.name == "flaky"
    assert [e.payload["module"] for e in events.of_type("module.ready_failed")] == ["flaky"]
    assert [e.payload["module"] for e in events.of_type("module.ready_ok")] == ["fine"]


def test_ready_materializes_resources(paths, lifecycle, logger):
    write_module_dir(paths.modules_root, "shop", {"dist/actions/buy.js": "//", "assets/logo.txt": "logo"})
    sink = FakeEventSink()
    loader = ModuleLoader(paths=paths, lifecycle=lifecycle, logger=logger, event_bus=sink)
    loader.load_modules([make_module("Shop")])
    assert not os.path.exists(paths.actions_dir("shop"))

    lifecycle.publish(AppLifecycleEvents.HTTP_SERVER_READY)
    assert loader.join_ready_phase(timeout=5)
    assert os.path.isfile(os.path.join(paths.actions_dir("shop"), "buy.js"))
    assert os.path.isfile(os.path.join(paths.module_assets_dir("shop"), "logo.txt"))
    rep = sink.of_type("module.materialized")[0].payload
    assert rep["results"] == {"actions": "copied", "hooks": "skipped", "assets": "copied"}


def test_materialization_failure_is_reported_not_raised(paths, lifecycle, tmp_path):
    logger = FakeLogger()
    reporter = ErrorReporter(path=str(tmp_path / "logs" / "errors.jsonl"))
    loader = ModuleLoader(paths=paths, lifecycle=lifecycle, logger=logger, error_reporter=reporter)
    # in-process module without an installed directory
    loader.load_modules([make_module("ghost")])
    lifecycle.publish(AppLifecycleEvents.HTTP_SERVER_READY)
    assert loader.join_ready_phase(timeout=5)

    assert any("failed to copy actions" in m for m in logger.messages("warning"))
    rows = reporter.tail(10)
    assert {r["safe_context"]["category"] for r in rows} == {"actions", "hooks", "assets"}
    assert all(r["subsystem"] == "resources" for r in rows)
    assert {r["error_code"] for r in rows} == {"module_resolution_error"}
    assert loader.get_module("ghost").definition.name == "ghost"
    assert loader.get_module_phase("ghost") == ModulePhase.READY_OK


def test_custom_ready_event_and_timeout(paths, lifecycle, logger):
    calls = []
    loader = ModuleLoader(paths=paths, lifecycle=lifecycle, logger=logger, ready_event=AppLifecycleEvents.SERVICES_READY, ready_timeout_seconds=0.05)
    loader.load_modules([make_module("late", on_ready=lambda api: calls.append("ready"))])
    assert loader.join_ready_phase(timeout=5)
    assert calls == []
    assert any("SERVICES_READY not signalled" in m for m in logger.messages("warning"))


def test_join_without_load_returns_false(loader):
    assert loader.join_ready_phase(timeout=0.01) is False


def test_host_copy_failure_is_reported_as_resource_error(paths, lifecycle, tmp_path):
    write_module_dir(paths.modules_root, "shop", {"dist/actions/buy.js": "//", "assets/logo.txt": "logo"})
    os.makedirs(paths.global_data_dir, exist_ok=True)
    with open(os.path.join(paths.global_data_dir, "actions"), "w", encoding="utf-8") as f:
        f.write("in the way")
    reporter = ErrorReporter(path=str(tmp_path / "logs" / "errors.jsonl"))
    sink = FakeEventSink()
    loader = ModuleLoader(paths=paths, lifecycle=lifecycle, logger=FakeLogger(), event_bus=sink, error_reporter=reporter)
    lifecycle.publish(AppLifecycleEvents.HTTP_SERVER_READY)
    loader.load_modules([make_module("shop")])
    assert loader.join_ready_phase(timeout=5)

    rows = reporter.tail(10)
    assert len(rows) == 1
    assert rows[0]["error_code"] == "resource_error"
    assert rows[0]["safe_context"]["error_type"] == "FileExistsError"
    assert rows[0]["safe_context"]["category"] == "actions"
    assert sink.of_type("module.materialized")[0].payload["results"] == {"actions": "failed", "hooks": "skipped", "assets": "copied"}
    assert loader.get_module("shop").definition.name == "shop"


def test_module_phase_tracking(loader, lifecycle):
    def boom(_api):
        raise RuntimeError("nope")

    loader.load_modules([make_module("ok"), make_module("bad", on_started=boom), make_module("late", on_ready=boom)])
    assert loader.get_module_phase("OK") == ModulePhase.START_OK
    assert loader.get_module_phase("bad") == ModulePhase.START_FAILED
    assert loader.get_module_phase("late") == ModulePhase.START_OK
    assert loader.get_module_phase("unknown") is None

    lifecycle.publish(AppLifecycleEvents.HTTP_SERVER_READY)
    assert loader.join_ready_phase(timeout=5)
    assert loader.get_module_phase("ok") == ModulePhase.READY_OK
    assert loader.get_module_phase("bad") == ModulePhase.START_FAILED
    assert loader.get_module_phase("late") == ModulePhase.READY_FAILED
