from __future__ import annotations

"""
ModuleLoader: the module lifecycle orchestrator.

Phases per module, in strict order and never re-entered:

  start   (load_modules, caller's thread)    REGISTERED -> START_OK | START_FAILED
  ready   (background thread, after the host readiness signal)
                                             START_OK -> READY_OK | READY_FAILED
  mount / unmount (per bot, driven by the host, any number of times)

Every call into module code goes through `_guard`, so a failing module is
logged and left out of that phase without disturbing its siblings.
"""

import threading
import uuid
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Set

from bothost.core.config.paths import HostPaths
from bothost.core.errors import ConfigReaderNotInitialized, ModulesAlreadyLoaded, ValidationError
from bothost.core.events import BaseEvent, EventSeverity, SourceSubsystem
from bothost.core.lifecycle import AppLifecycle, AppLifecycleEvents
from bothost.core.logger import get_logger
from bothost.core.modules.api import ModuleApiProvider
from bothost.core.modules.config_reader import ModuleConfigReader
from bothost.core.modules.models import CallbackResult, ModuleDefinition, ModuleEntryPoint, ModulePhase, SkillSummary
from bothost.core.modules.registry import ModuleRegistry
from bothost.core.modules.resolver import MODULES_ROOT_PREFIX, ModuleResolver
from bothost.core.modules.resources import ResourceMaterializer
from bothost.core.modules.skills import SkillCatalog
from bothost.core.modules.validation import manifest_name, validate_entry_point


class ConfigReaderState(str, Enum):
    UNINITIALIZED = "UNINITIALIZED"
    INITIALIZING = "INITIALIZING"
    INITIALIZED = "INITIALIZED"


class ModuleLoader:
    def __init__(
        self,
        *,
        paths: HostPaths,
        lifecycle: AppLifecycle,
        logger: Any = None,
        resolver: Optional[ModuleResolver] = None,
        materializer: Optional[ResourceMaterializer] = None,
        api_provider: Any = None,
        event_bus: Any = None,
        error_reporter: Any = None,
        ready_event: AppLifecycleEvents = AppLifecycleEvents.HTTP_SERVER_READY,
        ready_timeout_seconds: Optional[float] = None,
    ):
        self.paths = paths
        self.lifecycle = lifecycle
        self.logger = logger or get_logger("modules.loader")
        self.resolver = resolver or ModuleResolver(modules_root=paths.modules_root, logger=self.logger)
        self.materializer = materializer or ResourceMaterializer(paths=paths, resolver=self.resolver, logger=self.logger)
        self.api_provider = api_provider or ModuleApiProvider(paths=paths, materializer=self.materializer, config_source=lambda: self.config_reader)
        self.event_bus = event_bus
        self.error_reporter = error_reporter
        self.ready_event = ready_event
        self.ready_timeout_seconds = ready_timeout_seconds

        self.registry = ModuleRegistry()
        self.skills = SkillCatalog(self.registry)

        self._config_reader: Optional[ModuleConfigReader] = None
        self._config_state = ConfigReaderState.UNINITIALIZED
        self._ready_thread: Optional[threading.Thread] = None
        self._ready_done = threading.Event()
        self._trace_id = "modules"
        self._phases: Dict[str, ModulePhase] = {}

    # ---- configuration reader slot ----
    @property
    def config_reader(self) -> ModuleConfigReader:
        if self._config_state != ConfigReaderState.INITIALIZED or self._config_reader is None:
            raise ConfigReaderNotInitialized()
        return self._config_reader

    @config_reader.setter
    def config_reader(self, value: ModuleConfigReader) -> None:
        if self._config_state != ConfigReaderState.UNINITIALIZED:
            raise ModulesAlreadyLoaded()
        self._config_reader = value
        self._config_state = ConfigReaderState.INITIALIZING

    @staticmethod
    def process_module_entry_point(module: Any, name: str) -> ModuleEntryPoint:
        return validate_entry_point(module, name)

    # ---- helpers ----
    def _emit(self, event_type: str, payload: Dict[str, Any], *, severity: EventSeverity = EventSeverity.INFO, subsystem: SourceSubsystem = SourceSubsystem.modules) -> None:
        if self.event_bus is None:
            return
        try:
            self.event_bus.publish_nowait(
                BaseEvent(
                    event_type=event_type,
                    trace_id=self._trace_id,
                    source_subsystem=subsystem,
                    severity=severity,
                    payload=payload,
                )
            )
        except Exception as e:  # noqa: BLE001
            self.logger.debug(f"Lifecycle event '{event_type}' not published: {e}")

    def _set_phase(self, name: str, phase: ModulePhase) -> None:
        if name:
            self._phases[name] = phase

    def _guard(self, fn: Callable[..., Any], *args: Any) -> CallbackResult:
        try:
            return CallbackResult(ok=True, value=fn(*args))
        except Exception as e:  # noqa: BLE001
            return CallbackResult(ok=False, error=e)

    def _write_error(self, err: BaseException, *, subsystem: str, context: Dict[str, Any]) -> None:
        if self.error_reporter is None:
            return
        try:
            self.error_reporter.report_exception(err, trace_id=self._trace_id, subsystem=subsystem, context=context)
        except Exception as e:  # noqa: BLE001
            self.logger.debug(f"Error report not written: {e}")

    def _report(self, phase: ModulePhase, name: str, err: BaseException, *, subsystem: str = "modules") -> None:
        ctx: Dict[str, Any] = {"module": name, "phase": phase.value}
        if isinstance(err, ValidationError):
            ctx["violations"] = list(err.violations)
        self._write_error(err, subsystem=subsystem, context=ctx)
        payload = dict(ctx)
        payload["error"] = str(err)[:500]
        subsys = SourceSubsystem.tenants if phase in {ModulePhase.MOUNT_FAILED, ModulePhase.UNMOUNT_FAILED} else SourceSubsystem.modules
        self._emit(f"module.{phase.value.lower()}", payload, severity=EventSeverity.ERROR if phase == ModulePhase.START_FAILED else EventSeverity.WARN, subsystem=subsys)

    # ---- start phase ----
    def load_modules(self, modules: Sequence[Any]) -> List[str]:
        """
        Validate, register and start every candidate in order.

        Returns the (lower-cased) names that reached START_OK. The ready phase
        is then scheduled on a background thread; this call never waits for it
        and never raises for a module's own failure.
        """
        modules = list(modules)
        self.config_reader = ModuleConfigReader(logger=self.logger, modules=modules, paths=self.paths, resolver=self.resolver)
        self._config_reader.initialize()
        self._config_state = ConfigReaderState.INITIALIZED
        self._trace_id = f"modules-{uuid.uuid4().hex[:8]}"

        ledger: Set[str] = set()
        started: List[str] = []
        entries: List[Optional[ModuleEntryPoint]] = []

        for module in modules:
            name = manifest_name(module)
            if name not in ledger:
                self._set_phase(name, ModulePhase.REGISTERED)
            result = self._guard(self._start_one, module, name)
            if not result.ok:
                entries.append(None)
                if name not in ledger:
                    self._set_phase(name, ModulePhase.START_FAILED)
                self._log_start_failure(name, result.error)
                self._report(ModulePhase.START_FAILED, name, result.error)
                continue
            entry: ModuleEntryPoint = result.value
            entries.append(entry)
            self.registry.register(entry)
            if name not in ledger:
                ledger.add(name)
                started.append(name)
            self._set_phase(name, ModulePhase.START_OK)
            self.logger.info(f'Module "{name}" started')
            self._emit("module.start_ok", {"module": name, "phase": ModulePhase.START_OK.value})

        self.lifecycle.publish(AppLifecycleEvents.MODULES_LOADED)

        # Detached: ready-phase failures surface only through logs and events.
        self._ready_done.clear()
        self._ready_thread = threading.Thread(target=self._call_modules_on_ready, args=(modules, entries, ledger), name="modules-ready", daemon=True)
        self._ready_thread.start()
        return started

    def _start_one(self, module: Any, name: str) -> ModuleEntryPoint:
        entry = validate_entry_point(module, name)
        api = self.api_provider.create_for_module(name)
        entry.on_server_started(api)
        return entry

    def _log_start_failure(self, name: str, err: BaseException) -> None:
        if isinstance(err, ValidationError):
            details = "; ".join(f"{v['loc'] or '<root>'}: {v['msg']}" for v in err.violations)
            self.logger.error(f"{err} ({len(err.violations)} violation(s)): {details}")
        else:
            self.logger.error(f'Error in module "{name}" onServerStarted: {err}', exc_info=err)

    # ---- ready phase ----
    def _call_modules_on_ready(self, modules: List[Any], entries: List[Optional[ModuleEntryPoint]], ledger: Set[str]) -> None:
        try:
            try:
                fired = self.lifecycle.wait_for(self.ready_event, timeout=self.ready_timeout_seconds)
            except Exception as e:  # noqa: BLE001
                self.logger.error(f"Waiting for {self.ready_event.value} failed; modules ready phase aborted: {e}", exc_info=e)
                raise
            if not fired:
                self.logger.warning(f"{self.ready_event.value} not signalled within {self.ready_timeout_seconds}s; modules ready phase abandoned")
                return

            for module, entry in zip(modules, entries):
                name = manifest_name(module)
                if name not in ledger or entry is None:
                    self.logger.warning(f'Module "{name}" skipped')
                    self._emit("module.skipped", {"module": name}, severity=EventSeverity.WARN)
                    continue
                self._ready_one(name, entry)
        finally:
            ledger.clear()
            self._ready_done.set()

    def _ready_one(self, name: str, entry: ModuleEntryPoint) -> None:
        result = self._guard(self._invoke_ready, name, entry)
        if not result.ok:
            self._set_phase(name, ModulePhase.READY_FAILED)
            self.logger.warning(f"Error in module \"{name}\" 'onServerReady'. Module will still be loaded. Err: {result.error}")
            self._report(ModulePhase.READY_FAILED, name, result.error)
            return
        self._set_phase(name, ModulePhase.READY_OK)
        self._emit("module.ready_ok", {"module": name, "phase": ModulePhase.READY_OK.value})

        report = self.materializer.materialize(name)
        for category, exc in report.failures.items():
            self._write_error(exc, subsystem="resources", context={"module": name, "category": category})
        self._emit("module.materialized", report.to_dict(), severity=EventSeverity.INFO if report.ok else EventSeverity.WARN, subsystem=SourceSubsystem.resources)

    def _invoke_ready(self, name: str, entry: ModuleEntryPoint) -> None:
        api = self.api_provider.create_for_module(name)
        if entry.on_server_ready is not None:
            entry.on_server_ready(api)

    def join_ready_phase(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the background ready phase (shutdown and tests).
        False when it is still running after `timeout` or was never scheduled.
        """
        if self._ready_thread is None:
            return False
        return self._ready_done.wait(timeout=timeout)

    # ---- per-bot mount / unmount ----
    def load_modules_for_bot(self, bot_id: str) -> List[str]:
        return self._for_each_module(bot_id, "on_bot_mount", ModulePhase.MOUNTED, ModulePhase.MOUNT_FAILED)

    def unload_modules_for_bot(self, bot_id: str) -> List[str]:
        return self._for_each_module(bot_id, "on_bot_unmount", ModulePhase.UNMOUNTED, ModulePhase.UNMOUNT_FAILED)

    def _for_each_module(self, bot_id: str, callback: str, ok_phase: ModulePhase, failed_phase: ModulePhase) -> List[str]:
        done: List[str] = []
        for entry in self.registry.entry_points():
            name = entry.name
            result = self._guard(self._invoke_bot_callback, entry, callback, bot_id)
            if not result.ok:
                self.logger.error(f'Error in module "{name}" {callback} for bot "{bot_id}": {result.error}', exc_info=result.error)
                self._report(failed_phase, name, result.error)
                continue
            done.append(name)
            self._emit(f"module.{ok_phase.value.lower()}", {"module": name, "bot_id": bot_id}, subsystem=SourceSubsystem.tenants)
        return done

    def _invoke_bot_callback(self, entry: ModuleEntryPoint, callback: str, bot_id: str) -> None:
        self.resolver.resolve(MODULES_ROOT_PREFIX + entry.name)
        api = self.api_provider.create_for_module(entry.name)
        fn = getattr(entry, callback)
        if fn is not None:
            fn(api, bot_id)

    # ---- registry accessors ----
    def get_loaded_modules(self) -> List[ModuleDefinition]:
        return self.registry.definitions()

    def get_module(self, name: str) -> ModuleEntryPoint:
        return self.registry.get(name)

    def get_module_phase(self, name: str) -> Optional[ModulePhase]:
        """Last server-wide phase reached by a module (per-bot phases are not tracked)."""
        return self._phases.get(str(name or "").lower())

    def get_flow_generator(self, module_name: str, skill_id: str) -> Optional[Callable[..., Any]]:
        return self.skills.resolve_flow_generator(module_name, skill_id)

    def get_all_skills(self) -> List[SkillSummary]:
        return self.skills.list_skills()
