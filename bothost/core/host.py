from __future__ import annotations

"""
Host wiring: one place that turns a root directory into a ready ModuleLoader.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, List, Optional

from bothost.core.config import HostConfig, HostPaths, load_host_config
from bothost.core.config.io import ensure_dirs
from bothost.core.error_reporter import ErrorReporter, ErrorReporterConfig
from bothost.core.events import EventJournal
from bothost.core.lifecycle import AppLifecycle, AppLifecycleEvents
from bothost.core.logger import setup_logging
from bothost.core.modules.discovery import discover_entry_points
from bothost.core.modules.loader import ModuleLoader


@dataclass
class Host:
    cfg: HostConfig
    paths: HostPaths
    logger: Any
    lifecycle: AppLifecycle
    events: EventJournal
    error_reporter: ErrorReporter
    loader: ModuleLoader

    def start(self, modules: Optional[List[Any]] = None) -> List[str]:
        """Discovers (unless given) and starts modules. Returns the started names."""
        if modules is None:
            modules = discover_entry_points(self.paths.modules_root, logger=self.logger)
        self.logger.info(f"Loading {len(modules)} module(s) from {self.paths.modules_root}")
        return self.loader.load_modules(modules)

    def signal_ready(self) -> None:
        self.lifecycle.publish(self.cfg.modules.ready_event)


def build_host(root: Optional[str] = None, *, logger: Any = None) -> Host:
    cfg, paths = load_host_config(root)
    ensure_dirs(paths.data_dir, paths.global_data_dir, paths.logs_dir)
    logger = logger or setup_logging(paths.logs_dir, level=getattr(logging, cfg.logging.level, logging.INFO))

    lifecycle = AppLifecycle()
    lifecycle.publish(AppLifecycleEvents.CONFIGURATION_LOADED)

    events = EventJournal(path=os.path.join(paths.logs_dir, "events.jsonl"))
    reporter = ErrorReporter(
        path=os.path.join(paths.logs_dir, "errors.jsonl"),
        cfg=ErrorReporterConfig(include_tracebacks=cfg.errors.include_tracebacks),
    )
    loader = ModuleLoader(
        paths=paths,
        lifecycle=lifecycle,
        logger=logger,
        event_bus=events,
        error_reporter=reporter,
        ready_event=cfg.modules.ready_event,
        ready_timeout_seconds=cfg.modules.ready_timeout_seconds,
    )
    lifecycle.publish(AppLifecycleEvents.SERVICES_READY)
    return Host(cfg=cfg, paths=paths, logger=logger, lifecycle=lifecycle, events=events, error_reporter=reporter, loader=loader)
