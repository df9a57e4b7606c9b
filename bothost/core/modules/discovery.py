from __future__ import annotations

"""
Module discovery: imports `<modules_root>/<dir>/entry_point.py` for every
module directory and hands the resulting entry points to the loader.

Discovery does not validate anything; a module that imports fine but exports a
broken manifest is rejected later by the loader's start phase.
"""

import importlib.util
import os
import sys
from typing import Any, List

from bothost.core.logger import get_logger


ENTRY_POINT_FILE = "entry_point.py"
ENTRY_POINT_ATTR = "entry_point"


def _import_file(qualname: str, path: str) -> Any:
    spec = importlib.util.spec_from_file_location(qualname, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"cannot load {path}")
    mod = importlib.util.module_from_spec(spec)
    sys.modules[qualname] = mod
    try:
        spec.loader.exec_module(mod)
    except BaseException:
        sys.modules.pop(qualname, None)
        raise
    return mod


def discover_entry_points(modules_root: str, *, logger: Any = None) -> List[Any]:
    logger = logger or get_logger("modules.discovery")
    out: List[Any] = []
    if not os.path.isdir(modules_root):
        logger.warning(f"Modules directory not found: {modules_root}")
        return out

    for name in sorted(os.listdir(modules_root)):
        if name.startswith(".") or name.startswith("_"):
            continue
        mod_dir = os.path.join(modules_root, name)
        if not os.path.isdir(mod_dir):
            continue
        path = os.path.join(mod_dir, ENTRY_POINT_FILE)
        if not os.path.isfile(path):
            logger.debug(f"Skipping {mod_dir} (no {ENTRY_POINT_FILE})")
            continue
        try:
            mod = _import_file(f"bothost_modules.{name}", path)
        except Exception as e:  # noqa: BLE001
            logger.error(f"Failed to import module '{name}': {e}", exc_info=e)
            continue
        out.append(getattr(mod, ENTRY_POINT_ATTR, mod))
        logger.debug(f"Discovered module '{name}'")
    return out
