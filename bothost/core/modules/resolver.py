from __future__ import annotations

import os
from typing import Any, List, Optional

from bothost.core.errors import ModuleResolutionError
from bothost.core.logger import get_logger


MODULES_ROOT_PREFIX = "MODULES_ROOT/"


class ModuleResolver:
    """
    Locates a module's installed directory.

    Accepted locations:
      - "MODULES_ROOT/<name>"  (relative to the configured modules root)
      - "<name>"
      - an absolute directory path
    Module names are matched case-insensitively against directory names.
    """

    def __init__(self, *, modules_root: str, logger: Any = None):
        self.modules_root = str(modules_root)
        self.logger = logger or get_logger("modules.resolver")

    def resolve(self, location: str) -> str:
        location = str(location or "").strip()
        if not location:
            raise ModuleResolutionError("Empty module location.", location=location)

        if os.path.isabs(location):
            if os.path.isdir(location):
                return location
            raise ModuleResolutionError(f"Module directory '{location}' does not exist.", location=location)

        name = location[len(MODULES_ROOT_PREFIX) :] if location.startswith(MODULES_ROOT_PREFIX) else location
        name = name.strip("/\\")
        if not name or os.sep in name or "/" in name or name in {".", ".."}:
            raise ModuleResolutionError(f"Invalid module location '{location}'.", location=location)

        for candidate in self._candidates(name):
            if os.path.isdir(candidate):
                return candidate

        self.logger.debug(f"Module '{name}' not found under {self.modules_root}")
        raise ModuleResolutionError(f"Module '{name}' could not be resolved.", location=location, modules_root=self.modules_root)

    def _candidates(self, name: str) -> List[str]:
        out = [os.path.join(self.modules_root, name)]
        match = self._case_insensitive_match(name)
        if match is not None:
            out.append(os.path.join(self.modules_root, match))
        return out

    def _case_insensitive_match(self, name: str) -> Optional[str]:
        if not os.path.isdir(self.modules_root):
            return None
        wanted = name.lower()
        for entry in sorted(os.listdir(self.modules_root)):
            if entry.lower() == wanted:
                return entry
        return None
