from __future__ import annotations

import os
import re
from dataclasses import dataclass


_SAFE_SEGMENT = re.compile(r"[A-Za-z0-9][A-Za-z0-9._-]{0,127}")


def safe_segment(value: str, *, what: str) -> str:
    """Single path segment (bot id, module name); rejects separators and dot-names."""
    value = str(value or "").strip()
    if not _SAFE_SEGMENT.fullmatch(value) or value in {".", ".."}:
        raise ValueError(f"{what} contains invalid characters: {value!r}")
    return value


@dataclass(frozen=True)
class HostPaths:
    """
    On-disk layout of a host installation. Other host components read the
    global namespaces below, so the layout is a contract:

      {global_data_dir}/actions/{module}/...
      {global_data_dir}/hooks/{hook_type}/{module}/...
      {global_assets_dir}/modules/{module}/...
    """

    root: str = "."
    data_dir_name: str = "data"
    assets_dir_name: str = "assets"
    modules_dir_name: str = "modules"
    logs_dir_name: str = "logs"

    @property
    def config_dir(self) -> str:
        return os.path.join(self.root, "config")

    @property
    def host_config(self) -> str:
        return os.path.join(self.config_dir, "host.json")

    @property
    def data_dir(self) -> str:
        return os.path.join(self.root, self.data_dir_name)

    @property
    def global_data_dir(self) -> str:
        return os.path.join(self.data_dir, "global")

    @property
    def global_assets_dir(self) -> str:
        return os.path.join(self.root, self.assets_dir_name)

    @property
    def modules_root(self) -> str:
        return os.path.join(self.root, self.modules_dir_name)

    @property
    def logs_dir(self) -> str:
        return os.path.join(self.root, self.logs_dir_name)

    # Global namespaces
    def actions_dir(self, module: str) -> str:
        return os.path.join(self.global_data_dir, "actions", module)

    def hooks_dir(self, hook_type: str, module: str) -> str:
        return os.path.join(self.global_data_dir, "hooks", hook_type, module)

    def module_assets_dir(self, module: str) -> str:
        return os.path.join(self.global_assets_dir, "modules", module)

    def global_module_config(self, module: str) -> str:
        return os.path.join(self.global_data_dir, "config", f"{module}.json")

    # Per-tenant namespaces
    def bot_dir(self, bot_id: str) -> str:
        return os.path.join(self.data_dir, "bots", bot_id)

    def bot_module_dir(self, bot_id: str, module: str) -> str:
        return os.path.join(self.bot_dir(bot_id), "modules", module)

    def bot_module_config(self, bot_id: str, module: str) -> str:
        return os.path.join(self.bot_dir(bot_id), "config", f"{module}.json")
