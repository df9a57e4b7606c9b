from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List

from bothost.core.config.paths import HostPaths, safe_segment
from bothost.core.logger import get_logger
from bothost.core.modules.resolver import MODULES_ROOT_PREFIX, ModuleResolver


# source sub-directories, relative to the module's installed root
ACTIONS_SRC = os.path.join("dist", "actions")
HOOKS_SRC = os.path.join("dist", "hooks")
ASSETS_SRC = "assets"


class ResourceCategory(str, Enum):
    ACTIONS = "actions"
    HOOKS = "hooks"
    ASSETS = "assets"


class MaterializationStatus(str, Enum):
    COPIED = "copied"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class MaterializationReport:
    module: str
    results: Dict[str, MaterializationStatus] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)
    # original exceptions per failed category; not serialized
    failures: Dict[str, BaseException] = field(default_factory=dict, repr=False)

    @property
    def ok(self) -> bool:
        return all(s != MaterializationStatus.FAILED for s in self.results.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "module": self.module,
            "results": {k: v.value for k, v in self.results.items()},
            "errors": dict(self.errors),
        }


def replace_tree(src: str, dst: str) -> None:
    """Make `dst` an exact copy of `src` (existing destination content is dropped)."""
    if os.path.isdir(dst):
        shutil.rmtree(dst)
    elif os.path.exists(dst):
        os.remove(dst)
    os.makedirs(os.path.dirname(dst) or ".", exist_ok=True)
    shutil.copytree(src, dst)


class ResourceMaterializer:
    """
    Copies module-declared resources into the host's shared namespaces:

      dist/actions/            -> {global_data}/actions/{module}/
      dist/hooks/{hook_type}/  -> {global_data}/hooks/{hook_type}/{module}/
      assets/                  -> {global_assets}/modules/{module}/

    Every category resolves the module root on its own, so a failure in one
    category leaves the others untouched. A missing source directory means the
    module ships nothing of that kind.
    """

    def __init__(self, *, paths: HostPaths, resolver: ModuleResolver, logger: Any = None):
        self.paths = paths
        self.resolver = resolver
        self.logger = logger or get_logger("modules.resources")

    def _module_root(self, name: str) -> str:
        return self.resolver.resolve(MODULES_ROOT_PREFIX + name)

    def materialize_actions(self, name: str) -> MaterializationStatus:
        src = os.path.join(self._module_root(name), ACTIONS_SRC)
        if not os.path.isdir(src):
            return MaterializationStatus.SKIPPED
        replace_tree(src, self.paths.actions_dir(name))
        self.logger.debug(f'Module "{name}" actions copied')
        return MaterializationStatus.COPIED

    def materialize_hooks(self, name: str) -> MaterializationStatus:
        src = os.path.join(self._module_root(name), HOOKS_SRC)
        if not os.path.isdir(src):
            return MaterializationStatus.SKIPPED
        hook_types = self.list_hook_types(src)
        for hook_type in hook_types:
            replace_tree(os.path.join(src, hook_type), self.paths.hooks_dir(hook_type, name))
        self.logger.debug(f'Module "{name}" hooks copied ({", ".join(hook_types) or "none"})')
        return MaterializationStatus.COPIED

    def materialize_assets(self, name: str) -> MaterializationStatus:
        src = os.path.join(self._module_root(name), ASSETS_SRC)
        if not os.path.isdir(src):
            return MaterializationStatus.SKIPPED
        replace_tree(src, self.paths.module_assets_dir(name))
        self.logger.debug(f'Module "{name}" assets copied')
        return MaterializationStatus.COPIED

    def materialize(self, name: str) -> MaterializationReport:
        report = MaterializationReport(module=name)
        steps: List[tuple[ResourceCategory, Callable[[str], MaterializationStatus]]] = [
            (ResourceCategory.ACTIONS, self.materialize_actions),
            (ResourceCategory.HOOKS, self.materialize_hooks),
            (ResourceCategory.ASSETS, self.materialize_assets),
        ]
        for category, step in steps:
            try:
                report.results[category.value] = step(name)
            except Exception as e:  # noqa: BLE001
                report.results[category.value] = MaterializationStatus.FAILED
                report.errors[category.value] = str(e)[:300]
                report.failures[category.value] = e
                self.logger.warning(f'Module "{name}": failed to copy {category.value}: {e}', exc_info=True)
        return report

    @staticmethod
    def list_hook_types(hooks_src: str) -> List[str]:
        return [n for n in sorted(os.listdir(hooks_src)) if os.path.isdir(os.path.join(hooks_src, n))]

    def tenant_dir(self, bot_id: str, module: str, *, create: bool = True) -> str:
        """Per-tenant working directory of a module: {data}/bots/{bot_id}/modules/{module}/."""
        path = self.paths.bot_module_dir(safe_segment(bot_id, what="bot_id"), safe_segment(module, what="module"))
        if create:
            os.makedirs(path, exist_ok=True)
        return path

