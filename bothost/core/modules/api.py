from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from bothost.core.config.paths import HostPaths
from bothost.core.logger import get_logger
from bothost.core.modules.config_reader import ModuleConfigReader
from bothost.core.modules.resources import ResourceMaterializer


class ModuleApi:
    """
    Capability handle passed to every lifecycle callback of one module.

    Scoped to a single module name: configuration reads and per-bot working
    directories never reach another module's namespace.
    """

    def __init__(
        self,
        *,
        module_name: str,
        paths: HostPaths,
        materializer: ResourceMaterializer,
        config_source: Callable[[], ModuleConfigReader],
        logger: Any = None,
    ):
        self.module_name = module_name
        self.paths = paths
        self.logger = logger or get_logger(f"module.{module_name}")
        self._materializer = materializer
        self._config_source = config_source

    def get_global_config(self) -> Dict[str, Any]:
        return self._config_source().get_global(self.module_name)

    def get_bot_config(self, bot_id: str) -> Dict[str, Any]:
        return self._config_source().get_for_bot(self.module_name, bot_id)

    def tenant_dir(self, bot_id: str) -> str:
        return self._materializer.tenant_dir(bot_id, self.module_name)

    def __repr__(self) -> str:
        return f"ModuleApi(module_name={self.module_name!r})"


class ModuleApiProvider:
    def __init__(
        self,
        *,
        paths: HostPaths,
        materializer: ResourceMaterializer,
        config_source: Callable[[], ModuleConfigReader],
        logger_factory: Optional[Callable[[str], Any]] = None,
    ):
        self.paths = paths
        self.materializer = materializer
        self.config_source = config_source
        self.logger_factory = logger_factory or (lambda name: get_logger(f"module.{name}"))

    def create_for_module(self, module_name: str) -> ModuleApi:
        return ModuleApi(
            module_name=module_name,
            paths=self.paths,
            materializer=self.materializer,
            config_source=self.config_source,
            logger=self.logger_factory(module_name),
        )
