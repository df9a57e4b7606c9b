from __future__ import annotations

"""
Per-module configuration.

A module may ship `config.schema.json` in its installed root (JSON-schema style,
`{"properties": {"key": {"default": ...}}}`). On initialize() the defaults are
extracted and the global config file `{global_data}/config/<module>.json` is
bootstrapped with them when it does not exist yet. Reads layer:

  schema defaults < global file < bot file ({data}/bots/<bot_id>/config/<module>.json)
"""

import copy
import json
import os
from typing import Any, Dict, Iterable, List

from bothost.core.config.io import atomic_write_json, read_json_file
from bothost.core.config.paths import HostPaths, safe_segment
from bothost.core.errors import ModuleNotRegistered, ModuleResolutionError
from bothost.core.logger import get_logger
from bothost.core.modules.resolver import MODULES_ROOT_PREFIX, ModuleResolver
from bothost.core.modules.validation import manifest_name


CONFIG_SCHEMA_FILE = "config.schema.json"


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = deep_merge(out[k], v)
        else:
            out[k] = copy.deepcopy(v)
    return out


def schema_defaults(schema: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    props = schema.get("properties") if isinstance(schema, dict) else None
    if not isinstance(props, dict):
        return out
    for key, prop in props.items():
        if not isinstance(prop, dict):
            continue
        if "default" in prop:
            out[str(key)] = copy.deepcopy(prop["default"])
        elif prop.get("type") == "object" and isinstance(prop.get("properties"), dict):
            nested = schema_defaults(prop)
            if nested:
                out[str(key)] = nested
    return out


class ModuleConfigReader:
    def __init__(self, *, logger: Any = None, modules: Iterable[Any], paths: HostPaths, resolver: ModuleResolver):
        self.logger = logger or get_logger("modules.config")
        self.paths = paths
        self.resolver = resolver
        self._names: List[str] = []
        for m in modules:
            name = manifest_name(m)
            if name and name not in self._names:
                self._names.append(name)
        self._defaults: Dict[str, Dict[str, Any]] = {}
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        for name in self._names:
            defaults = self._load_defaults(name)
            self._defaults[name] = defaults
            target = self.paths.global_module_config(name)
            if defaults and not os.path.exists(target):
                atomic_write_json(target, defaults)
                self.logger.info(f'Module "{name}": global configuration bootstrapped')
        self._initialized = True

    def _load_defaults(self, name: str) -> Dict[str, Any]:
        try:
            root = self.resolver.resolve(MODULES_ROOT_PREFIX + name)
        except ModuleResolutionError:
            # module provided in-process without an installed directory
            self.logger.debug(f'Module "{name}": no installed directory, no configuration schema')
            return {}
        path = os.path.join(root, CONFIG_SCHEMA_FILE)
        if not os.path.exists(path):
            return {}
        try:
            with open(path, "r", encoding="utf-8") as f:
                schema = json.load(f)
        except (OSError, ValueError) as e:
            self.logger.warning(f'Module "{name}": unreadable {CONFIG_SCHEMA_FILE}: {e}')
            return {}
        return schema_defaults(schema)

    def _require(self, module: str) -> str:
        key = str(module or "").lower()
        if key not in self._names:
            raise ModuleNotRegistered(key)
        return key

    def _read_layer(self, path: str, *, module: str) -> Dict[str, Any]:
        rr = read_json_file(path)
        if rr.ok:
            return rr.data
        if rr.error != "missing":
            self.logger.warning(f'Module "{module}": ignoring configuration file {path} ({rr.error})')
        return {}

    def get_global(self, module: str) -> Dict[str, Any]:
        key = self._require(module)
        base = self._defaults.get(key, {})
        return deep_merge(base, self._read_layer(self.paths.global_module_config(key), module=key))

    def get_for_bot(self, module: str, bot_id: str) -> Dict[str, Any]:
        key = self._require(module)
        return deep_merge(self.get_global(key), self._read_layer(self.paths.bot_module_config(safe_segment(bot_id, what="bot_id"), key), module=key))
