from __future__ import annotations

import os
from typing import Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from bothost.core.config.io import read_json_file
from bothost.core.config.models import HostConfig
from bothost.core.config.paths import HostPaths
from bothost.core.errors import ConfigError


ENV_ROOT = "BOTHOST_ROOT"
ENV_MODULES_DIR = "BOTHOST_MODULES_DIR"


def load_host_config(root: Optional[str] = None) -> Tuple[HostConfig, HostPaths]:
    """
    Reads config/host.json under the host root.

    Missing file -> defaults. Corrupt or invalid file -> ConfigError (the host
    must not start on a half-understood configuration).
    """
    root = root or os.getenv(ENV_ROOT) or "."
    probe = HostPaths(root=root)
    rr = read_json_file(probe.host_config)
    if not rr.ok and rr.error != "missing":
        raise ConfigError("Host configuration is unreadable.", path=probe.host_config, error=rr.error)

    raw = dict(rr.data)
    modules_override = os.getenv(ENV_MODULES_DIR)
    if modules_override:
        paths_raw = dict(raw.get("paths") or {})
        paths_raw["modules_dir"] = modules_override
        raw["paths"] = paths_raw

    try:
        cfg = HostConfig.model_validate(raw)
    except PydanticValidationError as e:
        raise ConfigError("Host configuration is invalid.", path=probe.host_config, error=str(e)[:500]) from e

    paths = HostPaths(
        root=root,
        data_dir_name=cfg.paths.data_dir,
        assets_dir_name=cfg.paths.assets_dir,
        modules_dir_name=cfg.paths.modules_dir,
        logs_dir_name=cfg.paths.logs_dir,
    )
    return cfg, paths
