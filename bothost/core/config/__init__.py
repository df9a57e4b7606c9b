from bothost.core.config.loader import load_host_config
from bothost.core.config.models import HostConfig
from bothost.core.config.paths import HostPaths

__all__ = ["HostConfig", "HostPaths", "load_host_config"]
