from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from bothost.core.events import redact


class Severity(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class BotHostError(Exception):
    code: str
    user_message: str
    severity: Severity = Severity.ERROR
    recoverable: bool = True
    context: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.user_message or self.code)

    def __str__(self) -> str:
        return self.user_message or self.code

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "recoverable": bool(self.recoverable),
            "context": redact(self.context or {}),
        }


# ---- Module contract ----
class ValidationError(BotHostError):
    """
    A manifest failed schema validation. `violations` lists every problem found,
    each as {"loc": "definition.name", "msg": "...", "type": "..."}.
    """

    def __init__(self, user_message: str = "Invalid module configuration", *, violations: Optional[List[Dict[str, Any]]] = None, **ctx: Any):
        super().__init__("validation_error", user_message, severity=Severity.WARN, recoverable=False, context=ctx)
        self.violations: List[Dict[str, Any]] = list(violations or [])

    def to_dict(self) -> Dict[str, Any]:
        out = super().to_dict()
        out["violations"] = list(self.violations)
        return out


class CallbackError(BotHostError):
    def __init__(self, user_message: str = "Module callback failed.", **ctx: Any):
        super().__init__("callback_error", user_message, severity=Severity.ERROR, recoverable=True, context=ctx)


class ModuleNotRegistered(BotHostError):
    def __init__(self, module: str, **ctx: Any):
        super().__init__("module_not_registered", f"Module '{module}' not registered", severity=Severity.ERROR, recoverable=False, context={"module": module, **ctx})
        self.module = module


class ModuleResolutionError(BotHostError):
    def __init__(self, user_message: str = "Module location could not be resolved.", **ctx: Any):
        super().__init__("module_resolution_error", user_message, severity=Severity.ERROR, recoverable=True, context=ctx)


# ---- Loader state ----
class ConfigurationStateError(BotHostError):
    def __init__(self, user_message: str = "Module configuration state error.", *, code: str = "configuration_state_error", **ctx: Any):
        super().__init__(code, user_message, severity=Severity.CRITICAL, recoverable=False, context=ctx)


class ConfigReaderNotInitialized(ConfigurationStateError):
    def __init__(self, user_message: str = "Configuration reader is not initialized (you need to load modules first)", **ctx: Any):
        super().__init__(user_message, code="config_reader_not_initialized", **ctx)


class ModulesAlreadyLoaded(ConfigurationStateError):
    def __init__(self, user_message: str = "Modules have already been loaded", **ctx: Any):
        super().__init__(user_message, code="modules_already_loaded", **ctx)


# ---- Host ----
class ConfigError(BotHostError):
    def __init__(self, user_message: str = "Configuration error.", **ctx: Any):
        super().__init__("config_error", user_message, severity=Severity.CRITICAL, recoverable=False, context=ctx)


class ResourceError(BotHostError):
    """Host-side failure while copying a module's resources (disk, permissions, layout)."""

    def __init__(self, user_message: str = "Module resources could not be copied.", **ctx: Any):
        super().__init__("resource_error", user_message, severity=Severity.WARN, recoverable=True, context=ctx)
