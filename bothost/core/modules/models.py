from __future__ import annotations

"""
Module contract models (entry point + definition + skills).

The entry point is the validated, normalized form of what a module hands the
loader. Keys are accepted in camelCase (onServerStarted, fullName, ...) or
snake_case; validation errors are reported with the camelCase spelling.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


DEFAULT_MENU_ICON = "view_module"


def _pick(data: Mapping[str, Any], camel: str, snake: str) -> Any:
    if data.get(camel) is not None:
        return data.get(camel)
    return data.get(snake)


class ModuleView(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    stretched: bool = False


class ModuleDefinition(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, alias_generator=to_camel, populate_by_name=True)

    name: str = Field(min_length=1)
    full_name: Optional[str] = None
    plugins: List[Any] = Field(default_factory=list)
    no_interface: bool = False
    module_view: ModuleView = Field(default_factory=ModuleView)
    menu_icon: str = DEFAULT_MENU_ICON
    menu_text: Optional[str] = None
    homepage: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _name_derived_defaults(cls, data: Any) -> Any:
        # fullName/menuText default to the module name; supplied values win.
        if not isinstance(data, Mapping):
            return data
        name = data.get("name")
        if not isinstance(name, str):
            return data
        out = dict(data)
        if _pick(out, "fullName", "full_name") is None:
            out.pop("full_name", None)
            out["fullName"] = name
        if _pick(out, "menuText", "menu_text") is None:
            out.pop("menu_text", None)
            out["menuText"] = name
        for camel, snake in (("plugins", "plugins"), ("moduleView", "module_view"), ("noInterface", "no_interface"), ("menuIcon", "menu_icon")):
            if camel in out and out[camel] is None:
                del out[camel]
            if snake in out and out[snake] is None:
                del out[snake]
        return out


class Skill(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str = Field(min_length=1)
    name: str
    # internal: never serialized, never listed by the skill catalog
    flow_generator: Optional[Callable[..., Any]] = Field(default=None, exclude=True)


class ModuleEntryPoint(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, alias_generator=to_camel, populate_by_name=True)

    on_server_started: Callable[..., Any]
    on_server_ready: Callable[..., Any]
    on_bot_mount: Optional[Callable[..., Any]] = None
    on_bot_unmount: Optional[Callable[..., Any]] = None
    skills: List[Skill] = Field(default_factory=list)
    definition: ModuleDefinition

    @field_validator("skills", mode="before")
    @classmethod
    def _none_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @property
    def name(self) -> str:
        """Registry key: the lower-cased definition name."""
        return self.definition.name.lower()


class SkillSummary(BaseModel):
    """Public projection of a skill; dump with by_alias=True for {id, name, moduleName}."""

    model_config = ConfigDict(extra="forbid", frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    module_name: str


class ModulePhase(str, Enum):
    REGISTERED = "REGISTERED"
    START_OK = "START_OK"
    START_FAILED = "START_FAILED"
    READY_OK = "READY_OK"
    READY_FAILED = "READY_FAILED"
    MOUNTED = "MOUNTED"
    MOUNT_FAILED = "MOUNT_FAILED"
    UNMOUNTED = "UNMOUNTED"
    UNMOUNT_FAILED = "UNMOUNT_FAILED"


@dataclass(frozen=True)
class CallbackResult:
    """Outcome of one guarded call into module code."""

    ok: bool
    value: Any = None
    error: Optional[BaseException] = None
