from __future__ import annotations

from typing import Any, Dict, List, Mapping, Tuple

from pydantic import ValidationError as PydanticValidationError

from bothost.core.errors import ValidationError
from bothost.core.modules.models import ModuleEntryPoint


# (camelCase, snake_case) attribute names read from non-mapping manifests
ENTRY_POINT_KEYS: Tuple[Tuple[str, str], ...] = (
    ("onServerStarted", "on_server_started"),
    ("onServerReady", "on_server_ready"),
    ("onBotMount", "on_bot_mount"),
    ("onBotUnmount", "on_bot_unmount"),
    ("skills", "skills"),
    ("definition", "definition"),
)

DEFINITION_KEYS: Tuple[Tuple[str, str], ...] = (
    ("name", "name"),
    ("fullName", "full_name"),
    ("plugins", "plugins"),
    ("noInterface", "no_interface"),
    ("moduleView", "module_view"),
    ("menuIcon", "menu_icon"),
    ("menuText", "menu_text"),
    ("homepage", "homepage"),
)


def _object_to_mapping(obj: Any, keys: Tuple[Tuple[str, str], ...]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for camel, snake in keys:
        if hasattr(obj, camel):
            out[camel] = getattr(obj, camel)
        elif hasattr(obj, snake):
            out[camel] = getattr(obj, snake)
    return out


def as_manifest_mapping(manifest: Any) -> Dict[str, Any]:
    """
    Raw manifest as a plain dict. Mappings are copied as-is; other objects
    (e.g. an imported Python module) contribute only the known attributes.
    """
    if manifest is None:
        return {}
    if isinstance(manifest, Mapping):
        out = dict(manifest)
    else:
        out = _object_to_mapping(manifest, ENTRY_POINT_KEYS)
    definition = out.get("definition")
    if definition is not None and not isinstance(definition, (Mapping, str, int, float, bool, list)):
        out["definition"] = _object_to_mapping(definition, DEFINITION_KEYS)
    return out


def manifest_name(manifest: Any) -> str:
    """Lower-cased definition.name of a raw manifest, "" when absent or not a string."""
    definition = as_manifest_mapping(manifest).get("definition")
    name = definition.get("name") if isinstance(definition, Mapping) else None
    return name.lower() if isinstance(name, str) else ""


def _violations(exc: PydanticValidationError) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    for err in exc.errors(include_url=False):
        out.append(
            {
                "loc": ".".join(str(p) for p in err.get("loc") or ()),
                "msg": str(err.get("msg") or ""),
                "type": str(err.get("type") or ""),
            }
        )
    return out


def validate_entry_point(manifest: Any, name: str = "") -> ModuleEntryPoint:
    """
    Validate and normalize one raw manifest.

    Every schema violation is collected into a single ValidationError; nothing
    is returned unless the whole manifest is valid.
    """
    raw = as_manifest_mapping(manifest)
    try:
        return ModuleEntryPoint.model_validate(raw)
    except PydanticValidationError as e:
        message = f'Module "{name}" has invalid configuration' if name else "Invalid module configuration"
        raise ValidationError(message, violations=_violations(e), module=name) from e
