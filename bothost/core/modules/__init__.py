"""
Module lifecycle: manifest contract, registry, resources and the loader.

WHY THIS PACKAGE EXISTS:
Modules are third-party extension units. The loader is the only place that
calls into their code, and it does so one module and one phase at a time so a
broken module can never take the host or its siblings down.
"""

from bothost.core.modules.loader import ModuleLoader
from bothost.core.modules.models import ModuleDefinition, ModuleEntryPoint, Skill, SkillSummary
from bothost.core.modules.validation import validate_entry_point

__all__ = [
    "ModuleDefinition",
    "ModuleEntryPoint",
    "ModuleLoader",
    "Skill",
    "SkillSummary",
    "validate_entry_point",
]
