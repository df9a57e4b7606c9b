from __future__ import annotations

from typing import Any, Callable, List, Optional

from bothost.core.modules.models import SkillSummary
from bothost.core.modules.registry import ModuleRegistry


class SkillCatalog:
    """Read-only view of the skills declared by registered modules."""

    def __init__(self, registry: ModuleRegistry):
        self.registry = registry

    def list_skills(self) -> List[SkillSummary]:
        out: List[SkillSummary] = []
        for entry in self.registry.entry_points():
            for skill in entry.skills:
                out.append(SkillSummary(id=skill.id, name=skill.name, module_name=entry.definition.name))
        return out

    def resolve_flow_generator(self, module_name: str, skill_id: str) -> Optional[Callable[..., Any]]:
        # raises ModuleNotRegistered for unknown modules; unknown skill ids are not an error
        entry = self.registry.get(module_name)
        for skill in entry.skills:
            if skill.id == skill_id:
                return skill.flow_generator
        return None
