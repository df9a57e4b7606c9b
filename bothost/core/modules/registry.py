from __future__ import annotations

from typing import Dict, Iterator, List, Optional

from bothost.core.errors import ModuleNotRegistered
from bothost.core.modules.models import ModuleDefinition, ModuleEntryPoint


class ModuleRegistry:
    """
    Loaded modules keyed by lower-cased definition name, in registration order.

    Contract:
      - keys are case-insensitive ("Foo", "foo" and "FOO" are one module)
      - registering an existing name replaces the entry (last wins, first position kept)
      - there is no unregister; entries live for the process lifetime
    """

    def __init__(self) -> None:
        self._entry_points: Dict[str, ModuleEntryPoint] = {}

    def register(self, entry_point: ModuleEntryPoint) -> str:
        key = entry_point.name
        self._entry_points[key] = entry_point
        return key

    def get(self, name: str) -> ModuleEntryPoint:
        key = str(name or "").lower()
        entry = self._entry_points.get(key)
        if entry is None:
            raise ModuleNotRegistered(key)
        return entry

    def find(self, name: str) -> Optional[ModuleEntryPoint]:
        return self._entry_points.get(str(name or "").lower())

    def has(self, name: str) -> bool:
        return str(name or "").lower() in self._entry_points

    def names(self) -> List[str]:
        return list(self._entry_points.keys())

    def entry_points(self) -> List[ModuleEntryPoint]:
        return list(self._entry_points.values())

    def definitions(self) -> List[ModuleDefinition]:
        return [e.definition for e in self._entry_points.values()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)

    def __len__(self) -> int:
        return len(self._entry_points)

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())
