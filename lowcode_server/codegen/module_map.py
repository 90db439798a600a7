"""
Collection of generated files keyed by their path.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional

from lowcode_server.codegen.build_logger import BuildLogger


def normalize_path(path: str) -> str:
    path = path.replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path


@dataclass
class Module:
    """A generated file."""

    path: str
    code: str

    def __post_init__(self):
        self.path = normalize_path(self.path)


class ModuleMap:
    """
    Generated modules in insertion order.

    Setting a path that already exists replaces its module in place.
    """

    def __init__(self, logger: Optional[BuildLogger] = None):
        self._modules: Dict[str, Module] = {}
        self._logger = logger

    def set(self, module: Module) -> None:
        self._modules[module.path] = module

    def get(self, path: str) -> Optional[Module]:
        return self._modules.get(normalize_path(path))

    def remove(self, path: str) -> None:
        self._modules.pop(normalize_path(path), None)

    def replace(self, old_module: Module, new_module: Module) -> None:
        """Replace a module, keeping its position when the path is unchanged."""
        if new_module.path == old_module.path:
            self._modules[new_module.path] = new_module
            return
        self.remove(old_module.path)
        self.set(new_module)

    def merge(self, other: "ModuleMap") -> None:
        """Add all modules of another map; its modules win on conflicting paths."""
        for module in other.modules():
            if module.path in self._modules and self._logger is not None:
                self._logger.warning(
                    f"Module {module.path} already exists. Overriding previous module",
                    {"path": module.path},
                )
            self.set(module)

    def merge_many(self, maps: Iterable["ModuleMap"]) -> None:
        for module_map in maps:
            self.merge(module_map)

    def modules(self) -> List[Module]:
        return list(self._modules.values())

    def __len__(self) -> int:
        return len(self._modules)

    def __iter__(self) -> Iterator[Module]:
        return iter(self.modules())

    def __contains__(self, path) -> bool:
        return normalize_path(path) in self._modules
