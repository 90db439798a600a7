"""
Build log collected while generating a service.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from lowcode_server.utils.verbosity_logger import get_logger

logger = get_logger("lowcode_server.codegen.build")


@dataclass
class BuildLogEntry:
    level: str
    message: str
    meta: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"level": self.level, "message": self.message, "meta": self.meta}


class BuildLogger:
    """Collects the build log returned to the caller, mirrored to the server log."""

    def __init__(self):
        self.entries: List[BuildLogEntry] = []

    def _log(self, level: str, message: str, meta: Optional[Dict[str, Any]]) -> None:
        entry = BuildLogEntry(level=level, message=message, meta=meta or {})
        self.entries.append(entry)
        getattr(logger, level)(message)

    def info(self, message: str, meta: Optional[Dict[str, Any]] = None) -> None:
        self._log("info", message, meta)

    def warning(self, message: str, meta: Optional[Dict[str, Any]] = None) -> None:
        self._log("warning", message, meta)

    def error(self, message: str, meta: Optional[Dict[str, Any]] = None) -> None:
        self._log("error", message, meta)

    def to_list(self) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in self.entries]
