"""
Registration Data Model

Value types passed between the scraper, the snapshot store and the notifier.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import List, Optional

FIELDS = ("polideportivo", "categoria", "actividad", "subcategoria", "horario")


@dataclass(frozen=True)
class Registration:
    """One row of the remote results table."""

    polideportivo: str = ""
    categoria: str = ""
    actividad: str = ""
    subcategoria: str = ""
    horario: str = ""

    @classmethod
    def from_cells(cls, cells):
        """Build a registration from positional cell texts, padding with ''."""
        values = [(cells[i] if i < len(cells) else "") or "" for i in range(len(FIELDS))]
        return cls(*(value.strip() for value in values))

    @classmethod
    def from_dict(cls, data):
        return cls(**{name: str(data.get(name) or "") for name in FIELDS})

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class Snapshot:
    """Latest persisted extraction result."""

    timestamp: str
    registrations: List[Registration] = field(default_factory=list)

    @classmethod
    def capture(cls, registrations, captured_at=None):
        captured_at = captured_at or datetime.now(timezone.utc)
        return cls(timestamp=captured_at.isoformat(), registrations=list(registrations))

    @classmethod
    def from_dict(cls, data):
        return cls(
            timestamp=data["timestamp"],
            registrations=[Registration.from_dict(r) for r in data.get("registrations", [])],
        )

    def to_dict(self):
        return {
            "timestamp": self.timestamp,
            "registrations": [r.to_dict() for r in self.registrations],
        }


SUCCESS = "success"
FAILURE = "failure"


@dataclass
class PipelineOutcome:
    """Result of a single pipeline run."""

    status: str
    registrations: List[Registration] = field(default_factory=list)
    reason: Optional[str] = None
    snapshot_url: Optional[str] = None
    screenshot_url: Optional[str] = None
    notified: bool = False
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def succeeded(self):
        return self.status == SUCCESS

    def summary(self):
        return {
            "status": self.status,
            "registrations": len(self.registrations),
            "reason": self.reason,
            "snapshot_url": self.snapshot_url,
            "screenshot_url": self.screenshot_url,
            "notified": self.notified,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }
