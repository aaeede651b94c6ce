# backend/lib/consumption_core/models.py
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Optional


class Tier(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    EXCELLENT = "excellent"


@dataclass
class Reading:
    value: float
    tier: Tier
    message: str
    created_at: datetime


@dataclass
class AggregatedAlert:
    device_id: str
    tier: Tier
    message: str
    average_reading: float
    max_reading: float
    counts: Dict[str, int]
    samples: int

    def to_item(self) -> dict:
        return {
            "device_id": self.device_id,
            "tier": self.tier.value,
            "message": self.message,
            "average_reading": self.average_reading,
            "max_reading": self.max_reading,
            "counts": dict(self.counts),
            "samples": self.samples,
        }


@dataclass
class TemporalContext:
    is_summer: bool
    is_winter: bool
    is_night: bool
    is_weekend: bool

    def to_item(self) -> dict:
        return {
            "is_summer": self.is_summer,
            "is_winter": self.is_winter,
            "is_night": self.is_night,
            "is_weekend": self.is_weekend,
        }


@dataclass
class Suggestion:
    device_id: str
    tier: Tier
    short_message: str
    description: str
    related_reading: float
    context: TemporalContext
    read: bool = False
    suggestion_id: Optional[str] = None
    created_at: Optional[datetime] = field(default=None)

    def to_item(self) -> dict:
        return {
            "suggestion_id": self.suggestion_id,
            "device_id": self.device_id,
            "tier": self.tier.value,
            "short_message": self.short_message,
            "description": self.description,
            "related_reading": self.related_reading,
            "read": self.read,
            "context": self.context.to_item(),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
