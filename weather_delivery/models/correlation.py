from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class DeliveryHourBucket:
    count: int = 0
    total_value: float = 0.0
    types: dict[str, int] = field(default_factory=dict)
    neighborhoods: dict[str, int] = field(default_factory=dict)

    @property
    def avg_value(self) -> float:
        if self.count == 0:
            return 0.0
        return self.total_value / self.count


@dataclass(frozen=True)
class CorrelationResult:
    coefficient: float
    strength: str
    pairs: int
    significance: str


@dataclass(frozen=True)
class Insight:
    type: str
    factor: str
    message: str
    strength: str


@dataclass(frozen=True)
class DataPoints:
    weather: int
    deliveries: int
    hours: int


@dataclass(frozen=True)
class AnalysisReport:
    correlations: dict[str, CorrelationResult]
    order_value: dict[str, CorrelationResult]
    insights: list[Insight]
    data_points: DataPoints
    generated_at: datetime


@dataclass(frozen=True)
class InsufficientDataReport:
    message: str = "Insufficient data for correlation analysis"
