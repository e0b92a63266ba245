from __future__ import annotations

from datetime import datetime

from pydantic import Field

from weather_delivery.models.correlation import (
    AnalysisReport,
    CorrelationResult,
    InsufficientDataReport,
)
from weather_delivery.schemas.base import CamelModel


class CorrelationRead(CamelModel):
    coefficient: float = Field(ge=-1.0, le=1.0)
    strength: str
    pairs: int = Field(ge=0)
    significance: str

    @classmethod
    def from_record(cls, r: CorrelationResult) -> CorrelationRead:
        return cls(
            coefficient=r.coefficient,
            strength=r.strength,
            pairs=r.pairs,
            significance=r.significance,
        )


class FactorCorrelations(CamelModel):
    temperature: CorrelationRead
    rainfall: CorrelationRead
    humidity: CorrelationRead
    wind_speed: CorrelationRead

    @classmethod
    def from_records(cls, rows: dict[str, CorrelationResult]) -> FactorCorrelations:
        return cls(**{factor: CorrelationRead.from_record(r) for factor, r in rows.items()})


class CorrelationSet(FactorCorrelations):
    order_value: FactorCorrelations


class InsightRead(CamelModel):
    type: str
    factor: str
    message: str
    strength: str


class DataPointsRead(CamelModel):
    weather: int = Field(ge=0)
    deliveries: int = Field(ge=0)
    hours: int = Field(ge=0)


class AnalysisReportRead(CamelModel):
    correlations: CorrelationSet
    insights: list[InsightRead]
    data_points: DataPointsRead
    generated_at: datetime


class InsufficientDataRead(CamelModel):
    message: str


ReportRead = AnalysisReportRead | InsufficientDataRead


def report_to_schema(report: AnalysisReport | InsufficientDataReport) -> ReportRead:
    if isinstance(report, InsufficientDataReport):
        return InsufficientDataRead(message=report.message)

    counts = {factor: CorrelationRead.from_record(r) for factor, r in report.correlations.items()}
    return AnalysisReportRead(
        correlations=CorrelationSet(
            **counts, order_value=FactorCorrelations.from_records(report.order_value)
        ),
        insights=[
            InsightRead(type=i.type, factor=i.factor, message=i.message, strength=i.strength)
            for i in report.insights
        ],
        data_points=DataPointsRead(
            weather=report.data_points.weather,
            deliveries=report.data_points.deliveries,
            hours=report.data_points.hours,
        ),
        generated_at=report.generated_at,
    )


class DashboardSummary(CamelModel):
    total_deliveries: int = Field(ge=0)
    average_temperature: float
    correlations: ReportRead
    last_updated: datetime
