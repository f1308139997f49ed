# Copyright 2019 Joan Puig
# See LICENSE for details


from dataclasses import dataclass
from typing import Any, Callable, Tuple

import pandas as pd

from VO2.activities import ActivityRecord
from VO2.aggregation import DailySeries
from VO2.averaging import TrailingWindow, trailing_average


ChartPoint = Tuple[str, float]
ChartSeries = Tuple[ChartPoint, ...]
Renderer = Callable[[str, ChartSeries, ChartSeries], Any]


def heart_rate_value(record: ActivityRecord) -> float:
    # Heart rates above 127 are read back as negative bytes
    if record.heart_rate is None:
        return 0.0
    return float(record.heart_rate if record.heart_rate > 0 else record.heart_rate + 255)


def cadence_value(record: ActivityRecord) -> float:
    # Stored in half steps
    if record.cadence is None:
        return 0.0
    return float(record.cadence) * 2


@dataclass(frozen=True)
class Metric:
    label: str
    value: Callable[[ActivityRecord], float]


VO2_MAX = Metric('VO2Max', lambda record: record.vo2_max)
AVERAGE_HR = Metric('AverageHR', heart_rate_value)
CADENCE = Metric('Cadence', cadence_value)
WEIGHT = Metric('Weight', lambda record: record.weight)

DEFAULT_METRICS = (VO2_MAX, AVERAGE_HR, CADENCE, WEIGHT)


@dataclass(frozen=True)
class MetricReport:
    label: str
    raw: ChartSeries
    averaged: ChartSeries

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({
            'date': [day for day, _ in self.raw],
            'raw': [value for _, value in self.raw],
            'averaged': [value for _, value in self.averaged],
        }, columns=['date', 'raw', 'averaged'])


class ReportAssembler:
    def __init__(self, series: DailySeries, window_capacity: int = TrailingWindow.DEFAULT_CAPACITY):
        self.series = series
        self.window_capacity = window_capacity

    def assemble(self, metric: Metric) -> MetricReport:
        items = self.series.items()
        days = [day.isoformat() for day, _ in items]
        values = [float(metric.value(record)) for _, record in items]
        averaged = trailing_average(values, self.window_capacity)
        return MetricReport(metric.label, tuple(zip(days, values)), tuple(zip(days, averaged)))

    def render(self, metric: Metric, renderer: Renderer) -> Any:
        report = self.assemble(metric)
        return renderer(report.label, report.raw, report.averaged)
