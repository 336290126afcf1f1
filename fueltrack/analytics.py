"""
Fuel analytics computed on demand from a vehicle's entries.

Every function expects entries most recent first, the order the store
returns them, and accepts empty or single-entry input:
- monthly_rollup: last 12 calendar months of cost, distance and efficiency
- price_moving_average: trailing 5-entry mean of the fuel price
- compute_insights: best/worst efficiency, trends, 30-day projection
- predict_refuel: average refuel interval and when the next one is due
- spending_alerts: latest month compared with the monthly baseline
- day_of_week_rollup, distance_histogram, seasonal_patterns,
  yearly_comparison: further grouped aggregates
- dashboard_stats: rounded totals with month-over-month change
"""

import calendar
import statistics
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from dateutil.relativedelta import relativedelta

from .fuel_entry import FuelEntry
from .severity import Confidence, Severity

DISTANCE_BUCKETS: List[Tuple[str, float, Optional[float]]] = [
    ("0-100km", 0, 100),
    ("100-200km", 100, 200),
    ("200-300km", 200, 300),
    ("300-400km", 300, 400),
    ("400-500km", 400, 500),
    ("500+ km", 500, None),
]

SECONDS_PER_DAY = 86400


# =============================================================================
# Result types
# =============================================================================


@dataclass
class MonthlyAnalytics:
    month: str  # YYYY-MM
    total_cost: float
    total_distance: float
    total_fuel: float
    avg_efficiency: float
    avg_price_per_liter: float
    cost_per_km: float
    entries: int


@dataclass
class PricePoint:
    date: datetime
    price: float
    moving_avg: float


@dataclass
class Insights:
    best_efficiency: float = 0.0
    worst_efficiency: float = 0.0
    avg_cost_per_km: float = 0.0
    projected_monthly_cost: float = 0.0
    projected_monthly_distance: float = 0.0
    efficiency_trend: float = 0.0
    cost_trend: float = 0.0
    fuel_savings_opportunity: float = 0.0


@dataclass
class RefuelPrediction:
    """Refuel interval statistics and the estimate derived from them."""

    avg_days_between_refuels: float
    days_since_last: float
    estimated_days_to_refuel: float
    avg_distance_per_day: float
    predicted_date: datetime
    confidence: Confidence
    gaps: List[float] = field(default_factory=list)


@dataclass
class SpendingAlert:
    severity: Severity
    kind: str  # "cost" or "efficiency"
    month: str
    percent: float
    message: str


@dataclass
class DayOfWeekAnalytics:
    day: str
    entries: int
    total_cost: float
    avg_cost: float
    avg_distance: float
    avg_efficiency: float


@dataclass
class DistanceBucket:
    label: str
    count: int
    avg_efficiency: float


@dataclass
class SeasonalPattern:
    """Fill-ups of one calendar month, pooled across years."""

    month_name: str
    month_number: int
    years: int
    entries: int
    total_cost: float
    total_distance: float
    avg_efficiency: float
    avg_price_per_liter: float
    avg_cost_per_fill: float


@dataclass
class YearlyComparison:
    year: int
    entries: int
    total_cost: float
    total_distance: float
    total_fuel: float
    avg_efficiency: float
    avg_price_per_liter: float
    cost_per_km: float
    cost_change: Optional[float] = None  # vs previous year, percent


@dataclass
class DashboardStats:
    total_fuel_cost: float = 0.0
    total_distance: float = 0.0
    average_efficiency: float = 0.0
    total_fuel_used: float = 0.0
    cost_per_km: float = 0.0
    entries_count: int = 0
    cost_change: Optional[float] = None
    distance_change: Optional[float] = None
    cost_per_km_change: Optional[float] = None
    efficiency_change: Optional[float] = None
    fuel_change: Optional[float] = None


@dataclass
class EfficiencyPoint:
    date: datetime
    efficiency: float
    distance: float
    fuel_used: float


@dataclass
class AnalyticsReport:
    """Everything the analytics view of one vehicle shows."""

    stats: DashboardStats
    monthly: List[MonthlyAnalytics]
    prices: List[PricePoint]
    insights: Insights
    prediction: Optional[RefuelPrediction]
    alerts: List[SpendingAlert]
    weekdays: List[DayOfWeekAnalytics]
    distances: List[DistanceBucket]
    seasonal: List[SeasonalPattern]
    yearly: List[YearlyComparison]


# =============================================================================
# Helpers
# =============================================================================


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else 0.0


def _percent_change(current: float, baseline: float) -> Optional[float]:
    if not baseline:
        return None
    return (current - baseline) / baseline * 100


def _days_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / SECONDS_PER_DAY


def _group(
    entries: Sequence[FuelEntry], key: Callable[[FuelEntry], object]
) -> Dict[object, List[FuelEntry]]:
    groups: Dict[object, List[FuelEntry]] = {}
    for entry in entries:
        groups.setdefault(key(entry), []).append(entry)
    return groups


def _totals(entries: Sequence[FuelEntry]) -> Tuple[float, float, float]:
    """(cost, distance, fuel) summed over entries."""
    cost = sum(e.amount_paid for e in entries)
    distance = sum(e.distance for e in entries)
    fuel = sum(e.fuel_used for e in entries)
    return cost, distance, fuel


def month_key(ts: datetime) -> str:
    """Calendar month key used for grouping, e.g. '2025-03'."""
    return f"{ts.year}-{ts.month:02d}"


# =============================================================================
# Rollups
# =============================================================================


def monthly_rollup(
    entries: Sequence[FuelEntry], months: int = 12
) -> List[MonthlyAnalytics]:
    """Group by calendar month, keep the most recent `months`, oldest first."""
    rollup = []
    for key, group in _group(entries, lambda e: month_key(e.created_at)).items():
        cost, distance, fuel = _totals(group)
        rollup.append(
            MonthlyAnalytics(
                month=key,
                total_cost=cost,
                total_distance=distance,
                total_fuel=fuel,
                avg_efficiency=_ratio(distance, fuel),
                avg_price_per_liter=_mean([e.price_per_liter for e in group]),
                cost_per_km=_ratio(cost, distance),
                entries=len(group),
            )
        )
    rollup.sort(key=lambda m: m.month)
    return rollup[-months:] if months else rollup


def day_of_week_rollup(entries: Sequence[FuelEntry]) -> List[DayOfWeekAnalytics]:
    """One row per weekday, Monday first, zeroed for days without fill-ups."""
    groups = _group(entries, lambda e: e.created_at.weekday())
    rows = []
    for weekday, day in enumerate(calendar.day_name):
        group = groups.get(weekday, [])
        cost, distance, fuel = _totals(group)
        rows.append(
            DayOfWeekAnalytics(
                day=day,
                entries=len(group),
                total_cost=cost,
                avg_cost=_ratio(cost, len(group)),
                avg_distance=_ratio(distance, len(group)),
                avg_efficiency=_ratio(distance, fuel),
            )
        )
    return rows


def distance_bucket_label(distance: float) -> str:
    """Histogram bucket for a trip distance; negatives fall in the first."""
    for label, low, high in DISTANCE_BUCKETS:
        if high is None or distance < high:
            return label
    return DISTANCE_BUCKETS[-1][0]


def distance_histogram(entries: Sequence[FuelEntry]) -> List[DistanceBucket]:
    """Count fill-ups per 100 km distance range; every bucket is present."""
    groups = _group(entries, lambda e: distance_bucket_label(e.distance))
    buckets = []
    for label, _low, _high in DISTANCE_BUCKETS:
        group = groups.get(label, [])
        _cost, distance, fuel = _totals(group)
        buckets.append(
            DistanceBucket(
                label=label, count=len(group), avg_efficiency=_ratio(distance, fuel)
            )
        )
    return buckets


def seasonal_patterns(entries: Sequence[FuelEntry]) -> List[SeasonalPattern]:
    """Pool fill-ups by calendar month across years, January first."""
    patterns = []
    groups = _group(entries, lambda e: e.created_at.month)
    for number in sorted(groups):
        group = groups[number]
        cost, distance, fuel = _totals(group)
        patterns.append(
            SeasonalPattern(
                month_name=calendar.month_abbr[number],
                month_number=number,
                years=len({e.created_at.year for e in group}),
                entries=len(group),
                total_cost=cost,
                total_distance=distance,
                avg_efficiency=_ratio(distance, fuel),
                avg_price_per_liter=_mean([e.price_per_liter for e in group]),
                avg_cost_per_fill=_ratio(cost, len(group)),
            )
        )
    return patterns


def yearly_comparison(entries: Sequence[FuelEntry]) -> List[YearlyComparison]:
    """Totals per calendar year, oldest first, with cost change vs prior year."""
    years = []
    groups = _group(entries, lambda e: e.created_at.year)
    previous: Optional[YearlyComparison] = None
    for year in sorted(groups):
        group = groups[year]
        cost, distance, fuel = _totals(group)
        row = YearlyComparison(
            year=year,
            entries=len(group),
            total_cost=cost,
            total_distance=distance,
            total_fuel=fuel,
            avg_efficiency=_ratio(distance, fuel),
            avg_price_per_liter=_mean([e.price_per_liter for e in group]),
            cost_per_km=_ratio(cost, distance),
            cost_change=(
                _percent_change(cost, previous.total_cost) if previous else None
            ),
        )
        years.append(row)
        previous = row
    return years


# =============================================================================
# Price, trends and insights
# =============================================================================


def price_moving_average(
    entries: Sequence[FuelEntry], window: int = 5, keep: int = 30
) -> List[PricePoint]:
    """
    Fuel price with a trailing moving average, oldest first.

    The window is taken over the input order (most recent first), so each
    point averages its own price with up to `window - 1` entries before it
    in the list. The result is reversed into chronological order and the
    last `keep` points are returned.
    """
    points = []
    for index, entry in enumerate(entries):
        start = max(0, index - window + 1)
        prices = [e.price_per_liter for e in entries[start:index + 1]]
        points.append(
            PricePoint(
                date=entry.created_at,
                price=entry.price_per_liter,
                moving_avg=_mean(prices),
            )
        )
    points.reverse()
    return points[-keep:] if keep else points


def trend_percent(recent: Sequence[float], older: Sequence[float]) -> float:
    """Percent change of the recent mean over the older mean (0 without older)."""
    if not recent:
        return 0.0
    recent_avg = _mean(recent)
    older_avg = _mean(older) if older else recent_avg
    if older_avg <= 0:
        return 0.0
    return (recent_avg - older_avg) / older_avg * 100


def compute_insights(
    entries: Sequence[FuelEntry], now: Optional[datetime] = None, group_size: int = 10
) -> Insights:
    """
    Headline numbers for the analytics view.

    Trends compare the latest `group_size` entries with the `group_size`
    before them. The projection sums the last 30 days. The savings
    opportunity is how far the average efficiency sits below the best one.
    """
    if not entries:
        return Insights()
    now = now or datetime.now()

    efficiencies = [e.efficiency for e in entries if e.efficiency > 0]
    best = max(efficiencies) if efficiencies else 0.0
    worst = min(efficiencies) if efficiencies else 0.0

    recent = entries[:group_size]
    older = entries[group_size:group_size * 2]

    cutoff = now - timedelta(days=30)
    last_30_days = [e for e in entries if e.created_at > cutoff]

    current_avg = _mean([e.efficiency for e in entries])

    return Insights(
        best_efficiency=best,
        worst_efficiency=worst,
        avg_cost_per_km=_mean([e.amount_paid / (e.distance or 1) for e in entries]),
        projected_monthly_cost=sum(e.amount_paid for e in last_30_days),
        projected_monthly_distance=sum(e.distance for e in last_30_days),
        efficiency_trend=trend_percent(
            [e.efficiency for e in recent], [e.efficiency for e in older]
        ),
        cost_trend=trend_percent(
            [e.amount_paid for e in recent], [e.amount_paid for e in older]
        ),
        fuel_savings_opportunity=(best - current_avg) / best * 100 if best > 0 else 0.0,
    )


# =============================================================================
# Refuel prediction
# =============================================================================


def refuel_confidence(gaps: Sequence[float]) -> Confidence:
    """
    Classify interval regularity by coefficient of variation.

    - HIGH: cv < 0.3 with at least 5 gaps
    - MEDIUM: cv < 0.5 with at least 3 gaps
    - LOW: anything else
    """
    avg = _mean(gaps)
    if avg <= 0:
        return Confidence.LOW
    cv = statistics.pstdev(gaps) / avg
    if cv < 0.3 and len(gaps) >= 5:
        return Confidence.HIGH
    if cv < 0.5 and len(gaps) >= 3:
        return Confidence.MEDIUM
    return Confidence.LOW


def predict_refuel(
    entries: Sequence[FuelEntry], now: Optional[datetime] = None
) -> Optional[RefuelPrediction]:
    """Estimate the next refuel from past intervals. None below 3 entries."""
    if len(entries) < 3:
        return None
    now = now or datetime.now()

    ordered = sorted(entries, key=lambda e: e.created_at)
    gaps = [
        _days_between(a.created_at, b.created_at)
        for a, b in zip(ordered, ordered[1:])
    ]
    avg_gap = _mean(gaps)
    since_last = _days_between(ordered[-1].created_at, now)
    span = _days_between(ordered[0].created_at, ordered[-1].created_at)

    return RefuelPrediction(
        avg_days_between_refuels=avg_gap,
        days_since_last=since_last,
        estimated_days_to_refuel=max(0.0, avg_gap - since_last),
        avg_distance_per_day=_ratio(sum(e.distance for e in ordered), span),
        predicted_date=ordered[-1].created_at + timedelta(days=avg_gap),
        confidence=refuel_confidence(gaps),
        gaps=gaps,
    )


# =============================================================================
# Spending alerts
# =============================================================================


def spending_alerts(monthly: Sequence[MonthlyAnalytics]) -> List[SpendingAlert]:
    """
    Compare the latest month with the monthly baseline.

    The cost baseline is the mean over all months in the rollup, the latest
    included. Cost more than 50% over it is DANGER, more than 20% over is
    WARNING, under 70% of it is INFO. Efficiency under 90% of the mean
    efficiency of the earlier months is WARNING. Needs at least two months.
    """
    if len(monthly) < 2:
        return []
    latest = monthly[-1]
    alerts = []

    avg_cost = _mean([m.total_cost for m in monthly])
    if avg_cost > 0:
        ratio = latest.total_cost / avg_cost
        percent = (ratio - 1) * 100
        if ratio > 1.5:
            alerts.append(
                SpendingAlert(
                    Severity.DANGER,
                    "cost",
                    latest.month,
                    percent,
                    f"Spending in {latest.month} is {percent:.0f}% above your monthly average",
                )
            )
        elif ratio > 1.2:
            alerts.append(
                SpendingAlert(
                    Severity.WARNING,
                    "cost",
                    latest.month,
                    percent,
                    f"Spending in {latest.month} is {percent:.0f}% above your monthly average",
                )
            )
        elif ratio < 0.7:
            alerts.append(
                SpendingAlert(
                    Severity.INFO,
                    "cost",
                    latest.month,
                    percent,
                    f"Spending in {latest.month} is {abs(percent):.0f}% below average",
                )
            )

    avg_efficiency = _mean([m.avg_efficiency for m in monthly[:-1]])
    if avg_efficiency > 0 and latest.avg_efficiency < avg_efficiency * 0.9:
        percent = (latest.avg_efficiency / avg_efficiency - 1) * 100
        alerts.append(
            SpendingAlert(
                Severity.WARNING,
                "efficiency",
                latest.month,
                percent,
                f"Efficiency in {latest.month} dropped {abs(percent):.0f}% below average",
            )
        )
    return alerts


# =============================================================================
# Dashboard
# =============================================================================


def _round2(value: float) -> float:
    return round(value * 100) / 100


def dashboard_stats(
    entries: Sequence[FuelEntry], now: Optional[datetime] = None
) -> DashboardStats:
    """Rounded totals plus this month's change against last month."""
    if not entries:
        return DashboardStats()
    now = now or datetime.now()

    cost, distance, fuel = _totals(entries)
    stats = DashboardStats(
        total_fuel_cost=_round2(cost),
        total_distance=_round2(distance),
        average_efficiency=_round2(_ratio(distance, fuel)),
        total_fuel_used=_round2(fuel),
        cost_per_km=_round2(_ratio(cost, distance)),
        entries_count=len(entries),
    )

    this_key = month_key(now)
    last_key = month_key(now - relativedelta(months=1))
    this_month = [e for e in entries if month_key(e.created_at) == this_key]
    last_month = [e for e in entries if month_key(e.created_at) == last_key]
    if this_month and last_month:
        cur_cost, cur_dist, cur_fuel = _totals(this_month)
        prev_cost, prev_dist, prev_fuel = _totals(last_month)
        stats.cost_change = _percent_change(cur_cost, prev_cost)
        stats.distance_change = _percent_change(cur_dist, prev_dist)
        stats.fuel_change = _percent_change(cur_fuel, prev_fuel)
        stats.cost_per_km_change = _percent_change(
            _ratio(cur_cost, cur_dist), _ratio(prev_cost, prev_dist)
        )
        stats.efficiency_change = _percent_change(
            _ratio(cur_dist, cur_fuel), _ratio(prev_dist, prev_fuel)
        )
    return stats


def efficiency_series(entries: Sequence[FuelEntry]) -> List[EfficiencyPoint]:
    """Per-entry efficiency in chronological order for charting."""
    return [
        EfficiencyPoint(
            date=e.created_at,
            efficiency=_round2(e.efficiency),
            distance=e.distance,
            fuel_used=e.fuel_used,
        )
        for e in sorted(entries, key=lambda e: e.created_at)
    ]


def build_report(
    entries: Sequence[FuelEntry], now: Optional[datetime] = None
) -> AnalyticsReport:
    """Run every aggregation over one vehicle's entries."""
    now = now or datetime.now()
    monthly = monthly_rollup(entries)
    return AnalyticsReport(
        stats=dashboard_stats(entries, now),
        monthly=monthly,
        prices=price_moving_average(entries),
        insights=compute_insights(entries, now),
        prediction=predict_refuel(entries, now),
        alerts=spending_alerts(monthly),
        weekdays=day_of_week_rollup(entries),
        distances=distance_histogram(entries),
        seasonal=seasonal_patterns(entries),
        yearly=yearly_comparison(entries),
    )
