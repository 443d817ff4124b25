"""
Trending score math.

Every function here is pure: the caller captures `now` once per request and
passes it in, so a whole batch is scored against the same instant.
"""
import math
from datetime import datetime
from typing import List, Sequence

from repo_nexus.domain.models import RepositoryMetric

SECONDS_PER_DAY = 60 * 60 * 24

# z-score tier boundaries (exclusive lower bounds)
HIGHLY_TRENDING_Z = 1.5
MODERATELY_TRENDING_Z = 0.5
PENALTY_FLOOR = 0.1


def days_between(earlier: datetime, now: datetime) -> float:
    return (now - earlier).total_seconds() / SECONDS_PER_DAY


def age_in_days(metric: RepositoryMetric, now: datetime) -> float:
    """Repository age, never below one day."""
    return max(days_between(metric.created_at, now), 1.0)


def star_velocity(metric: RepositoryMetric, now: datetime) -> float:
    """Stars per day since creation."""
    return metric.stargazers_count / age_in_days(metric, now)


def recency_boost(metric: RepositoryMetric, now: datetime) -> float:
    days_since_update = days_between(metric.updated_at, now)
    days_since_push = days_between(metric.pushed_at, now)
    # Pushes decay over 3 days, metadata updates over 7.
    return max(
        1 / (1 + days_since_update / 7),
        1 / (1 + days_since_push / 3),
    )


def engagement_ratio(metric: RepositoryMetric) -> float:
    if metric.stargazers_count <= 0:
        return 0.0
    return (metric.forks_count + metric.watchers_count) / metric.stargazers_count


def velocity_weight(age_days: float) -> float:
    if age_days < 30:
        return 2.0
    if age_days < 90:
        return 1.5
    return 1.0


def raw_trending_score(metric: RepositoryMetric, now: datetime) -> float:
    """Per-item score; independent of the rest of the batch."""
    age_days = age_in_days(metric, now)
    return (
        star_velocity(metric, now)
        * velocity_weight(age_days)
        * recency_boost(metric, now)
        * (1 + engagement_ratio(metric) * 0.3)
    )


def z_scores(values: Sequence[float]) -> List[float]:
    """
    Population z-scores (variance divided by N).

    Batches smaller than two, or with zero spread, get 0 for every item.
    """
    if len(values) < 2:
        return [0.0 for _ in values]

    mean = sum(values) / len(values)
    variance = sum((value - mean) ** 2 for value in values) / len(values)
    std_dev = math.sqrt(variance)

    if std_dev == 0:
        return [0.0 for _ in values]

    return [(value - mean) / std_dev for value in values]


def final_trending_score(raw_score: float, z_score: float) -> float:
    """
    Tiered re-weighting of a raw score by its z-score.

    Above the mean the boost grows with the tier; at or below the mean the
    score is penalised but never drops under PENALTY_FLOOR of the raw score.
    """
    if z_score > HIGHLY_TRENDING_Z:
        return raw_score * (1 + z_score * 1.0)
    if z_score > MODERATELY_TRENDING_Z:
        return raw_score * (1 + z_score * 0.7)
    if z_score > 0:
        return raw_score * (1 + z_score * 0.3)
    return raw_score * max(PENALTY_FLOOR, 1 + z_score * 0.5)
