"""
Statistics & Ranking Engine

Aggregates each driver's violation/total counts into a one-decimal
violation rate and ranks the whole batch once, so that any single driver's
report states its position relative to the batch it was computed with.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional
import logging
import math

import pandas as pd

from drivereport.core.models import DriverRank, DriverRecord

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def violation_rate(violations: float, total: float) -> float:
    """
    One-decimal violation percentage used for ranking.

    rate = round(violations / total * 1000) / 10, and 0 when total is 0.
    """
    if not total or total <= 0:
        return 0.0
    return _round_half_up(violations / total * 1000) / 10


def percent_rate(violations: float, total: float) -> int:
    """Whole-number violation percentage used for rows and highlight text."""
    if not total or total <= 0:
        return 0
    return _round_half_up(violations / total * 100)


@dataclass(frozen=True)
class DriverStanding:
    """Aggregated counts, rate and batch rank of one driver."""
    driver_id: Any
    violations: int
    total: int
    rate: float
    rank: int


@dataclass
class BatchRanking:
    """
    Ranking computed over one batch of drivers.

    Standings are kept in batch order, so drivers sharing an id (or having
    none) each keep their own rate and rank when looked up by position.

    Attributes:
        standings: One DriverStanding per driver, in input order
        total: Number of drivers in the batch
    """
    standings: List[DriverStanding] = field(default_factory=list)
    total: int = 0

    def at(self, position: int) -> Optional[DriverStanding]:
        if 0 <= position < len(self.standings):
            return self.standings[position]
        return None

    def rank_at(self, position: int) -> DriverRank:
        standing = self.at(position)
        return DriverRank(position=standing.rank if standing else self.total, total=self.total)

    def rate_at(self, position: int) -> float:
        standing = self.at(position)
        return standing.rate if standing else 0.0

    def get(self, driver_id: Any) -> Optional[DriverStanding]:
        """First standing with this driver id."""
        for standing in self.standings:
            if standing.driver_id == driver_id:
                return standing
        return None

    def rank_for(self, driver_id: Any) -> DriverRank:
        standing = self.get(driver_id)
        return DriverRank(position=standing.rank if standing else self.total, total=self.total)

    def rate_for(self, driver_id: Any) -> float:
        standing = self.get(driver_id)
        return standing.rate if standing else 0.0


def build_stats_frame(drivers: Iterable[DriverRecord]) -> pd.DataFrame:
    """
    One row per driver with summed violations/total and the violation rate.

    Columns: driver_id, violations, total, rate (index = batch position)
    """
    rows = []
    for driver in drivers:
        violations = sum(int(e.violations or 0) for e in driver.events)
        total = sum(int(e.total or 0) for e in driver.events)
        rows.append({
            "driver_id": driver.driver_id,
            "violations": violations,
            "total": total,
            "rate": violation_rate(violations, total),
        })
    df = pd.DataFrame(rows, columns=["driver_id", "violations", "total", "rate"])
    # Keep ids as given; mixed int/None would otherwise become float/NaN
    df["driver_id"] = pd.Series([r["driver_id"] for r in rows], index=df.index, dtype=object)
    return df


def compute_batch_ranking(drivers: Iterable[DriverRecord]) -> BatchRanking:
    """
    Rank every driver in the batch by violation rate, lowest first.

    Ties share a rank; the next distinct rate gets its 1-based position in
    the sorted order (1, 1, 3, ...).

    Args:
        drivers: Normalized driver records of one report run

    Returns:
        BatchRanking in batch order, with total = batch size
    """
    df = build_stats_frame(drivers)
    if df.empty:
        return BatchRanking(standings=[], total=0)

    df["rank"] = df["rate"].rank(method="min", ascending=True).astype(int)

    duplicated = df["driver_id"].duplicated(keep=False)
    if duplicated.any():
        dupes = df.loc[duplicated, "driver_id"].unique().tolist()
        logger.warning(f"Duplicate or missing driver ids in batch: {dupes}")

    standings = [
        DriverStanding(
            driver_id=driver_id,
            violations=int(violations),
            total=int(total),
            rate=float(rate),
            rank=int(rank),
        )
        for driver_id, violations, total, rate, rank in zip(
            df["driver_id"].tolist(),
            df["violations"].tolist(),
            df["total"].tolist(),
            df["rate"].tolist(),
            df["rank"].tolist(),
        )
    ]
    logger.info(f"Ranked {len(df)} drivers (rates {df['rate'].min()}..{df['rate'].max()})")
    return BatchRanking(standings=standings, total=len(df))
