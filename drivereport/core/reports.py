"""
Driver Report Generation

Main entry point of the report engine: ranks the whole batch once, then
builds one report object per driver (optionally in parallel), in input
order.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Optional, Union
import logging

from drivereport.common.config import parse_report_config
from drivereport.core.assembler import assemble_details, build_summary_sections
from drivereport.core.geo import collect_map_points
from drivereport.core.highlights import build_overview_highlights, overview_references
from drivereport.core.ingest import normalize_driver
from drivereport.core.models import DriverRecord, ReportConfig, ReportObject
from drivereport.core.ranking import BatchRanking, compute_batch_ranking
from drivereport.core.tone import collect_tone_overrides
from drivereport.utils.constants import TONE_MODE_OVERRIDE
from drivereport.utils.error_handling import ReportBuildError

logger = logging.getLogger(__name__)


def build_report(
    driver: DriverRecord,
    config: ReportConfig,
    ranking: BatchRanking,
    position: Optional[int] = None,
) -> ReportObject:
    """
    Build one driver's report.

    Args:
        driver: Normalized driver record
        config: Parsed configuration
        ranking: Batch-wide ranking computed over every driver of the run
        position: Index of the driver in the ranked batch; when omitted the
            standing is looked up by driver id

    Returns:
        ReportObject ready for `to_dict()`
    """
    highlights = build_overview_highlights(driver, config)

    overrides = None
    if config.tone_mode == TONE_MODE_OVERRIDE:
        overrides = collect_tone_overrides(overview_references(driver, config))

    if position is not None:
        rate, rank = ranking.rate_at(position), ranking.rank_at(position)
    else:
        rate, rank = ranking.rate_for(driver.driver_id), ranking.rank_for(driver.driver_id)

    report = ReportObject(
        driver_id=driver.driver_id,
        driver_name=driver.driver_name,
        office_name=driver.office_name,
        company_name=driver.company_name,
        page_title=config.page_title,
        period=driver.period,
        avg_violation_rate_pct=rate,
        rank=rank,
        highlights_gaiyou=highlights,
        sections=build_summary_sections(driver, config, overrides),
        map_points=collect_map_points(
            (scene.map_view_url, scene.street_view_url)
            for event in driver.events
            for scene in event.scenes
        ),
    )

    assemble_details(report, driver, config)
    return report


def _build_or_raise(
    driver: DriverRecord, config: ReportConfig, ranking: BatchRanking, position: int,
) -> Dict[str, Any]:
    try:
        return build_report(driver, config, ranking, position).to_dict()
    except Exception as e:
        logger.error(f"Report build failed for driver={driver.driver_id}: {type(e).__name__}: {e}")
        raise ReportBuildError(driver.driver_id, f"{type(e).__name__}: {e}") from e


def generate_reports(
    drivers: Iterable[Union[DriverRecord, Dict[str, Any]]],
    config: Union[ReportConfig, Dict[str, Any], None],
    max_workers: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """
    Generate report dicts for a batch of drivers.

    Args:
        drivers: Driver records (raw mappings in either naming convention, or
            already-normalized DriverRecords)
        config: Configuration document (raw mapping or ReportConfig)
        max_workers: Build reports on a thread pool when > 1

    Returns:
        One report dict per driver, in input order

    Raises:
        ConfigurationError: If the configuration document is missing
        ValidationError: If a driver record cannot be normalized
        ReportBuildError: If a driver's report cannot be built
    """
    report_config = parse_report_config(config)
    records = [normalize_driver(d) for d in drivers]

    # Ranks depend on the complete batch; compute before any per-driver work
    ranking = compute_batch_ranking(records)
    logger.info(f"Generating {len(records)} reports (batch total={ranking.total})")

    if max_workers and max_workers > 1 and len(records) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            return list(pool.map(
                lambda item: _build_or_raise(item[1], report_config, ranking, item[0]),
                enumerate(records),
            ))

    return [_build_or_raise(d, report_config, ranking, i) for i, d in enumerate(records)]


def find_report(reports: List[Dict[str, Any]], driver_id: Any) -> Optional[Dict[str, Any]]:
    """Pick one driver's report out of a generated batch (ids compared as strings)."""
    for report in reports:
        if str(report.get("driverId")) == str(driver_id):
            return report
    return None
