"""
API Routes for Driver Reports

Thin HTTP glue around the report engine: build reports from a posted
batch, or store a batch under a token and read reports back per driver.
"""

from fastapi import APIRouter, Depends, HTTPException
from typing import Any, Dict, List, Optional
import logging

from drivereport.api.models import DatasetResponse, ReportRequest, ReportResponse
from drivereport.common.config import load_config_document
from drivereport.core.reports import find_report, generate_reports
from drivereport.storage.dataset_store import DatasetStore, InMemoryDatasetStore, StoredDataset
from drivereport.utils.constants import DEFAULT_DATASET_TTL_SECONDS
from drivereport.utils.env import env_int
from drivereport.utils.error_handling import ConfigurationError, ReportBuildError, ValidationError

# Configure logging
logger = logging.getLogger(__name__)

# Create router
router = APIRouter()

_dataset_store: Optional[DatasetStore] = None


def get_dataset_store() -> DatasetStore:
    """Process-wide dataset store (TTL from DATASET_TTL_SECONDS)."""
    global _dataset_store
    if _dataset_store is None:
        _dataset_store = InMemoryDatasetStore(
            ttl_seconds=env_int("DATASET_TTL_SECONDS", DEFAULT_DATASET_TTL_SECONDS)
        )
    return _dataset_store


def _resolve_config(config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    return config if config is not None else load_config_document()


def _run_reports(drivers: List[Dict[str, Any]], config: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Generate reports, mapping engine errors to HTTP errors."""
    try:
        return generate_reports(drivers, _resolve_config(config))
    except ConfigurationError as e:
        logger.error(f"Report configuration error: {e}")
        raise HTTPException(status_code=500, detail=f"Report configuration error: {e}")
    except (ValidationError, ReportBuildError) as e:
        logger.warning(f"Report generation rejected: {e}")
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/api/reports", response_model=ReportResponse)
def create_reports(request: ReportRequest):
    """
    Build reports for a posted batch of drivers.

    Returns:
        JSON with one report per driver, in input order
    """
    reports = _run_reports(request.drivers, request.config)
    logger.info(f"Generated {len(reports)} reports")
    return {"reports": reports}


@router.post("/api/datasets", response_model=DatasetResponse)
def create_dataset(request: ReportRequest, store: DatasetStore = Depends(get_dataset_store)):
    """Store a batch and return the token used to read its reports."""
    token = store.new_token()
    store.set(token, StoredDataset(drivers=request.drivers, config=request.config))
    driver_ids = [d.get("driverId", d.get("driver_id")) for d in request.drivers]
    logger.info(f"Stored dataset {token} with {len(driver_ids)} drivers")
    ttl = getattr(store, "ttl_seconds", DEFAULT_DATASET_TTL_SECONDS)
    return {"token": token, "expiresIn": ttl, "drivers": driver_ids}


def _get_dataset(store: DatasetStore, token: str) -> StoredDataset:
    dataset = store.get(token)
    if dataset is None:
        raise HTTPException(status_code=404, detail=f"Dataset {token} not found or expired")
    return dataset


@router.get("/api/datasets/{token}/reports", response_model=ReportResponse)
def get_dataset_reports(token: str, store: DatasetStore = Depends(get_dataset_store)):
    """Reports for every driver in a stored batch."""
    dataset = _get_dataset(store, token)
    return {"reports": _run_reports(dataset.drivers, dataset.config)}


@router.get("/api/datasets/{token}/reports/{driver_id}")
def get_driver_report(token: str, driver_id: str, store: DatasetStore = Depends(get_dataset_store)):
    """
    One driver's report from a stored batch.

    The rank is still computed against the whole stored batch.
    """
    dataset = _get_dataset(store, token)
    report = find_report(_run_reports(dataset.drivers, dataset.config), driver_id)
    if report is None:
        raise HTTPException(status_code=404, detail=f"Driver {driver_id} not found in dataset {token}")
    return report


@router.delete("/api/datasets/{token}")
def delete_dataset(token: str, store: DatasetStore = Depends(get_dataset_store)):
    """Expire a dataset token now."""
    if not store.expire(token):
        raise HTTPException(status_code=404, detail=f"Dataset {token} not found or expired")
    return {"token": token, "expired": True}
