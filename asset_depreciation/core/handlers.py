"""
Request handlers for depreciation schedules.

Parses a submitted asset document, runs the schedule generator and
persists the result. Errors are mapped to status codes here; nothing
below this layer logs and swallows.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from asset_depreciation.exceptions import PersistenceError, ValidationError
from asset_depreciation.storage.repository import DepreciationRepository

from .schedule import AssetInput, SchedulePolicy, generate_schedule

logger = logging.getLogger(__name__)

STATUS_OK = 200
STATUS_CREATED = 201
STATUS_BAD_REQUEST = 400
STATUS_INTERNAL_ERROR = 500


@dataclass(frozen=True)
class HandlerResponse:
    """Status code and JSON-ready body returned to the caller."""
    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)


def _parse_number(payload: Dict[str, Any], key: str) -> float:
    value = payload.get(key)
    if value is None:
        raise ValidationError(f"{key} is required")
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            raise ValidationError(f"{key} must be a number")
    if not isinstance(value, (int, float)):
        raise ValidationError(f"{key} must be a number")
    try:
        value = float(value)
    except OverflowError:
        raise ValidationError(f"{key} is too large")
    if not math.isfinite(value):
        raise ValidationError(f"{key} must be a finite number")
    return value


def _parse_month(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError("month must be an integer")
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            raise ValidationError("month must be an integer")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError("month must be an integer")
        value = int(value)
    if not isinstance(value, int):
        raise ValidationError("month must be an integer")
    return value


def parse_mfd(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 manufacturing date into a naive UTC datetime.

    Args:
        value: ISO date/datetime string, datetime, or None

    Returns:
        Parsed datetime, or None when absent

    Raises:
        ValidationError: If the value is not a valid ISO-8601 date
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(f"mfd must be an ISO-8601 date, got {value!r}")
    else:
        raise ValidationError("mfd must be an ISO-8601 date string")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_asset_input(payload: Dict[str, Any]) -> AssetInput:
    """Validate a submitted asset document.

    Accepts the camelCase body shape: assetId, companyId, financialYear,
    initialCost, depreciationPercentage, month, mfd.

    Args:
        payload: Decoded JSON body

    Returns:
        AssetInput ready for the generator

    Raises:
        ValidationError: If the document is malformed
    """
    if not isinstance(payload, dict):
        raise ValidationError("request body must be a JSON object")

    return AssetInput(
        asset_id=str(payload.get("assetId") or ""),
        company_id=str(payload.get("companyId") or ""),
        financial_year=str(payload.get("financialYear") or ""),
        initial_cost=_parse_number(payload, "initialCost"),
        depreciation_percentage=_parse_number(payload, "depreciationPercentage"),
        month=_parse_month(payload.get("month")),
        mfd=parse_mfd(payload.get("mfd")),
    )


def submit_asset(
    payload: Dict[str, Any],
    repository: DepreciationRepository,
    now: Optional[datetime] = None,
    policy: Optional[SchedulePolicy] = None
) -> HandlerResponse:
    """Generate and persist a schedule for a submitted asset."""
    try:
        asset = parse_asset_input(payload)
        records = generate_schedule(asset, now=now, policy=policy)
        repository.insert_many(records)
    except ValidationError as e:
        logger.warning("Rejected asset submission: %s", e.message)
        return HandlerResponse(STATUS_BAD_REQUEST, {"error": e.message})
    except PersistenceError as e:
        logger.error("Error saving asset: %s", e.message)
        return HandlerResponse(STATUS_INTERNAL_ERROR, {"error": e.message})

    logger.info("Saved %d depreciation records for asset %s", len(records), asset.asset_id)
    return HandlerResponse(
        STATUS_CREATED,
        {"message": "Asset saved successfully", "records": len(records)}
    )


def list_assets(repository: DepreciationRepository) -> HandlerResponse:
    """Return every stored record as a document."""
    try:
        records = repository.find_all()
    except PersistenceError as e:
        logger.error("Error fetching assets: %s", e.message)
        return HandlerResponse(STATUS_INTERNAL_ERROR, {"error": "Internal server error"})
    return HandlerResponse(STATUS_OK, {"assets": [r.to_document() for r in records]})


def delete_assets(repository: DepreciationRepository) -> HandlerResponse:
    """Delete every stored record."""
    try:
        deleted = repository.delete_all()
    except PersistenceError as e:
        logger.error("Error deleting assets: %s", e.message)
        return HandlerResponse(STATUS_INTERNAL_ERROR, {"error": "Internal server error"})
    logger.info("Deleted %d depreciation records", deleted)
    return HandlerResponse(
        STATUS_OK,
        {"message": "All assets deleted successfully", "deleted": deleted}
    )
