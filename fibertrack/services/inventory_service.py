"""
Inventory business logic: locations and assets.

Locations are service addresses with a fiber feasibility status and an
optional wave assignment. Assets are copper / fiber / ONT plant items at
a location. Both collections use weak string references (wave_id,
location_id); nothing here enforces that the target exists.

All functions return serialized dicts. db.session.commit() is called only
in this file (service layer ownership) through ``commit_or_raise``.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError

from fibertrack.core.exceptions import BackendUnavailableError, ValidationError
from fibertrack.domain.records import (
    ASSET_STATUSES,
    ASSET_TYPES,
    FIBER_STATUSES,
    FILTER_ALL,
    REGIONS,
)
from fibertrack.models import db
from fibertrack.models.inventory import Asset, Location
from fibertrack.utils.helpers import commit_or_raise, get_or_raise, parse_date

logger = logging.getLogger(__name__)


# ── Validation ───────────────────────────────────────────────────────────────


def _require_choice(errors, data, key, allowed, required=True):
    value = data.get(key)
    if value in (None, ""):
        if required:
            errors[key] = "required"
        return
    if value not in allowed:
        errors[key] = f"Must be one of: {', '.join(allowed)}"


def _coordinates(data: dict, errors: dict) -> tuple[float, float] | None:
    coords = data.get("coordinates")
    if coords is None and ("lat" in data or "lng" in data):
        coords = {"lat": data.get("lat"), "lng": data.get("lng")}
    if coords is None:
        return None
    try:
        return float(coords.get("lat", 0.0)), float(coords.get("lng", 0.0))
    except (AttributeError, TypeError, ValueError):
        errors["coordinates"] = "lat and lng must be numbers"
        return None


def validate_location(data: dict, partial: bool = False) -> dict:
    """Return field errors for a location payload (empty when valid)."""
    errors = {}
    if not partial or "address" in data:
        if not str(data.get("address") or "").strip():
            errors["address"] = "required"
    if not partial or "region" in data:
        _require_choice(errors, data, "region", REGIONS)
    if "fiber_status" in data:
        _require_choice(errors, data, "fiber_status", FIBER_STATUSES)
    return errors


def validate_asset(data: dict, partial: bool = False) -> dict:
    errors = {}
    if not partial or "type" in data:
        _require_choice(errors, data, "type", ASSET_TYPES)
    if "status" in data:
        _require_choice(errors, data, "status", ASSET_STATUSES)
    raw_date = data.get("installation_date")
    if raw_date and parse_date(raw_date) is None:
        errors["installation_date"] = "Use YYYY-MM-DD format"
    return errors


# ═════════════════════════════════════════════════════════════════════════════
# Locations
# ═════════════════════════════════════════════════════════════════════════════


def list_locations(region=None, wave_id=None, fiber_status=None) -> list[dict]:
    """Locations ordered by address, optionally filtered."""
    q = Location.query
    if region and region != FILTER_ALL:
        q = q.filter_by(region=region)
    if wave_id and wave_id != FILTER_ALL:
        q = q.filter_by(wave_id=wave_id)
    if fiber_status and fiber_status != FILTER_ALL:
        q = q.filter_by(fiber_status=fiber_status)
    try:
        return [loc.to_dict() for loc in q.order_by(Location.address).all()]
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise BackendUnavailableError("fetch locations", exc.__class__.__name__) from exc


def get_location(location_id: str) -> dict:
    return get_or_raise(Location, location_id).to_dict()


def create_location(data: dict) -> dict:
    """Create a location.

    Raises:
        ValidationError: missing address, unknown region or fiber status.
    """
    errors = validate_location(data)
    coords = _coordinates(data, errors)
    if errors:
        raise ValidationError("Invalid location", details=errors)

    lat, lng = coords or (0.0, 0.0)
    location = Location(
        address=str(data["address"]).strip(),
        region=data["region"],
        lat=lat,
        lng=lng,
        wave_id=data.get("wave_id") or None,
        fiber_status=data.get("fiber_status") or "Pending Feasibility",
    )
    db.session.add(location)
    commit_or_raise("create location", "Location")
    logger.info("Location created id=%s region=%s", location.id, location.region)
    return location.to_dict()


def update_location(location_id: str, data: dict) -> dict:
    location = get_or_raise(Location, location_id)
    errors = validate_location(data, partial=True)
    coords = _coordinates(data, errors)
    if errors:
        raise ValidationError("Invalid location", details=errors)

    if "address" in data:
        location.address = str(data["address"]).strip()
    for field in ("region", "fiber_status"):
        if field in data:
            setattr(location, field, data[field])
    if "wave_id" in data:
        location.wave_id = data["wave_id"] or None
    if coords:
        location.lat, location.lng = coords
    commit_or_raise("update location", "Location")
    return location.to_dict()


def update_fiber_status(location_id: str, fiber_status: str) -> dict:
    """Record the outcome of a fiber feasibility check for one location."""
    if fiber_status not in FIBER_STATUSES:
        raise ValidationError(
            "Invalid fiber status",
            details={"fiber_status": f"Must be one of: {', '.join(FIBER_STATUSES)}"},
        )
    location = get_or_raise(Location, location_id)
    location.fiber_status = fiber_status
    commit_or_raise("update fiber status", "Location")
    logger.info("Location %s fiber_status=%s", location_id, fiber_status)
    return location.to_dict()


def delete_location(location_id: str) -> None:
    location = get_or_raise(Location, location_id)
    db.session.delete(location)
    commit_or_raise("delete location", "Location")


def fiber_feasibility_summary(region=None) -> dict:
    """Location counts per fiber status plus the total."""
    locations = list_locations(region=region)
    counts = {status: 0 for status in FIBER_STATUSES}
    for loc in locations:
        counts[loc["fiber_status"]] = counts.get(loc["fiber_status"], 0) + 1
    return {"region": region or FILTER_ALL, "total": len(locations), "by_status": counts}


# ═════════════════════════════════════════════════════════════════════════════
# Assets
# ═════════════════════════════════════════════════════════════════════════════


def list_assets(location_id=None, status=None, asset_type=None, region=None) -> list[dict]:
    """Assets, newest first. ``region`` resolves through the asset's location."""
    q = Asset.query
    if location_id:
        q = q.filter_by(location_id=location_id)
    if status and status != FILTER_ALL:
        q = q.filter_by(status=status)
    if asset_type and asset_type != FILTER_ALL:
        q = q.filter_by(type=asset_type)
    if region and region != FILTER_ALL:
        q = q.join(Location, Location.id == Asset.location_id).filter(Location.region == region)
    try:
        return [a.to_dict() for a in q.order_by(Asset.created_at.desc()).all()]
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise BackendUnavailableError("fetch assets", exc.__class__.__name__) from exc


def get_asset(asset_id: str) -> dict:
    return get_or_raise(Asset, asset_id).to_dict()


def create_asset(data: dict) -> dict:
    errors = validate_asset(data)
    if errors:
        raise ValidationError("Invalid asset", details=errors)

    asset = Asset(
        type=data["type"],
        location_id=data.get("location_id") or None,
        status=data.get("status") or "active",
        installation_date=parse_date(data.get("installation_date")),
        technician_id=data.get("technician_id") or None,
    )
    db.session.add(asset)
    commit_or_raise("create asset", "Asset")
    logger.info("Asset created id=%s type=%s", asset.id, asset.type)
    return asset.to_dict()


def update_asset(asset_id: str, data: dict) -> dict:
    asset = get_or_raise(Asset, asset_id)
    errors = validate_asset(data, partial=True)
    if errors:
        raise ValidationError("Invalid asset", details=errors)

    for field in ("type", "status"):
        if field in data:
            setattr(asset, field, data[field])
    for field in ("location_id", "technician_id"):
        if field in data:
            setattr(asset, field, data[field] or None)
    if "installation_date" in data:
        asset.installation_date = parse_date(data["installation_date"])
    commit_or_raise("update asset", "Asset")
    return asset.to_dict()


def delete_asset(asset_id: str) -> None:
    asset = get_or_raise(Asset, asset_id)
    db.session.delete(asset)
    commit_or_raise("delete asset", "Asset")
