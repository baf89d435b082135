"""
FiberTrack — Copper-to-Fiber Migration Operations
Inventory domain models.

Models:
    - Location:  physical service address, optionally scheduled into a wave
    - Asset:     copper / fiber / ONT plant item installed at a location

Architecture:
    Wave ··weak··▶ Location ◀··weak·· Asset
    (wave_id / location_id are plain indexed strings, not FKs; a missing
    target resolves to "N/A" in reports instead of failing)

Lifecycle states:
    Location.fiber_status:  Pending Feasibility → Fiber Ready | Copper Only
    Asset.status:           active → pending → completed | failed
"""

from fibertrack.domain.records import (
    ASSET_STATUSES,
    ASSET_TYPES,
    FIBER_STATUSES,
    REGIONS,
    load_asset,
    load_location,
)
from fibertrack.models import _utcnow, _uuid, db, in_clause, iso


# ═════════════════════════════════════════════════════════════════════════════
# 1. Location
# ═════════════════════════════════════════════════════════════════════════════


class Location(db.Model):
    """Service address taking part in the migration program."""

    __tablename__ = "locations"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    address = db.Column(db.String(300), nullable=False)
    region = db.Column(
        db.String(30), nullable=False, index=True,
        comment="Vancouver Island | Lower Mainland | Interior | North",
    )
    lat = db.Column(db.Float, nullable=False, default=0.0)
    lng = db.Column(db.Float, nullable=False, default=0.0)
    wave_id = db.Column(
        db.String(36), nullable=True, index=True,
        comment="Weak reference → waves.id",
    )
    fiber_status = db.Column(
        db.String(30), nullable=False, default="Pending Feasibility",
        comment="Fiber Ready | Pending Feasibility | Copper Only",
    )

    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        db.CheckConstraint(f"region IN ({in_clause(REGIONS)})", name="ck_location_region"),
        db.CheckConstraint(
            f"fiber_status IN ({in_clause(FIBER_STATUSES)})", name="ck_location_fiber_status",
        ),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "address": self.address,
            "region": self.region,
            "coordinates": {"lat": self.lat, "lng": self.lng},
            "wave_id": self.wave_id,
            "fiber_status": self.fiber_status,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def to_record(self):
        return load_location(self.to_dict())

    def __repr__(self):
        return f"<Location {self.id}: {self.address} [{self.region}]>"


# ═════════════════════════════════════════════════════════════════════════════
# 2. Asset
# ═════════════════════════════════════════════════════════════════════════════


class Asset(db.Model):
    """Physical plant item tracked through the migration."""

    __tablename__ = "assets"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    type = db.Column(db.String(10), nullable=False, comment="copper | fiber | ONT")
    location_id = db.Column(
        db.String(36), nullable=True, index=True,
        comment="Weak reference → locations.id",
    )
    status = db.Column(
        db.String(20), nullable=False, default="active",
        comment="active | pending | completed | failed",
    )
    installation_date = db.Column(db.Date, nullable=True)
    technician_id = db.Column(db.String(36), nullable=True, comment="Weak reference → technicians.id")

    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        db.CheckConstraint(f"type IN ({in_clause(ASSET_TYPES)})", name="ck_asset_type"),
        db.CheckConstraint(f"status IN ({in_clause(ASSET_STATUSES)})", name="ck_asset_status"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "type": self.type,
            "location_id": self.location_id or "",
            "status": self.status,
            "installation_date": iso(self.installation_date),
            "technician_id": self.technician_id,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def to_record(self):
        return load_asset(self.to_dict())

    def __repr__(self):
        return f"<Asset {self.id}: {self.type} [{self.status}]>"
