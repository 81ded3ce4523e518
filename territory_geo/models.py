"""
Pydantic models used across the engine for validation and serialization.
These are pure data objects, with no database coupling.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


# ── Enums ──────────────────────────────────────────────────────────────

class AssignmentMethod(str, Enum):
    COORDINATES = "coordinates"
    ADDRESS = "address"
    NAME_PATTERN = "name_pattern"
    HISTORICAL = "historical"


class IssueKind(str, Enum):
    BOUNDARY_VIOLATION = "boundary_violation"
    PLACEHOLDER_COORDINATE = "placeholder_coordinate"
    LIKELY_INTERNATIONAL = "likely_international"
    MISSING_SIGNAL = "missing_signal"


class Action(str, Enum):
    NONE = "none"
    CORRECT = "correct"
    REMOVE = "remove"
    REVIEW = "review"


# ── Input records ─────────────────────────────────────────────────────

class LocationRecord(BaseModel):
    """A record to classify, as supplied by a scraper or a store query."""
    record_id: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None
    city: Optional[str] = None
    county: Optional[str] = None
    # Externally supplied state/province string
    subdivision: Optional[str] = None
    location_text: Optional[str] = None
    name: Optional[str] = None
    country: Optional[str] = None
    # Stored assignment, when the record has already been labeled
    territory: Optional[str] = None

    model_config = {"extra": "allow"}

    @field_validator("record_id", mode="before")
    @classmethod
    def coerce_record_id(cls, v):
        """Store ids arrive as integers."""
        if v is None:
            return v
        return str(v)

    @field_validator(
        "address", "city", "county", "subdivision", "location_text", "name", "country",
        "territory", mode="before",
    )
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def sub_area(self) -> Optional[str]:
        """County or city text usable by a partition rule."""
        parts = [p for p in (self.county, self.city) if p]
        return ", ".join(parts) if parts else None

    @property
    def address_text(self) -> Optional[str]:
        """Everything that reads like an address, joined for the text resolver."""
        parts = [p for p in (self.address, self.city, self.subdivision, self.location_text) if p]
        return ", ".join(parts) if parts else None


# ── Assignment ────────────────────────────────────────────────────────

class AssignmentResult(BaseModel):
    territory: Optional[str] = None
    subdivision: Optional[str] = None
    method: Optional[AssignmentMethod] = None
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    reasoning: list[str] = Field(default_factory=list)

    @property
    def assigned(self) -> bool:
        return self.territory is not None


# ── Validation ────────────────────────────────────────────────────────

class ValidationFinding(BaseModel):
    is_valid: bool
    stored_territory: Optional[str] = None
    recomputed_territory: Optional[str] = None
    recomputed_subdivision: Optional[str] = None
    issues: list[IssueKind] = Field(default_factory=list)
    action: Action = Action.NONE
    placeholder_name: Optional[str] = None
    # Great-circle distance from the stored territory's centre, when known
    stored_distance_km: Optional[float] = None
    reasons: list[str] = Field(default_factory=list)

    @property
    def classification(self) -> Optional[IssueKind]:
        return self.issues[0] if self.issues else None


class DatasetEntry(BaseModel):
    record_id: Optional[str] = None
    name: Optional[str] = None
    finding: Optional[ValidationFinding] = None
    error: Optional[str] = None


class ContaminationReport(BaseModel):
    """Summary of a validation pass over many records."""
    total: int = 0
    valid: int = 0
    contaminated: int = 0
    # Only missing_signal: nothing to check the assignment against
    unverifiable: int = 0
    invalid_input: int = 0
    contamination_rate: float = 0.0
    by_issue: dict[str, int] = Field(default_factory=dict)
    by_action: dict[str, int] = Field(default_factory=dict)
    entries: list[DatasetEntry] = Field(default_factory=list)


# ── Dissolve ──────────────────────────────────────────────────────────

class DissolveResult(BaseModel):
    territory: Optional[str] = None
    changed: bool
    parts_in: int
    message: str
    # GeoJSON geometry, or a Feature when a Feature was supplied
    geometry: dict[str, Any]
    perimeter_before: Optional[float] = None
    perimeter_after: Optional[float] = None


# ── API request/response models ───────────────────────────────────────

class ResolveRequest(LocationRecord):
    pass


class ValidateRequest(BaseModel):
    stored_territory: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    name: Optional[str] = None
    city: Optional[str] = None
    county: Optional[str] = None
    country: Optional[str] = None


class DissolveRequest(BaseModel):
    territory: Optional[str] = None
    geometry: dict[str, Any]


class TerritoryResponse(BaseModel):
    name: str
    members: list[str]
    split: bool = False
    accepts_international: bool = False


class HealthResponse(BaseModel):
    status: str = "ok"
    territories: int = 0
    subdivisions: int = 0
    total_records: Optional[int] = None
    assigned_records: Optional[int] = None
    last_pipeline_run: Optional[datetime] = None
