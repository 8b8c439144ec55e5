"""
Request bodies for the HTTP and CLI entry points.

Field order matters: validation reports the first violated field, and
pydantic validates in declaration order.
"""
from __future__ import annotations

import re
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from renomatch.errors import RequestValidationFailed
from renomatch.models import ContractorRequirements, PropertyProfile

POSTAL_CODE_RE = re.compile(r"^\d{4}\s?[A-Z]{2}$", re.IGNORECASE)

_VALUE_ERROR_PREFIX = "Value error, "
INVALID_JSON_BODY = "Request body is not valid JSON"


def first_error_message(errors: Sequence[Dict[str, Any]]) -> str:
    if not errors:
        return "Invalid request"
    first = errors[0]
    if first.get("type") == "json_invalid":
        return INVALID_JSON_BODY
    msg = str(first.get("msg") or "Invalid request")
    if msg.startswith(_VALUE_ERROR_PREFIX):
        return msg[len(_VALUE_ERROR_PREFIX):]
    # Field names only; list indexes and byte offsets are dropped
    loc = ".".join(p for p in first.get("loc", ()) if isinstance(p, str) and p != "body")
    return f"{loc}: {msg}" if loc else msg


def _require_text(value: str, message: str) -> str:
    if not value or not value.strip():
        raise ValueError(message)
    return value


class ContractorMatchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    project_type: List[str] = Field(alias="projectType")
    location: str
    budget: float
    timeline: str
    property_type: str = Field(alias="propertyType")
    special_requirements: List[str] = Field(default_factory=list, alias="specialRequirements")
    preferred_certifications: List[str] = Field(default_factory=list, alias="preferredCertifications")
    max_distance: float = Field(default=50, alias="maxDistance")

    @field_validator("project_type")
    @classmethod
    def _project_type(cls, v: List[str]) -> List[str]:
        if len(v) < 1:
            raise ValueError("At least one project type required")
        return v

    @field_validator("location")
    @classmethod
    def _location(cls, v: str) -> str:
        return _require_text(v, "Location is required")

    @field_validator("budget")
    @classmethod
    def _budget(cls, v: float) -> float:
        if v < 1000:
            raise ValueError("Minimum budget is €1000")
        return v

    @field_validator("timeline")
    @classmethod
    def _timeline(cls, v: str) -> str:
        return _require_text(v, "Timeline is required")

    @field_validator("property_type")
    @classmethod
    def _property_type(cls, v: str) -> str:
        return _require_text(v, "Property type is required")

    @field_validator("max_distance")
    @classmethod
    def _max_distance(cls, v: float) -> float:
        if not 5 <= v <= 100:
            raise ValueError("Maximum distance must be between 5 and 100 km")
        return v

    def to_requirements(self) -> ContractorRequirements:
        return ContractorRequirements(
            project_types=list(self.project_type),
            location=self.location,
            budget=self.budget,
            timeline=self.timeline,
            property_type=self.property_type,
            special_requirements=list(self.special_requirements),
            preferred_certifications=list(self.preferred_certifications),
            max_distance=self.max_distance,
        )


class SubsidyCheckRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    address: str
    postal_code: str = Field(alias="postalCode")
    energy_label: str = Field(alias="energyLabel")
    construction_year: int = Field(alias="constructionYear")
    property_type: str = Field(alias="propertyType")
    owner_occupied: bool = Field(default=True, alias="ownerOccupied")
    household_income: Optional[float] = Field(default=None, alias="householdIncome")
    planned_measures: List[str] = Field(default_factory=list, alias="plannedMeasures")

    @field_validator("address")
    @classmethod
    def _address(cls, v: str) -> str:
        return _require_text(v, "Address is required")

    @field_validator("postal_code")
    @classmethod
    def _postal_code(cls, v: str) -> str:
        if not POSTAL_CODE_RE.match(v.strip()):
            raise ValueError("Valid Dutch postal code required")
        return v.strip()

    @field_validator("energy_label")
    @classmethod
    def _energy_label(cls, v: str) -> str:
        return _require_text(v, "Energy label is required")

    @field_validator("construction_year")
    @classmethod
    def _construction_year(cls, v: int) -> int:
        current = date.today().year
        if not 1800 <= v <= current:
            raise ValueError(f"Construction year must be between 1800 and {current}")
        return v

    @field_validator("property_type")
    @classmethod
    def _property_type(cls, v: str) -> str:
        return _require_text(v, "Property type is required")

    def to_profile(self) -> PropertyProfile:
        return PropertyProfile(
            address=self.address,
            postal_code=self.postal_code,
            energy_label=self.energy_label,
            construction_year=self.construction_year,
            property_type=self.property_type,
            owner_occupied=self.owner_occupied,
            household_income=self.household_income,
            planned_measures=list(self.planned_measures),
        )


def parse_contractor_request(data: Dict[str, Any]) -> ContractorRequirements:
    try:
        return ContractorMatchRequest.model_validate(data).to_requirements()
    except ValidationError as exc:
        raise RequestValidationFailed(first_error_message(exc.errors())) from exc


def parse_subsidy_request(data: Dict[str, Any]) -> PropertyProfile:
    try:
        return SubsidyCheckRequest.model_validate(data).to_profile()
    except ValidationError as exc:
        raise RequestValidationFailed(first_error_message(exc.errors())) from exc
