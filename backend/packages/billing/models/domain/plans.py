"""
Domain models for the plan catalog.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, field_validator

from common.core.config import settings
from packages.billing.models.domain.enums import PlanDuration, UserRole, UNLIMITED


class Plan(BaseModel):
    """
    Subscription plan domain model.

    A plan row is one version of a tier. Once a live subscription references
    it, edits produce a new row (version + 1) and this one is deactivated,
    so subscribers keep the limits they signed up with.
    """

    id: int
    name: str
    description: Optional[str] = None
    price: Decimal
    currency: str
    duration: PlanDuration
    limits: Dict[str, int] = Field(default_factory=dict)
    features: Dict[str, Any] = Field(default_factory=dict)
    target_role: Optional[UserRole] = None
    is_active: bool = True
    version: int = 1
    previous_version_id: Optional[int] = None
    deleted: bool = False

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator("limits", "features", mode="before")
    @classmethod
    def validate_maps(cls, v):
        return v or {}

    @field_validator("price", mode="before")
    @classmethod
    def validate_price(cls, v):
        # SQLite hands Numeric back as float based decimals
        return Decimal(str(v)).quantize(Decimal("0.01"))

    def limit_for(self, feature: str) -> Optional[int]:
        """Limit for a feature; None when the feature is uncapped."""
        limit = self.limits.get(feature)
        if limit is None or limit == UNLIMITED:
            return None
        return limit

    def is_free(self) -> bool:
        return self.price == 0

    def visible_to(self, role: Optional[UserRole]) -> bool:
        return self.target_role is None or self.target_role == role


class PlanCreateModel(BaseModel):
    """Model for creating a plan (or a new version of one)."""

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    currency: str = Field(default_factory=lambda: settings.default_currency)
    duration: str = PlanDuration.MONTHLY.value
    limits: Dict[str, int] = Field(default_factory=dict)
    features: Dict[str, Any] = Field(default_factory=dict)
    target_role: Optional[str] = None
    is_active: bool = True
    version: int = 1
    previous_version_id: Optional[int] = None

    @field_validator("duration", mode="before")
    @classmethod
    def validate_duration(cls, v):
        if isinstance(v, PlanDuration):
            return v.value
        return PlanDuration(v).value

    @field_validator("target_role", mode="before")
    @classmethod
    def validate_target_role(cls, v):
        if v is None:
            return v
        if isinstance(v, UserRole):
            return v.value
        return UserRole(v).value

    @field_validator("limits")
    @classmethod
    def validate_limits(cls, v: Dict[str, int]) -> Dict[str, int]:
        for feature, limit in v.items():
            if limit < UNLIMITED:
                raise ValueError(
                    f"Limit for '{feature}' must be >= 0 or {UNLIMITED} (unlimited)"
                )
        return v

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        return v.upper()


class PlanUpdateModel(BaseModel):
    """Model for updating a plan. Only set fields are written."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    currency: Optional[str] = None
    duration: Optional[str] = None
    limits: Optional[Dict[str, int]] = None
    features: Optional[Dict[str, Any]] = None
    target_role: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("duration", mode="before")
    @classmethod
    def validate_duration(cls, v):
        if v is None:
            return v
        if isinstance(v, PlanDuration):
            return v.value
        return PlanDuration(v).value

    @field_validator("target_role", mode="before")
    @classmethod
    def validate_target_role(cls, v):
        if v is None:
            return v
        if isinstance(v, UserRole):
            return v.value
        return UserRole(v).value

    @field_validator("limits")
    @classmethod
    def validate_limits(cls, v: Optional[Dict[str, int]]) -> Optional[Dict[str, int]]:
        if v is None:
            return v
        for feature, limit in v.items():
            if limit < UNLIMITED:
                raise ValueError(
                    f"Limit for '{feature}' must be >= 0 or {UNLIMITED} (unlimited)"
                )
        return v

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v

    def changes_terms(self) -> bool:
        """True if the update touches what a subscriber paid for."""
        fields = self.model_fields_set & {
            "price",
            "currency",
            "duration",
            "limits",
            "features",
        }
        return bool(fields)
