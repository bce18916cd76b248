from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


UserRole = Literal["farmer", "vendor", "agronomist", "support_agent", "regional_admin", "super_admin"]
UserStatus = Literal["active", "pending", "suspended"]
ContentType = Literal["marketplace", "guide", "chat"]
ContentStatus = Literal["pending", "approved", "rejected"]
FlagScope = Literal["global", "region", "beta"]
ReportType = Literal["crop_yield", "fertilizer_usage", "gdpr"]
ReportFrequency = Literal["weekly", "monthly", "quarterly"]
ReportStatus = Literal["generated", "pending_action"]
MetricType = Literal["users", "content", "moderation", "health"]
PriceTrend = Literal["rising", "falling", "stable"]


class Entity(BaseModel):
    # Serialize with camelCase keys on the wire while keeping snake_case attributes.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # Timestamp fields the repository stamps on create and on every update.
    created_stamps: ClassVar[tuple[str, ...]] = ()
    updated_stamps: ClassVar[tuple[str, ...]] = ()
    # Fields that must hold distinct values across the collection.
    unique_fields: ClassVar[tuple[str, ...]] = ()

    id: int


class User(Entity):
    created_stamps = ("last_active",)
    unique_fields = ("username",)

    username: str
    # Opaque password hash; never exposed through the API.
    password: str
    email: str
    full_name: str
    role: UserRole = "farmer"
    region: str | None = None
    status: UserStatus = "active"
    last_active: datetime


class Content(Entity):
    created_stamps = ("created_at",)

    title: str
    description: str | None = None
    type: ContentType
    status: ContentStatus = "pending"
    owner_id: int
    reported: bool = False
    report_reason: str | None = None
    region: str | None = None
    created_at: datetime


class FeatureFlag(Entity):
    created_stamps = ("last_updated",)
    updated_stamps = ("last_updated",)
    unique_fields = ("name",)

    name: str
    description: str | None = None
    enabled: bool = True
    scope: FlagScope = "global"
    # Only meaningful when scope is "region".
    regions: list[str] = Field(default_factory=list)
    last_updated: datetime
    updated_by: int | None = None


class AuditLog(Entity):
    created_stamps = ("timestamp",)

    admin_id: int | None = None
    action: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime


class ComplianceReport(Entity):
    # lastGenerated is refreshed only by the generate operation.
    created_stamps = ("last_generated",)

    title: str
    description: str | None = None
    type: ReportType
    frequency: ReportFrequency
    status: ReportStatus = "generated"
    pending_actions: int = 0
    region: str | None = None
    last_generated: datetime


class SystemMetric(Entity):
    created_stamps = ("timestamp",)

    name: str
    value: str
    type: MetricType
    timestamp: datetime


class ProduceMarket(Entity):
    created_stamps = ("created_at", "updated_at")
    updated_stamps = ("updated_at",)

    produce_name: str
    category: str
    # Prices and deltas are caller-computed display strings.
    price: str
    previous_price: str
    change: str
    percent_change: str
    region: str
    date: str
    source: str
    status: PriceTrend
    created_at: datetime
    updated_at: datetime
