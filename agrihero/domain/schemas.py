from __future__ import annotations

from typing import Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from agrihero.domain.entities import (
    ContentStatus,
    ContentType,
    FlagScope,
    MetricType,
    PriceTrend,
    ReportFrequency,
    ReportStatus,
    ReportType,
    UserRole,
    UserStatus,
)


class Payload(BaseModel):
    # Accept camelCase bodies and reject unknown keys so ids/timestamps cannot be smuggled in.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    # Nullable fields a partial update may explicitly clear with null.
    clearable: ClassVar[tuple[str, ...]] = ()

    def to_fields(self) -> dict[str, Any]:
        # Only fields the client actually sent take part in a partial merge.
        fields = self.model_dump(exclude_unset=True)
        return {k: v for k, v in fields.items() if v is not None or k in self.clearable}

    def changed_keys(self) -> list[str]:
        # Wire (camelCase) names of the fields a partial update touches.
        return [to_camel(name) for name in self.to_fields()]


class UserCreate(Payload):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    email: str = Field(min_length=1)
    full_name: str = Field(min_length=1)
    role: UserRole = "farmer"
    region: str | None = None
    status: UserStatus = "active"

    def to_fields(self) -> dict[str, Any]:
        return self.model_dump()


class UserUpdate(Payload):
    clearable = ("region",)

    username: str | None = Field(default=None, min_length=1)
    password: str | None = Field(default=None, min_length=1)
    email: str | None = Field(default=None, min_length=1)
    full_name: str | None = Field(default=None, min_length=1)
    role: UserRole | None = None
    region: str | None = None
    status: UserStatus | None = None


class ContentCreate(Payload):
    title: str = Field(min_length=1)
    description: str | None = None
    type: ContentType
    status: ContentStatus = "pending"
    owner_id: int
    reported: bool = False
    report_reason: str | None = None
    region: str | None = None

    def to_fields(self) -> dict[str, Any]:
        return self.model_dump()


class ContentModeration(Payload):
    status: Literal["approved", "rejected"]
    reason: str | None = None


class FeatureFlagCreate(Payload):
    name: str = Field(min_length=1)
    description: str | None = None
    enabled: bool = True
    scope: FlagScope = "global"
    regions: list[str] = Field(default_factory=list)

    def to_fields(self) -> dict[str, Any]:
        return self.model_dump()


class FeatureFlagUpdate(Payload):
    clearable = ("description",)

    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    enabled: bool | None = None
    scope: FlagScope | None = None
    regions: list[str] | None = None


class ComplianceReportCreate(Payload):
    title: str = Field(min_length=1)
    description: str | None = None
    type: ReportType
    frequency: ReportFrequency
    status: ReportStatus = "generated"
    pending_actions: int = Field(default=0, ge=0)
    region: str | None = None

    def to_fields(self) -> dict[str, Any]:
        return self.model_dump()


class SystemMetricCreate(Payload):
    name: str = Field(min_length=1)
    value: str
    type: MetricType

    def to_fields(self) -> dict[str, Any]:
        return self.model_dump()


class AuditLogCreate(Payload):
    admin_id: int | None = None
    action: str = Field(min_length=1)
    metadata: dict[str, Any] = Field(default_factory=dict)

    def to_fields(self) -> dict[str, Any]:
        return self.model_dump()


class ProduceMarketCreate(Payload):
    produce_name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    price: str
    previous_price: str
    change: str
    percent_change: str
    region: str = Field(min_length=1)
    date: str
    source: str
    status: PriceTrend

    def to_fields(self) -> dict[str, Any]:
        return self.model_dump()


class ProduceMarketUpdate(Payload):
    produce_name: str | None = Field(default=None, min_length=1)
    category: str | None = Field(default=None, min_length=1)
    price: str | None = None
    previous_price: str | None = None
    change: str | None = None
    percent_change: str | None = None
    region: str | None = Field(default=None, min_length=1)
    date: str | None = None
    source: str | None = None
    status: PriceTrend | None = None
