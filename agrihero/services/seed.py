from __future__ import annotations

import logging

from agrihero.core.config import Settings
from agrihero.domain.schemas import (
    ComplianceReportCreate,
    ContentCreate,
    FeatureFlagCreate,
    ProduceMarketCreate,
    SystemMetricCreate,
    UserCreate,
)
from agrihero.persistence.repository import Repository
from agrihero.services.auth.passwords import hash_password


logger = logging.getLogger(__name__)

DEMO_ADMIN_USERNAME = "superadmin"
DEMO_ADMIN_PASSWORD = "password"


FEATURE_FLAGS = (
    {
        "name": "Marketplace Enabled",
        "description": "Allow users to buy and sell agricultural products",
        "enabled": True,
        "scope": "global",
        "regions": [],
    },
    {
        "name": "IoT Device Sync",
        "description": "Sync data from farm IoT devices to the platform",
        "enabled": True,
        "scope": "global",
        "regions": [],
    },
    {
        "name": "Agricultural Chat",
        "description": "In-app messaging between farmers and agronomists",
        "enabled": False,
        "scope": "region",
        "regions": ["Kenya"],
    },
    {
        "name": "Beta: Crop Prediction",
        "description": "AI-powered crop yield prediction tools",
        "enabled": True,
        "scope": "beta",
        "regions": [],
    },
)

COMPLIANCE_REPORTS = (
    {
        "title": "Crop Yield Report",
        "description": "Regional crop yield statistics for regulatory reporting",
        "type": "crop_yield",
        "frequency": "weekly",
        "status": "generated",
        "pending_actions": 0,
        "region": "global",
    },
    {
        "title": "Fertilizer Usage",
        "description": "Fertilizer application statistics across regions",
        "type": "fertilizer_usage",
        "frequency": "monthly",
        "status": "generated",
        "pending_actions": 0,
        "region": "global",
    },
    {
        "title": "GDPR Compliance",
        "description": "Data privacy compliance status and pending actions",
        "type": "gdpr",
        "frequency": "weekly",
        "status": "pending_action",
        "pending_actions": 3,
        "region": "Europe",
    },
)

SYSTEM_METRICS = (
    {"name": "Active Users", "value": "12493", "type": "users"},
    {"name": "Content Items", "value": "3721", "type": "content"},
    {"name": "Moderation Queue", "value": "28", "type": "moderation"},
    {"name": "System Health", "value": "97.3", "type": "health"},
)

CONTENTS = (
    {
        "title": "Fresh maize for sale",
        "description": "50 bags of dried white maize, Nakuru pickup",
        "type": "marketplace",
        "status": "pending",
        "reported": False,
        "region": "Kenya",
    },
    {
        "title": "Drip irrigation basics",
        "description": "Step-by-step guide for smallholder drip kits",
        "type": "guide",
        "status": "approved",
        "reported": False,
        "region": "global",
    },
    {
        "title": "Cheap fertilizer, DM me",
        "description": "Unlabelled fertilizer offered in chat",
        "type": "chat",
        "status": "pending",
        "reported": True,
        "report_reason": "Suspected counterfeit product",
        "region": "Nigeria",
    },
)

PRODUCE_MARKETS = (
    {
        "produce_name": "Maize",
        "category": "Grains",
        "price": "3200",
        "previous_price": "3000",
        "change": "200",
        "percent_change": "6.67",
        "region": "Kenya",
        "date": "2024-05-01",
        "source": "Nairobi Wakulima Market",
        "status": "rising",
    },
    {
        "produce_name": "Tomatoes",
        "category": "Vegetables",
        "price": "1800",
        "previous_price": "2100",
        "change": "-300",
        "percent_change": "-14.29",
        "region": "Kenya",
        "date": "2024-05-01",
        "source": "Nairobi Wakulima Market",
        "status": "falling",
    },
    {
        "produce_name": "Cassava",
        "category": "Tubers",
        "price": "900",
        "previous_price": "900",
        "change": "0",
        "percent_change": "0.00",
        "region": "Nigeria",
        "date": "2024-05-01",
        "source": "Lagos Mile 12 Market",
        "status": "stable",
    },
)


async def seed_demo_data(repository: Repository, settings: Settings) -> bool:
    """Load the demo dataset into an empty store.

    Rows go through the same Create payloads as API requests. Returns False
    without touching anything when users already exist.
    """
    if await repository.users.list_all():
        logger.info("seed_skipped reason=store_not_empty")
        return False

    admin_fields = UserCreate(
        username=DEMO_ADMIN_USERNAME,
        password=DEMO_ADMIN_PASSWORD,
        email="admin@agrihero6.com",
        full_name="Alex Johnson",
        role="super_admin",
        region="global",
    ).to_fields()
    admin_fields["password"] = hash_password(DEMO_ADMIN_PASSWORD, iterations=settings.password_hash_iterations)
    admin = await repository.users.create(admin_fields)
    for flag in FEATURE_FLAGS:
        await repository.feature_flags.create(
            {**FeatureFlagCreate.model_validate(flag).to_fields(), "updated_by": admin.id}
        )
    for report in COMPLIANCE_REPORTS:
        await repository.compliance_reports.create(ComplianceReportCreate.model_validate(report).to_fields())
    for metric in SYSTEM_METRICS:
        await repository.system_metrics.create(SystemMetricCreate.model_validate(metric).to_fields())
    for content in CONTENTS:
        await repository.contents.create(
            ContentCreate.model_validate({**content, "owner_id": admin.id}).to_fields()
        )
    for row in PRODUCE_MARKETS:
        await repository.produce_markets.create(ProduceMarketCreate.model_validate(row).to_fields())
    logger.info("seed_completed admin_id=%s", admin.id)
    return True
