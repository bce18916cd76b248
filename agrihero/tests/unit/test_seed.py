from __future__ import annotations

import pytest
from pydantic import ValidationError

from agrihero.core.config import Settings
from agrihero.domain.schemas import (
    ComplianceReportCreate,
    FeatureFlagCreate,
    ProduceMarketCreate,
    SystemMetricCreate,
)
from agrihero.persistence.memory import MemoryRepository
from agrihero.services.auth.passwords import verify_password
from agrihero.services.seed import (
    COMPLIANCE_REPORTS,
    DEMO_ADMIN_PASSWORD,
    DEMO_ADMIN_USERNAME,
    FEATURE_FLAGS,
    PRODUCE_MARKETS,
    SYSTEM_METRICS,
    seed_demo_data,
)


@pytest.mark.asyncio
async def test_seed_loads_demo_dataset_once() -> None:
    repo = MemoryRepository()
    settings = Settings(password_hash_iterations=1000, _env_file=None)
    assert await seed_demo_data(repo, settings) is True

    admin = await repo.users.find_first(username=DEMO_ADMIN_USERNAME)
    assert admin is not None
    assert admin.role == "super_admin"
    assert verify_password(DEMO_ADMIN_PASSWORD, admin.password)

    flags = await repo.feature_flags.list_all()
    assert len(flags) == 4
    assert all(flag.updated_by == admin.id for flag in flags)
    assert len(await repo.compliance_reports.list_all()) == 3
    assert len(await repo.system_metrics.list_all()) == 4
    assert len(await repo.contents.list_all()) == 3
    assert len(await repo.produce_markets.list_all()) == 3
    # Seeding is not an administrative action.
    assert await repo.audit_logs.list_all() == []

    assert await seed_demo_data(repo, settings) is False
    assert len(await repo.users.list_all()) == 1


@pytest.mark.parametrize(
    ("schema", "rows"),
    [
        (FeatureFlagCreate, FEATURE_FLAGS),
        (ComplianceReportCreate, COMPLIANCE_REPORTS),
        (SystemMetricCreate, SYSTEM_METRICS),
        (ProduceMarketCreate, PRODUCE_MARKETS),
    ],
)
def test_seed_rows_satisfy_create_payloads(schema, rows) -> None:
    for row in rows:
        assert schema.model_validate(row).to_fields() == row


@pytest.mark.asyncio
async def test_seed_rejects_rows_the_api_would_reject(monkeypatch) -> None:
    bad = ({**FEATURE_FLAGS[0], "scope": "galaxy"},)
    monkeypatch.setattr("agrihero.services.seed.FEATURE_FLAGS", bad)
    repo = MemoryRepository()
    with pytest.raises(ValidationError):
        await seed_demo_data(repo, Settings(password_hash_iterations=1000, _env_file=None))
