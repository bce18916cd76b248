from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from agrihero.apps.api.deps import Principal, get_repository, require_admin, require_super_admin
from agrihero.apps.api.openapi import DEFAULT_ERROR_RESPONSES, NOT_FOUND_RESPONSE
from agrihero.domain.entities import ProduceMarket
from agrihero.domain.schemas import ProduceMarketCreate, ProduceMarketUpdate
from agrihero.persistence.filters import ProduceMarketFilter
from agrihero.persistence.repository import Repository
from agrihero.services import audit


router = APIRouter(prefix="/produce-markets", tags=["produce-markets"], responses=DEFAULT_ERROR_RESPONSES)


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="Produce market entry not found")


@router.get("", response_model=list[ProduceMarket])
async def list_produce_markets(
    produce_name: str | None = Query(default=None, alias="produceName"),
    category: str | None = None,
    region: str | None = None,
    status: str | None = None,
    _principal: Principal = Depends(require_admin),
    repository: Repository = Depends(get_repository),
) -> list[ProduceMarket]:
    market_filter = ProduceMarketFilter(
        produce_name=produce_name,
        category=category,
        region=region,
        status=status,
    )
    return await repository.produce_markets.list_all(market_filter)


@router.get("/{entry_id}", response_model=ProduceMarket, responses=NOT_FOUND_RESPONSE)
async def get_produce_market(
    entry_id: int,
    _principal: Principal = Depends(require_admin),
    repository: Repository = Depends(get_repository),
) -> ProduceMarket:
    entry = await repository.produce_markets.get(entry_id)
    if entry is None:
        raise _not_found()
    return entry


@router.post("", response_model=ProduceMarket, status_code=201)
async def create_produce_market(
    payload: ProduceMarketCreate,
    principal: Principal = Depends(require_admin),
    repository: Repository = Depends(get_repository),
) -> ProduceMarket:
    # Price deltas and trend arrive precomputed from the client.
    entry = await repository.produce_markets.create(payload.to_fields())
    await audit.record_event(
        repository,
        admin_id=principal.id,
        action=audit.PRODUCE_MARKET_CREATION,
        metadata={"produceMarketId": entry.id, "produceName": entry.produce_name, "region": entry.region},
    )
    return entry


@router.put("/{entry_id}", response_model=ProduceMarket, responses=NOT_FOUND_RESPONSE)
async def update_produce_market(
    entry_id: int,
    payload: ProduceMarketUpdate,
    principal: Principal = Depends(require_admin),
    repository: Repository = Depends(get_repository),
) -> ProduceMarket:
    changes = payload.to_fields()
    entry = await repository.produce_markets.update(entry_id, changes)
    if entry is None:
        raise _not_found()
    await audit.record_event(
        repository,
        admin_id=principal.id,
        action=audit.PRODUCE_MARKET_UPDATE,
        metadata={"produceMarketId": entry_id, "updates": payload.changed_keys()},
    )
    return entry


@router.delete("/{entry_id}", status_code=204, response_class=Response, responses=NOT_FOUND_RESPONSE)
async def delete_produce_market(
    entry_id: int,
    principal: Principal = Depends(require_super_admin),
    repository: Repository = Depends(get_repository),
) -> Response:
    entry = await repository.produce_markets.get(entry_id)
    if entry is None or not await repository.produce_markets.delete(entry_id):
        raise _not_found()
    await audit.record_event(
        repository,
        admin_id=principal.id,
        action=audit.PRODUCE_MARKET_DELETION,
        metadata={"produceMarketId": entry_id, "produceName": entry.produce_name, "region": entry.region},
    )
    return Response(status_code=204)
