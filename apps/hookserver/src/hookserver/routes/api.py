# region Docstrings
"""
hookserver.routes.api
JSON entity API over the GitHub data provider.
Routes (prefix /api/entities):
- GET    /{entity}              list a bucket; query params other than organization_id
                                are equality filters
- GET    /{entity}/{id}         one record
- POST   /{entity}              create a record
- PATCH  /{entity}/{id}         merge fields into a record
- DELETE /{entity}/{id}         delete a record
- POST   /{entity}/refresh      evict and reload a bucket
Errors: unknown entity 404, scoped entity without organization_id 400, missing record 404,
write conflict 409, repository unreachable 503.
"""

# endregion
# region Imports
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, HTTPException, Query, Request

from repodata.errors import ConflictError, NotFoundError, RemoteUnavailableError
from repodata.provider import GitHubDataProvider

from ..logger import logger

_logger = logger.getChild("api")

RESERVED_PARAMS = {"organization_id"}
LITERAL_PARAMS = {"true": True, "false": False, "null": None}

# endregion
# region Helpers


def _provider(request: Request) -> GitHubDataProvider:
    return request.app.state.provider


def _scope(
    provider: GitHubDataProvider, entity: str, organization_id: Optional[str]
) -> Optional[str]:
    if not provider.settings.is_known(entity):
        raise HTTPException(status_code=404, detail=f"Unknown entity type: {entity}")
    if not provider.settings.is_scoped(entity):
        return None
    if not organization_id:
        raise HTTPException(
            status_code=400, detail=f"{entity} requires an organization_id"
        )
    return organization_id


@contextmanager
def _data_errors(entity: str):
    """Translate data layer failures into HTTP errors."""
    try:
        yield
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConflictError as e:
        _logger.error(f"Write conflict on {entity}: {e}")
        raise HTTPException(status_code=409, detail=str(e))
    except RemoteUnavailableError as e:
        _logger.error(f"Data repository unavailable for {entity}: {e}")
        raise HTTPException(status_code=503, detail=str(e))


# endregion
# region Routes

entity_api = APIRouter(prefix="/api/entities", tags=["entities"])


@entity_api.get("/{entity}")
def list_entities(
    entity: str,
    request: Request,
    organization_id: Optional[str] = Query(None),
) -> List[Dict[str, Any]]:
    provider = _provider(request)
    scope = _scope(provider, entity, organization_id)
    filters = {
        key: LITERAL_PARAMS.get(value, value)
        for key, value in request.query_params.items()
        if key not in RESERVED_PARAMS
    }
    with _data_errors(entity):
        if filters:
            return provider.query(entity, filters, scope)
        return provider.get_all(entity, scope)


@entity_api.post("/{entity}/refresh")
def refresh_entities(
    entity: str,
    request: Request,
    organization_id: Optional[str] = Query(None),
) -> Dict[str, Any]:
    provider = _provider(request)
    scope = _scope(provider, entity, organization_id)
    with _data_errors(entity):
        records = provider.refresh(entity, scope)
    return {"cache_key": provider.cache_key(entity, scope), "count": len(records)}


@entity_api.get("/{entity}/{id}")
def get_entity(
    entity: str,
    id: str,
    request: Request,
    organization_id: Optional[str] = Query(None),
) -> Dict[str, Any]:
    provider = _provider(request)
    scope = _scope(provider, entity, organization_id)
    with _data_errors(entity):
        record = provider.find(entity, id, scope)
    if record is None:
        raise HTTPException(status_code=404, detail=f"{entity} {id} not found")
    return record


@entity_api.post("/{entity}", status_code=201)
def create_entity(
    entity: str,
    request: Request,
    data: Dict[str, Any] = Body(...),
    organization_id: Optional[str] = Query(None),
) -> Dict[str, Any]:
    provider = _provider(request)
    scope = _scope(provider, entity, organization_id or data.get("organization_id"))
    with _data_errors(entity):
        return provider.create(entity, data, scope)


@entity_api.patch("/{entity}/{id}")
def update_entity(
    entity: str,
    id: str,
    request: Request,
    data: Dict[str, Any] = Body(...),
    organization_id: Optional[str] = Query(None),
) -> Dict[str, Any]:
    provider = _provider(request)
    scope = _scope(provider, entity, organization_id)
    with _data_errors(entity):
        record = provider.update(entity, id, data, scope)
    if record is None:
        raise HTTPException(status_code=404, detail=f"{entity} {id} not found")
    return record


@entity_api.delete("/{entity}/{id}")
def delete_entity(
    entity: str,
    id: str,
    request: Request,
    organization_id: Optional[str] = Query(None),
) -> Dict[str, Any]:
    provider = _provider(request)
    scope = _scope(provider, entity, organization_id)
    with _data_errors(entity):
        deleted = provider.delete(entity, id, scope)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"{entity} {id} not found")
    return {"deleted": True, "id": id}


# endregion
