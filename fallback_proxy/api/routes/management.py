import json as json_lib
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import ValidationError

from fallback_proxy.api.auth_utils import require_management_key
from fallback_proxy.api.middleware.rate_limit import limiter, MANAGEMENT_RATE_LIMIT
from fallback_proxy.common.models import (
    AvailableModelsResponse,
    FallbackResolution,
    ModelFallbacksResponse,
    ModelFallbacksUpdateRequest,
    StatusResponse,
)
from fallback_proxy.fallback import (
    ConfigUnavailableError,
    FallbackNotFoundError,
    FallbackPersistenceError,
    FallbackRegistry,
    FallbackRule,
    MalformedFallbackError,
    collect_available_models,
    describe_chain,
    sanitize_rules,
)
from fallback_proxy.fallback.rules import EMPTY_SNAPSHOT

logger = logging.getLogger("FallbackProxy")

router = APIRouter(
    prefix="/v0/management",
    tags=["management"],
    dependencies=[Depends(require_management_key)],
)


def get_registry(request: Request) -> Optional[FallbackRegistry]:
    return getattr(request.app.state, "fallback_registry", None)


def require_registry(request: Request) -> FallbackRegistry:
    registry = get_registry(request)
    if registry is None:
        raise ConfigUnavailableError("config not available")
    return registry


async def parse_body(request: Request, model):
    """Parses and validates a JSON body before any state is touched."""
    try:
        raw = await request.body()
        data = json_lib.loads(raw or b"null")
        return model.model_validate(data)
    except (json_lib.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
        raise MalformedFallbackError(f"invalid body: {e}") from e


def _to_http_error(e: Exception) -> HTTPException:
    if isinstance(e, MalformedFallbackError):
        return HTTPException(status_code=400, detail="invalid body")
    if isinstance(e, FallbackNotFoundError):
        return HTTPException(status_code=400, detail="fallback not found")
    if isinstance(e, ConfigUnavailableError):
        return HTTPException(status_code=500, detail="config not available")
    if isinstance(e, FallbackPersistenceError):
        return HTTPException(status_code=500, detail="failed to save config")
    return HTTPException(status_code=500, detail=str(e))


@router.get("/model-fallbacks", response_model=ModelFallbacksResponse)
@limiter.limit(MANAGEMENT_RATE_LIMIT)
async def get_model_fallbacks(request: Request):
    """Returns the current rules and effective depth (defaults when uninitialized)."""
    registry = get_registry(request)
    snapshot = registry.snapshot if registry is not None else EMPTY_SNAPSHOT
    return ModelFallbacksResponse(
        model_fallbacks=list(snapshot.rules),
        model_fallback_depth=snapshot.depth,
    )


@router.put("/model-fallbacks", response_model=StatusResponse, response_model_exclude_none=True)
@limiter.limit(MANAGEMENT_RATE_LIMIT)
async def put_model_fallbacks(request: Request):
    """Replaces the entire model fallback configuration."""
    try:
        body = await parse_body(request, ModelFallbacksUpdateRequest)
        registry = require_registry(request)
        await registry.replace(body.model_fallbacks, body.model_fallback_depth)
    except (MalformedFallbackError, ConfigUnavailableError, FallbackPersistenceError) as e:
        logger.warning(f"Replacing model fallbacks failed: {e}")
        raise _to_http_error(e) from e
    return StatusResponse()


@router.post("/model-fallbacks", response_model=StatusResponse, response_model_exclude_none=True)
@limiter.limit(MANAGEMENT_RATE_LIMIT)
async def post_model_fallback(request: Request):
    """Adds a single model fallback; an existing or unusable pair is reported as success."""
    try:
        rule = await parse_body(request, FallbackRule)
        registry = require_registry(request)
        added = await registry.add(rule)
    except (MalformedFallbackError, ConfigUnavailableError, FallbackPersistenceError) as e:
        logger.warning(f"Adding model fallback failed: {e}")
        raise _to_http_error(e) from e
    if not added:
        if not sanitize_rules([rule]):
            return StatusResponse(message="fallback ignored")
        return StatusResponse(message="fallback already exists")
    return StatusResponse()


@router.delete("/model-fallbacks", response_model=StatusResponse, response_model_exclude_none=True)
@limiter.limit(MANAGEMENT_RATE_LIMIT)
async def delete_model_fallbacks(
    request: Request,
    index: Optional[str] = Query(None, description="Position in the current list"),
    from_model: Optional[str] = Query(None, alias="from"),
    to_model: Optional[str] = Query(None, alias="to"),
):
    """
    Removes model fallbacks by index, by `from` model, or by `(from, to)` pair.
    """
    position = None
    if index is not None and index.strip():
        try:
            position = int(index.strip())
        except ValueError:
            # An unparsable index falls through to the from/to selectors
            position = None

    try:
        registry = require_registry(request)
        removed = await registry.delete(index=position, from_model=from_model, to_model=to_model)
    except (FallbackNotFoundError, ConfigUnavailableError, FallbackPersistenceError) as e:
        logger.warning(f"Deleting model fallback failed: {e}")
        raise _to_http_error(e) from e
    return StatusResponse(removed=removed)


@router.get("/model-fallbacks/resolve", response_model=FallbackResolution)
@limiter.limit(MANAGEMENT_RATE_LIMIT)
async def resolve_model_fallback(request: Request, model: str = Query("")):
    """Previews the substitute and full fallback chain for a model name."""
    return describe_chain(get_registry(request), model)


@router.get("/available-models", response_model=AvailableModelsResponse)
@limiter.limit(MANAGEMENT_RATE_LIMIT)
async def get_available_models(request: Request):
    """Returns every configured or commonly used model name, for autocomplete."""
    config = getattr(request.app.state, "config", None)
    registry = get_registry(request)
    if config is None and registry is None:
        return AvailableModelsResponse(models=[])
    rules = registry.snapshot.rules if registry is not None else ()
    return AvailableModelsResponse(models=collect_available_models(config, rules))
