"""Dev-only world routes: list worlds, inspect and switch the active world."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from testworlds.config import settings
from testworlds.errors import SeedError, StructuralError, UnknownWorldError
from testworlds.models.api import ActivateWorldRequest, ActivateWorldResponse, ClearWorldResponse, WorldSummary
from testworlds.models.context import WorldContext
from testworlds.repos.postgres_store import PostgresWorldStore
from testworlds.repos.store import WorldStore
from testworlds.services.registry import WorldRegistry
from testworlds.services.seed_engine import SeedEngine
from testworlds.services.world_context import encode_world_token, get_world_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/worlds", tags=["worlds"])
registry = WorldRegistry.default()


async def get_store() -> WorldStore:
    """Store used when activation reseeds. Overridden in tests."""
    return PostgresWorldStore()


def _require_enabled() -> None:
    if not settings.TEST_WORLDS_ENABLED:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Test worlds are disabled.")


@router.get("", status_code=200)
async def list_worlds() -> list[WorldSummary]:
    """List every world in the catalog."""
    return [WorldSummary.from_model(w) for w in registry.all()]


@router.get("/context", status_code=200)
async def current_context(context: WorldContext = Depends(get_world_context)) -> WorldContext:
    """The world context this request resolved to."""
    return context


@router.post("/{world_id}/activate", status_code=200)
async def activate_world(
    world_id: str,
    response: Response,
    req: ActivateWorldRequest | None = None,
    store: WorldStore = Depends(get_store),
) -> ActivateWorldResponse:
    """
    Make a world the active one for this browser.

    Validates the world, optionally reseeds it, then sets the signed world
    cookie. Requests carrying the cookie read and write only that world.
    """
    _require_enabled()
    try:
        world = registry.validate(world_id)
    except UnknownWorldError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="World not found.") from None
    except StructuralError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.issues) from e

    result = None
    if req is not None and req.seed:
        engine = SeedEngine(store, registry=registry)
        await engine.cleanup(world_id)
        try:
            result = await engine.seed(world_id)
        except SeedError as e:
            logger.error("worlds: activation seed of %s failed in %s phase", world_id, e.phase)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Seeding failed during the {e.phase} phase.",
            ) from e

    try:
        token = encode_world_token(world_id)
    except RuntimeError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e

    response.set_cookie(
        key=settings.WORLD_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=False,  # dev servers run over plain HTTP
        samesite="lax",
        max_age=settings.WORLD_TOKEN_TTL_HOURS * 3600,
        path="/",
    )
    logger.info("worlds: activated %s", world_id)

    return ActivateWorldResponse(
        world=WorldSummary.from_model(world),
        context=WorldContext.for_world(world_id),
        seeded=result.counts() if result else None,
        placeholders=result.placeholders if result else [],
    )


@router.delete("/active", status_code=200)
async def clear_active_world(response: Response) -> ClearWorldResponse:
    """Return this browser to the production context."""
    response.set_cookie(
        key=settings.WORLD_COOKIE_NAME,
        value="",
        httponly=True,
        secure=False,
        samesite="lax",
        max_age=0,
        path="/",
    )
    return ClearWorldResponse()
