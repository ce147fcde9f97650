"""FastAPI app for the Low Energy AI router.

Available endpoints:
- GET /api/health - Health check
- GET /api/config - Current non-sensitive configuration
- GET /api/models - All tiers with costs and presets
- GET /api/models/{model_id} - One tier
- POST /api/route - Route a preference vector without a session
- POST /api/sessions - Start a session
- GET/DELETE /api/sessions/{session_id} - Inspect or end a session
- PUT /api/sessions/{session_id}/preferences - Move the sliders
- PUT /api/sessions/{session_id}/model - Pick a tier directly
- POST /api/sessions/{session_id}/chat - Send a chat turn
- DELETE /api/sessions/{session_id}/messages - Clear the chat
- POST /api/sessions/{session_id}/reset - Reset sliders, chat and savings

Authentication:
- Protected endpoints require API key via Bearer token when REQUIRE_AUTH=true
- Set API_KEY and REQUIRE_AUTH=true in environment variables
"""

import logging
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from low_energy_ai.config import settings
from low_energy_ai.data_objs.chat_objs import ChatRequest, ModelPick
from low_energy_ai.data_objs.preferences import PreferenceVector
from low_energy_ai.llms.tier_selector.models import UnknownTierError, get_catalog
from low_energy_ai.llms.tier_selector.presets import preset_for
from low_energy_ai.llms.tier_selector.router import route
from low_energy_ai.logging_config import setup_logging
from low_energy_ai.utils.chat_client import ChatCompletionError, send_chat
from low_energy_ai.utils.savings import estimated_query_cost
from low_energy_ai.utils.session import SessionContext, SessionNotFoundError, get_session_store

setup_logging()
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

# Security scheme for API key authentication
security = HTTPBearer(auto_error=False)


async def verify_api_key(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> str:
    """Verify API key for protected endpoints.

    Raises:
        HTTPException: If authentication is required and token is invalid
    """
    if not settings.REQUIRE_AUTH:
        return credentials.credentials if credentials else ""

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key required. Provide Authorization: Bearer <API_KEY>",
        )

    if settings.API_KEY and credentials.credentials == settings.API_KEY:
        return credentials.credentials

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid API key",
    )


def get_session(session_id: str) -> SessionContext:
    try:
        return get_session_store().get(session_id)
    except SessionNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session '{session_id}' not found",
        )


def _tier_details(tier_id: str) -> dict:
    tier = get_catalog().get(tier_id)
    return {
        **tier.model_dump(),
        "estimated_query_cost": estimated_query_cost(tier),
        "preset": preset_for(tier_id).model_dump(),
    }


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Low Energy AI API",
    description="Routes chat queries to the cheapest LLM tier that fits the user's preferences",
    version=API_VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    return {
        "name": "Low Energy AI API",
        "version": API_VERSION,
        "docs": "/docs",
    }


@app.get("/api/health")
async def health_check():
    return {
        "status": "healthy",
        "version": API_VERSION,
        "auth_required": settings.REQUIRE_AUTH,
        "tiers_loaded": get_catalog().tier_count,
        "active_sessions": len(get_session_store()),
    }


@app.get("/api/config")
async def get_config(
    api_key: Annotated[str, Depends(verify_api_key)],
):
    """Current configuration settings (non-sensitive)."""
    return {
        "estimated_tokens_per_query": settings.ESTIMATED_TOKENS_PER_QUERY,
        "max_completion_tokens": settings.MAX_COMPLETION_TOKENS,
        "speed_cap_tier": settings.SPEED_CAP_TIER,
        "fast_reasoning_tier": settings.FAST_REASONING_TIER,
        "model_catalog_csv_path": settings.MODEL_CATALOG_CSV_PATH,
        "reference_tier": get_catalog().max_cost_tier().id,
    }


@app.get("/api/models")
async def list_models(
    api_key: Annotated[str, Depends(verify_api_key)],
):
    """All tiers in rank order, with estimated cost and preset sliders."""
    models = [_tier_details(tier_id) for tier_id in get_catalog().ids()]
    return {
        "count": len(models),
        "models": models,
    }


@app.get("/api/models/{model_id}")
async def get_model_details(
    model_id: str,
    api_key: Annotated[str, Depends(verify_api_key)],
):
    try:
        return _tier_details(model_id)
    except UnknownTierError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Model '{model_id}' not found",
        )


@app.post("/api/route")
async def route_preferences(
    preferences: PreferenceVector,
    api_key: Annotated[str, Depends(verify_api_key)],
):
    """Route a preference vector. Stateless."""
    return route(preferences).model_dump()


@app.post("/api/sessions", status_code=status.HTTP_201_CREATED)
async def create_session(
    api_key: Annotated[str, Depends(verify_api_key)],
):
    return get_session_store().create().snapshot().model_dump()


@app.get("/api/sessions/{session_id}")
async def get_session_snapshot(
    session_id: str,
    api_key: Annotated[str, Depends(verify_api_key)],
):
    return get_session(session_id).snapshot().model_dump()


@app.delete("/api/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: str,
    api_key: Annotated[str, Depends(verify_api_key)],
):
    try:
        get_session_store().delete(session_id)
    except SessionNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session '{session_id}' not found",
        )


@app.put("/api/sessions/{session_id}/preferences")
async def update_preferences(
    session_id: str,
    preferences: PreferenceVector,
    api_key: Annotated[str, Depends(verify_api_key)],
):
    session = get_session(session_id)
    session.set_preferences(preferences)
    return session.snapshot().model_dump()


@app.put("/api/sessions/{session_id}/model")
async def pick_model(
    session_id: str,
    pick: ModelPick,
    api_key: Annotated[str, Depends(verify_api_key)],
):
    """Set the sliders to the tier's preset."""
    session = get_session(session_id)
    try:
        session.pick_model(pick.model_id)
    except UnknownTierError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Model '{pick.model_id}' not found",
        )
    return session.snapshot().model_dump()


@app.post("/api/sessions/{session_id}/chat")
async def chat(
    session_id: str,
    request: ChatRequest,
    api_key: Annotated[str, Depends(verify_api_key)],
):
    """Send a chat turn to the tier the session's sliders select.

    Raises:
        HTTPException: 502 if the completion API fails; the session is unchanged
    """
    session = get_session(session_id)
    try:
        reply = await send_chat(session, request.message)
    except ChatCompletionError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e),
        )
    return {
        **reply.model_dump(),
        "session": session.snapshot().model_dump(),
    }


@app.delete("/api/sessions/{session_id}/messages")
async def clear_chat(
    session_id: str,
    api_key: Annotated[str, Depends(verify_api_key)],
):
    session = get_session(session_id)
    session.clear_chat()
    return session.snapshot().model_dump()


@app.post("/api/sessions/{session_id}/reset")
async def reset_session(
    session_id: str,
    api_key: Annotated[str, Depends(verify_api_key)],
):
    session = get_session(session_id)
    session.reset()
    return session.snapshot().model_dump()


logger.info("Low Energy AI API loaded with endpoints at /api/*")
