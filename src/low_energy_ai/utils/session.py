"""Per-user session state: sliders, chat history and savings.

Everything a UI would otherwise keep in ambient globals lives on one
SessionContext so the router and accumulator can be driven without a UI.
"""
import logging
import threading
import time
from typing import Dict, List
from uuid import uuid4

from pydantic import BaseModel, ConfigDict

from low_energy_ai.config import settings
from low_energy_ai.data_objs.chat_objs import ChatMessage
from low_energy_ai.data_objs.preferences import PreferenceVector
from low_energy_ai.llms.tier_selector.models import ModelCatalog, ModelTier, get_catalog
from low_energy_ai.llms.tier_selector.presets import TIER_PRESETS, preset_for, validate_presets
from low_energy_ai.llms.tier_selector.router import RoutingResult, route
from low_energy_ai.utils.savings import SavingsAccumulator, SessionAccount, estimated_query_cost

logger = logging.getLogger(__name__)


class SessionNotFoundError(KeyError):
    pass


def default_preferences() -> PreferenceVector:
    return PreferenceVector.clamped(
        settings.DEFAULT_EFFICIENCY,
        settings.DEFAULT_SPEED,
        settings.DEFAULT_COMPLEXITY,
    )


class SessionSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    session_id: str
    preferences: PreferenceVector
    routing: RoutingResult
    query_cost: float
    account: SessionAccount
    messages: List[ChatMessage]


class SessionContext:
    def __init__(
            self,
            session_id: str | None = None,
            catalog: ModelCatalog | None = None,
            presets: Dict[str, PreferenceVector] | None = None,
    ):
        custom = catalog is not None or presets is not None
        self.session_id: str = session_id or uuid4().hex
        self.catalog: ModelCatalog = get_catalog() if catalog is None else catalog
        self.presets: Dict[str, PreferenceVector] = TIER_PRESETS if presets is None else presets
        if custom:
            # A custom catalog must come with presets that route back to it
            validate_presets(self.catalog, self.presets)
        self.preferences: PreferenceVector = default_preferences()
        self.messages: List[ChatMessage] = []
        self.accumulator = SavingsAccumulator(self.catalog)
        self.last_access: float = time.monotonic()
        self._lock = threading.Lock()

    def touch(self) -> None:
        self.last_access = time.monotonic()

    def current_route(self) -> RoutingResult:
        return route(self.preferences, self.catalog)

    @property
    def current_tier(self) -> ModelTier:
        return self.current_route().selected_tier

    def set_preferences(self, preferences: PreferenceVector) -> RoutingResult:
        self.preferences = preferences
        return self.current_route()

    def pick_model(self, tier_id: str) -> RoutingResult:
        """Move the sliders to the tier's preset, then route as usual."""
        self.catalog.get(tier_id)
        return self.set_preferences(preset_for(tier_id, self.presets))

    def history(self) -> List[ChatMessage]:
        with self._lock:
            return list(self.messages)

    def record_completion(self, tier_used: ModelTier, user_message: str, reply: str) -> float:
        """Store a successful exchange and credit its savings."""
        with self._lock:
            self.messages.append(ChatMessage(role="user", content=user_message))
            self.messages.append(ChatMessage(role="assistant", content=reply))
        return self.accumulator.on_query_completed(tier_used)

    def clear_chat(self) -> None:
        with self._lock:
            self.messages.clear()

    def reset(self) -> None:
        """Sliders back to defaults, chat cleared, savings zeroed."""
        self.preferences = default_preferences()
        self.clear_chat()
        self.accumulator.reset()
        logger.info(f"Session {self.session_id} reset")

    def snapshot(self) -> SessionSnapshot:
        routing = self.current_route()
        return SessionSnapshot(
            session_id=self.session_id,
            preferences=self.preferences,
            routing=routing,
            query_cost=estimated_query_cost(routing.selected_tier, self.accumulator.tokens_per_query),
            account=self.accumulator.snapshot(),
            messages=self.history(),
        )


class SessionStore:
    """In-memory registry of live sessions. Nothing survives a restart.

    A session not fetched for idle_ttl_seconds is dropped the next time the
    store is used. A TTL of 0 keeps sessions until they are deleted.
    """

    def __init__(self, idle_ttl_seconds: float | None = None):
        self.idle_ttl_seconds: float = (
            settings.SESSION_IDLE_TTL_SECONDS if idle_ttl_seconds is None else idle_ttl_seconds
        )
        self._sessions: Dict[str, SessionContext] = {}
        self._lock = threading.Lock()

    def _prune_idle(self) -> None:
        # Caller holds self._lock
        if self.idle_ttl_seconds <= 0:
            return
        cutoff = time.monotonic() - self.idle_ttl_seconds
        expired = [sid for sid, session in self._sessions.items() if session.last_access < cutoff]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info(f"Expired {len(expired)} idle session(s)")

    def create(self) -> SessionContext:
        session = SessionContext()
        with self._lock:
            self._prune_idle()
            self._sessions[session.session_id] = session
        logger.info(f"Created session {session.session_id}")
        return session

    def get(self, session_id: str) -> SessionContext:
        with self._lock:
            self._prune_idle()
            try:
                session = self._sessions[session_id]
            except KeyError:
                raise SessionNotFoundError(session_id) from None
            session.touch()
            return session

    def delete(self, session_id: str) -> None:
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise SessionNotFoundError(session_id)
        logger.info(f"Deleted session {session_id}")

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


class SessionStoreSingleton:
    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                # Double-checked locking pattern
                if cls._instance is None:
                    cls._instance = super(SessionStoreSingleton, cls).__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if getattr(self, '_initialized', False):
            return

        with self._lock:
            if getattr(self, '_initialized', False):
                return

            self._store = SessionStore()
            self._initialized = True

    def get_instance(self) -> SessionStore:
        return self._store


def get_session_store() -> SessionStore:
    """Returns the process-wide SessionStore."""
    return SessionStoreSingleton().get_instance()
