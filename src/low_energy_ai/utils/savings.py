import logging
import threading
from collections import defaultdict
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field

from low_energy_ai.config import settings
from low_energy_ai.llms.tier_selector.models import ModelCatalog, ModelTier, get_catalog

logger = logging.getLogger(__name__)

TOKENS_PER_MILLION = 1_000_000


def estimated_query_cost(tier: ModelTier, tokens: int | None = None) -> float:
    """Synthetic USD cost of one query on a tier.

    Uses a fixed token estimate per query (ESTIMATED_TOKENS_PER_QUERY) rather
    than measured usage.
    """
    if tokens is None:
        tokens = settings.ESTIMATED_TOKENS_PER_QUERY
    return tier.cost_per_million_tokens * tokens / TOKENS_PER_MILLION


class SessionAccount(BaseModel):
    """Read-only view of a session's running totals."""

    model_config = ConfigDict(frozen=True)

    query_count: int = Field(default=0, ge=0)
    total_savings: float = Field(default=0.0, ge=0.0)
    queries_by_tier: Dict[str, int] = Field(default_factory=dict)
    reference_tier_id: str = ""


class SavingsAccumulator:
    """Running savings of a session against the most expensive tier.

    The reference tier is resolved once from the catalog. Each completed query
    adds reference cost minus actual cost, floored at zero, so the total never
    goes down even if the catalog's costs are out of rank order.
    """

    def __init__(self, catalog: ModelCatalog | None = None, tokens_per_query: int | None = None):
        catalog = get_catalog() if catalog is None else catalog
        self.max_cost_tier: ModelTier = catalog.max_cost_tier()
        self.tokens_per_query: int = (
            settings.ESTIMATED_TOKENS_PER_QUERY if tokens_per_query is None else tokens_per_query
        )
        self.query_count: int = 0
        self.total_savings: float = 0.0
        self.queries_by_tier: Dict[str, int] = defaultdict(lambda: 0)
        self._lock = threading.Lock()

    @property
    def reference_cost(self) -> float:
        return estimated_query_cost(self.max_cost_tier, self.tokens_per_query)

    def query_cost(self, tier: ModelTier) -> float:
        return estimated_query_cost(tier, self.tokens_per_query)

    def savings_for(self, tier: ModelTier) -> float:
        return max(self.reference_cost - self.query_cost(tier), 0.0)

    def on_query_completed(self, tier_used: ModelTier) -> float:
        """Record one successful query. Returns the amount saved by it."""
        saved = self.savings_for(tier_used)
        with self._lock:
            self.query_count += 1
            self.queries_by_tier[tier_used.id] += 1
            self.total_savings += saved
            query_count, total_savings = self.query_count, self.total_savings
        logger.info(
            f"Query on [{tier_used.id}] saved ${saved:.6f} vs [{self.max_cost_tier.id}] | "
            f"session: {query_count} queries, ${total_savings:.4f} saved"
        )
        return saved

    def reset(self) -> None:
        with self._lock:
            self.query_count = 0
            self.total_savings = 0.0
            self.queries_by_tier.clear()

    def snapshot(self) -> SessionAccount:
        with self._lock:
            return SessionAccount(
                query_count=self.query_count,
                total_savings=self.total_savings,
                queries_by_tier=dict(self.queries_by_tier),
                reference_tier_id=self.max_cost_tier.id,
            )

    def log_savings(self) -> None:
        logger.info(f"Session savings: \n Queries: {dict(self.queries_by_tier)}\n Saved: ${self.total_savings:.4f}")
