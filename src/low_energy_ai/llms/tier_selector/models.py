"""Model tier catalog for the preference router."""

import csv
import logging
from pathlib import Path
from typing import Iterable, Iterator

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from low_energy_ai.config import settings
from low_energy_ai.data_objs.preferences import PreferenceVector
from low_energy_ai.utils.path_utils import resolve_csv_path

logger = logging.getLogger(__name__)

# Weights for the informational preference code: efficiency, speed, complexity
DEFAULT_PREFERENCE_WEIGHTS: tuple[int, int, int] = (2, 3, 5)


class CatalogError(ValueError):
    """The catalog or its preset table is misconfigured."""


class UnknownTierError(KeyError):
    """No tier with the requested id exists in the catalog."""


class ModelTier(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    display_name: str
    description: str = ""
    cost_per_million_tokens: float = Field(gt=0)
    tier_rank: int = Field(ge=1)
    color_hint: str = "#888888"
    energy_rating: str = ""
    efficiency_message: str = ""


# Ordered from most efficient (lowest energy) to most powerful. Prices are
# USD per 1M tokens.
DEFAULT_TIERS: tuple[ModelTier, ...] = (
    ModelTier(
        id="gpt-4.1-nano",
        display_name="GPT-4.1 Nano",
        description="Ultra-cheap, bulk labeling & classification",
        cost_per_million_tokens=0.10,
        tier_rank=1,
        color_hint="#10b981",
        energy_rating="🌱 Minimal",
        efficiency_message="✓ Ultra efficient! Lowest cost",
    ),
    ModelTier(
        id="gpt-4.1-mini",
        display_name="GPT-4.1 Mini",
        description="Fast, 1M context, great instruction following",
        cost_per_million_tokens=0.40,
        tier_rank=2,
        color_hint="#22c55e",
        energy_rating="🌿 Low",
        efficiency_message="✓ Very efficient!",
    ),
    ModelTier(
        id="o4-mini",
        display_name="o4-mini",
        description="Fast reasoning, excellent math & coding",
        cost_per_million_tokens=0.60,
        tier_rank=3,
        color_hint="#84cc16",
        energy_rating="⚡ Medium",
        efficiency_message="✓ Good balance",
    ),
    ModelTier(
        id="gpt-4.1",
        display_name="GPT-4.1",
        description="Smart non-reasoning, 1M context, excellent coding",
        cost_per_million_tokens=2.00,
        tier_rank=4,
        color_hint="#eab308",
        energy_rating="🔥 High",
        efficiency_message="→ Reasoning mode (efficient)",
    ),
    ModelTier(
        id="gpt-5-mini",
        display_name="GPT-5 Mini",
        description="Fast GPT-5, great for most tasks",
        cost_per_million_tokens=0.80,
        tier_rank=5,
        color_hint="#f97316",
        energy_rating="🔥🔥 Very High",
        efficiency_message="↑ Advanced reasoning",
    ),
    ModelTier(
        id="gpt-5.2",
        display_name="GPT-5.2",
        description="Flagship: 400K context, thinking, coding, agentic",
        cost_per_million_tokens=1.75,
        tier_rank=6,
        color_hint="#ef4444",
        energy_rating="🔥🔥🔥 Maximum",
        efficiency_message="⚠ Maximum power mode",
    ),
)


class ModelCatalog:
    """Immutable, rank-ordered set of model tiers.

    Construction validates the catalog; any problem raises CatalogError so a
    bad configuration stops the process at startup instead of at routing time.
    """

    def __init__(
            self,
            tiers: Iterable[ModelTier],
            preference_weights: tuple[int, int, int] = DEFAULT_PREFERENCE_WEIGHTS,
    ):
        ordered = tuple(sorted(tiers, key=lambda t: t.tier_rank))
        if not ordered:
            raise CatalogError("Model catalog has no entries")

        by_id: dict[str, ModelTier] = {}
        for tier in ordered:
            if tier.id in by_id:
                raise CatalogError(f"Duplicate tier id in catalog: {tier.id!r}")
            by_id[tier.id] = tier

        ranks = [tier.tier_rank for tier in ordered]
        if ranks != list(range(1, len(ordered) + 1)):
            raise CatalogError(f"Tier ranks must be exactly 1..{len(ordered)}, got {ranks}")

        weights = tuple(preference_weights)
        if len(weights) != 3 or any(w <= 0 for w in weights) or len(set(weights)) != 3:
            raise CatalogError(
                f"Preference weights must be three distinct positive integers, got {weights}"
            )

        costs = [tier.cost_per_million_tokens for tier in ordered]
        if costs != sorted(costs):
            logger.warning(
                "⚠️  Tier costs are not non-decreasing by rank: "
                + ", ".join(f"{t.tier_rank}:{t.id} (${t.cost_per_million_tokens:.2f})" for t in ordered)
            )

        self._tiers = ordered
        self._by_id = by_id
        self._weights: tuple[int, int, int] = weights  # type: ignore[assignment]

    @property
    def tiers(self) -> tuple[ModelTier, ...]:
        return self._tiers

    @property
    def tier_count(self) -> int:
        return len(self._tiers)

    @property
    def preference_weights(self) -> tuple[int, int, int]:
        return self._weights

    def ids(self) -> list[str]:
        return [tier.id for tier in self._tiers]

    def get(self, tier_id: str) -> ModelTier:
        try:
            return self._by_id[tier_id]
        except KeyError:
            raise UnknownTierError(tier_id) from None

    def by_rank(self, rank: int) -> ModelTier:
        if not 1 <= rank <= len(self._tiers):
            raise CatalogError(f"Tier rank {rank} outside 1..{len(self._tiers)}")
        return self._tiers[rank - 1]

    def max_cost_tier(self) -> ModelTier:
        """Most expensive tier; ties go to the higher rank."""
        return max(self._tiers, key=lambda t: (t.cost_per_million_tokens, t.tier_rank))

    def min_cost_tier(self) -> ModelTier:
        return min(self._tiers, key=lambda t: (t.cost_per_million_tokens, t.tier_rank))

    def __contains__(self, tier_id: object) -> bool:
        return tier_id in self._by_id

    def __iter__(self) -> Iterator[ModelTier]:
        return iter(self._tiers)

    def __len__(self) -> int:
        return len(self._tiers)


def _load_catalog_from_csv(csv_path: str | Path) -> tuple[ModelCatalog, dict[str, PreferenceVector]]:
    """
    Load tiers and their preset slider positions from a CSV file.

    CSV format:
    id,display_name,description,cost_per_million_tokens,tier_rank,color_hint,energy_rating,efficiency_message,preset_efficiency,preset_speed,preset_complexity
    gpt-4.1-nano,GPT-4.1 Nano,Ultra-cheap,0.10,1,#10b981,🌱 Minimal,✓ Ultra efficient!,5,5,1

    Returns:
        The validated catalog and a mapping of tier id to preset vector.
        Rows without preset columns get no preset entry.

    Raises:
        CatalogError: If the file is missing or a row is malformed.
    """
    csv_path = Path(csv_path)
    if not csv_path.exists():
        raise CatalogError(f"Model catalog CSV not found: {csv_path}")

    tiers: list[ModelTier] = []
    presets: dict[str, PreferenceVector] = {}

    with open(csv_path, "r", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        for line_no, row in enumerate(reader, start=2):
            try:
                tier = ModelTier(
                    id=(row.get("id") or "").strip(),
                    display_name=(row.get("display_name") or row.get("id") or "").strip(),
                    description=(row.get("description") or "").strip(),
                    cost_per_million_tokens=row.get("cost_per_million_tokens") or 0,
                    tier_rank=row.get("tier_rank") or 0,
                    color_hint=(row.get("color_hint") or "#888888").strip(),
                    energy_rating=(row.get("energy_rating") or "").strip(),
                    efficiency_message=(row.get("efficiency_message") or "").strip(),
                )
                preset_values = [row.get(f"preset_{name}") for name in ("efficiency", "speed", "complexity")]
                if all(preset_values):
                    presets[tier.id] = PreferenceVector(
                        efficiency=preset_values[0],
                        speed=preset_values[1],
                        complexity=preset_values[2],
                    )
            except ValidationError as e:
                raise CatalogError(f"Invalid catalog row {line_no} in {csv_path.name}: {e}") from e
            tiers.append(tier)

    catalog = ModelCatalog(tiers)
    logger.info(
        f"✅ Loaded {len(catalog)} model tiers from {csv_path.name} "
        f"(range: ${min(t.cost_per_million_tokens for t in catalog):.2f} - "
        f"${max(t.cost_per_million_tokens for t in catalog):.2f} per 1M tokens)"
    )
    return catalog, presets


def _load_catalog(csv_path_setting: str) -> tuple[ModelCatalog, dict[str, PreferenceVector] | None]:
    if not csv_path_setting:
        return ModelCatalog(DEFAULT_TIERS), None
    return _load_catalog_from_csv(resolve_csv_path(csv_path_setting))


# Process-wide catalog (built-in unless MODEL_CATALOG_CSV_PATH is set)
MODEL_CATALOG, CSV_PRESETS = _load_catalog(settings.MODEL_CATALOG_CSV_PATH)


def get_catalog() -> ModelCatalog:
    return MODEL_CATALOG


def get_tier(tier_id: str) -> ModelTier:
    """Look up a tier in the process-wide catalog."""
    return MODEL_CATALOG.get(tier_id)
