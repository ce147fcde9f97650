"""Preference-driven tier router.

Flow:
1. Complexity sets a base tier scaled onto the catalog's rank range
2. Efficiency rules adjust it (first matching rule wins)
3. Speed rules adjust it again (first matching rule wins)
4. Clamp to the catalog and look the tier up by rank

The rules are plain data so each one can be inspected and tested on its own.
The preference code in the result is a trace of the input only; nothing may
use it to work out which tier was chosen.
"""
import logging
from dataclasses import dataclass
from typing import Callable

from pydantic import BaseModel, ConfigDict

from low_energy_ai.config import settings
from low_energy_ai.data_objs.preferences import PREFERENCE_MAX, PreferenceVector
from .models import ModelCatalog, ModelTier, get_catalog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TierLimits:
    tier_count: int
    speed_cap_tier: int
    fast_reasoning_tier: int


@dataclass(frozen=True)
class AdjustmentRule:
    name: str
    applies: Callable[[PreferenceVector], bool]
    adjust: Callable[[int, TierLimits], int]


EFFICIENCY_RULES: tuple[AdjustmentRule, ...] = (
    AdjustmentRule(
        name="efficiency_floor",
        applies=lambda p: p.efficiency >= 4 and p.complexity <= 2,
        adjust=lambda tier, limits: 1,
    ),
    AdjustmentRule(
        name="efficiency_step_down",
        applies=lambda p: p.efficiency >= 4 and p.complexity <= 3,
        adjust=lambda tier, limits: max(1, tier - 1),
    ),
    AdjustmentRule(
        name="efficiency_step_up",
        applies=lambda p: p.efficiency <= 2 and p.complexity >= 4,
        adjust=lambda tier, limits: min(limits.tier_count, tier + 1),
    ),
)

SPEED_RULES: tuple[AdjustmentRule, ...] = (
    # High speed on light work stays on low-latency tiers
    AdjustmentRule(
        name="speed_cap",
        applies=lambda p: p.speed >= 4 and p.complexity <= 3,
        adjust=lambda tier, limits: min(tier, limits.speed_cap_tier),
    ),
    # High speed on hard work goes to the fast reasoning tier, whatever came before
    AdjustmentRule(
        name="speed_fast_reasoning",
        applies=lambda p: p.speed >= 4 and p.complexity >= 4,
        adjust=lambda tier, limits: limits.fast_reasoning_tier,
    ),
)

# Efficiency is fully resolved before speed is looked at.
RULE_GROUPS: tuple[tuple[AdjustmentRule, ...], ...] = (EFFICIENCY_RULES, SPEED_RULES)


class RoutingResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    selected_tier: ModelTier
    diagnostic_code: int
    base_tier: int
    applied_rules: tuple[str, ...] = ()


def preference_code(pref: PreferenceVector, weights: tuple[int, int, int]) -> int:
    """Weighted sum of the three preferences. Informational only."""
    w_efficiency, w_speed, w_complexity = weights
    return pref.efficiency * w_efficiency + pref.speed * w_speed + pref.complexity * w_complexity


def compute_base_tier(complexity: int, tier_count: int) -> int:
    """ceil(complexity * tier_count / 5), in integer arithmetic."""
    return -(-(complexity * tier_count) // PREFERENCE_MAX)


def apply_first_match(
        rules: tuple[AdjustmentRule, ...],
        pref: PreferenceVector,
        tier: int,
        limits: TierLimits,
) -> tuple[int, str | None]:
    """Apply the first rule whose guard holds. Returns the new tier and the rule name."""
    for rule in rules:
        if rule.applies(pref):
            return rule.adjust(tier, limits), rule.name
    return tier, None


def route(
        pref: PreferenceVector,
        catalog: ModelCatalog | None = None,
        limits: TierLimits | None = None,
) -> RoutingResult:
    """Map a preference vector to a catalog tier.

    Total over any integer input: values outside [1, 5] are clamped first.

    Args:
        pref: Slider values
        catalog: Catalog to route into (default: process-wide catalog)
        limits: Speed-rule tiers (default: from settings and the catalog size)

    Returns:
        RoutingResult with the selected tier and a diagnostic trace

    Example:
        result = route(PreferenceVector(efficiency=5, speed=5, complexity=1))
        result.selected_tier.id
        'gpt-4.1-nano'
    """
    if catalog is None:
        catalog = get_catalog()
    if limits is None:
        limits = TierLimits(
            tier_count=catalog.tier_count,
            speed_cap_tier=settings.SPEED_CAP_TIER,
            fast_reasoning_tier=settings.FAST_REASONING_TIER,
        )
    pref = PreferenceVector.clamped(*pref.as_tuple())

    code = preference_code(pref, catalog.preference_weights)
    base = compute_base_tier(pref.complexity, limits.tier_count)

    tier = base
    applied: list[str] = []
    for rules in RULE_GROUPS:
        tier, fired = apply_first_match(rules, pref, tier, limits)
        if fired:
            applied.append(fired)

    final_tier = max(1, min(catalog.tier_count, tier))
    selected = catalog.by_rank(final_tier)

    logger.debug(
        f"Routed {pref.as_tuple()} code={code} base={base} rules={applied} "
        f"-> tier {final_tier} [{selected.id}]"
    )
    return RoutingResult(
        selected_tier=selected,
        diagnostic_code=code,
        base_tier=base,
        applied_rules=tuple(applied),
    )


def select_tier(efficiency: int, speed: int, complexity: int, catalog: ModelCatalog | None = None) -> RoutingResult:
    """Route raw widget values, clamping anything out of range."""
    return route(PreferenceVector.clamped(efficiency, speed, complexity), catalog)
