"""Preference-based LLM tier selector.

Maps three slider values (efficiency, speed, complexity) to one tier of a
fixed model catalog.

Example:
    >>> from low_energy_ai.llms.tier_selector import select_tier, preset_for, route
    >>>
    >>> select_tier(5, 5, 1).selected_tier.id
    'gpt-4.1-nano'
    >>>
    >>> route(preset_for("gpt-5.2")).selected_tier.id
    'gpt-5.2'
"""

from .models import CatalogError, ModelCatalog, ModelTier, UnknownTierError, get_catalog, get_tier
from .presets import preset_for, validate_presets
from .router import RoutingResult, route, select_tier

__all__ = [
    "CatalogError",
    "ModelCatalog",
    "ModelTier",
    "RoutingResult",
    "UnknownTierError",
    "get_catalog",
    "get_tier",
    "preset_for",
    "route",
    "select_tier",
    "validate_presets",
]
