"""Preset slider positions for picking a tier directly.

Picking a model from the dropdown moves the sliders to that tier's preset and
routes normally, so the router stays the single source of truth. Every tier
needs a preset that routes back to it; this is checked when the module loads.
"""
import logging

from low_energy_ai.data_objs.preferences import PreferenceVector
from .models import CSV_PRESETS, MODEL_CATALOG, CatalogError, ModelCatalog, UnknownTierError
from .router import route

logger = logging.getLogger(__name__)

DEFAULT_PRESETS: dict[str, PreferenceVector] = {
    "gpt-4.1-nano": PreferenceVector(efficiency=5, speed=5, complexity=1),
    "gpt-4.1-mini": PreferenceVector(efficiency=3, speed=4, complexity=1),
    "o4-mini": PreferenceVector(efficiency=3, speed=5, complexity=3),
    "gpt-4.1": PreferenceVector(efficiency=2, speed=3, complexity=3),
    "gpt-5-mini": PreferenceVector(efficiency=3, speed=3, complexity=4),
    "gpt-5.2": PreferenceVector(efficiency=1, speed=2, complexity=5),
}


def validate_presets(catalog: ModelCatalog, presets: dict[str, PreferenceVector]) -> None:
    """Check that every tier has a preset and that it routes back to the tier.

    Raises:
        CatalogError: On a missing preset, a preset for an unknown tier, or a
            preset that routes somewhere else.
    """
    missing = [tier_id for tier_id in catalog.ids() if tier_id not in presets]
    if missing:
        raise CatalogError(f"Tiers without a preset: {missing}")

    unknown = sorted(set(presets) - set(catalog.ids()))
    if unknown:
        raise CatalogError(f"Presets for tiers not in the catalog: {unknown}")

    for tier_id, preset in presets.items():
        routed = route(preset, catalog).selected_tier.id
        if routed != tier_id:
            raise CatalogError(
                f"Preset {preset.as_tuple()} for {tier_id!r} routes to {routed!r}"
            )


TIER_PRESETS: dict[str, PreferenceVector] = CSV_PRESETS if CSV_PRESETS is not None else DEFAULT_PRESETS
validate_presets(MODEL_CATALOG, TIER_PRESETS)
logger.debug(f"Validated {len(TIER_PRESETS)} tier presets")


def preset_for(tier_id: str, presets: dict[str, PreferenceVector] | None = None) -> PreferenceVector:
    """Return the curated slider positions for a tier id."""
    presets = TIER_PRESETS if presets is None else presets
    try:
        return presets[tier_id]
    except KeyError:
        raise UnknownTierError(tier_id) from None
