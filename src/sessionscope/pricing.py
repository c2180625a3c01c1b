"""Token-rate cost estimation.

Rates are USD per million tokens. Providers that report their own cost
(``SessionMeta.total_cost``) are trusted as-is.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from sessionscope.adapters.base import SessionMeta


@dataclass(frozen=True)
class ModelPricing:
    """Per-million-token rates for one model family."""

    input: float
    output: float
    cache_write: float = 0.0
    cache_read: float = 0.0


DEFAULT_PRICING: dict[str, ModelPricing] = {
    "claude-opus-4": ModelPricing(15.0, 75.0, 18.75, 1.5),
    "claude-sonnet-4": ModelPricing(3.0, 15.0, 3.75, 0.3),
    "claude-haiku-4": ModelPricing(1.0, 5.0, 1.25, 0.1),
    "claude-3-7-sonnet": ModelPricing(3.0, 15.0, 3.75, 0.3),
    "claude-3-5-sonnet": ModelPricing(3.0, 15.0, 3.75, 0.3),
    "claude-3-5-haiku": ModelPricing(0.8, 4.0, 1.0, 0.08),
    "gpt-5": ModelPricing(1.25, 10.0, 1.25, 0.125),
    "gpt-5-mini": ModelPricing(0.25, 2.0, 0.25, 0.025),
    "gpt-4.1": ModelPricing(2.0, 8.0, 2.0, 0.5),
    "gpt-4o": ModelPricing(2.5, 10.0, 2.5, 1.25),
    "o3": ModelPricing(2.0, 8.0, 2.0, 0.5),
    "o4-mini": ModelPricing(1.1, 4.4, 1.1, 0.275),
}

FALLBACK_PRICING = ModelPricing(3.0, 15.0, 3.75, 0.3)


def merge_pricing(
    overrides: Mapping[str, Mapping[str, float]] | None = None,
) -> dict[str, ModelPricing]:
    """Merge ``{model: {rate: value}}`` overrides over the built-in table."""
    table = dict(DEFAULT_PRICING)
    for model, rates in (overrides or {}).items():
        base = table.get(model.lower(), FALLBACK_PRICING)
        table[model.lower()] = ModelPricing(
            input=float(rates.get("input", base.input)),
            output=float(rates.get("output", base.output)),
            cache_write=float(rates.get("cache_write", base.cache_write)),
            cache_read=float(rates.get("cache_read", base.cache_read)),
        )
    return table


def model_pricing(
    model: str | None, table: Mapping[str, ModelPricing] | None = None
) -> ModelPricing:
    """Return rates for the longest table key that prefixes ``model``."""
    table = table if table is not None else DEFAULT_PRICING
    if not model:
        return FALLBACK_PRICING
    name = model.lower().rsplit("/", 1)[-1]
    matches = [key for key in table if name.startswith(key)]
    if not matches:
        return FALLBACK_PRICING
    return table[max(matches, key=len)]


def estimate_cost(
    meta: SessionMeta, pricing: Mapping[str, ModelPricing] | None = None
) -> float:
    """Estimate a session's cost in USD; never raises."""
    if meta.total_cost is not None:
        return meta.total_cost
    rates = model_pricing(meta.model, pricing)
    total = (
        meta.total_input_tokens * rates.input
        + meta.total_output_tokens * rates.output
        + meta.cache_creation_input_tokens * rates.cache_write
        + meta.cache_read_input_tokens * rates.cache_read
    )
    return total / 1_000_000


if __name__ == "__main__":
    demo = SessionMeta(
        session_id="demo",
        project="/tmp/demo",
        project_name="demo",
        total_input_tokens=1_000_000,
        model="claude-sonnet-4-5-20250929",
    )
    assert estimate_cost(demo) == 3.0
    assert model_pricing("gpt-5-mini-2025").input == 0.25
    print(f"pricing: {len(DEFAULT_PRICING)} model families")
