"""
Fee-rate suggestions.

Bundlers answer `pimlico_getUserOperationGasPrice` with tiers:

    {"slow": {...}, "standard": {...}, "fast": {...}}

each holding `maxFeePerGas` / `maxPriorityFeePerGas` as hex strings. Some relays
return a flat object instead. `parse_fee_suggestion` prefers `standard`, then `fast`,
then `slow`, then the flat form.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Protocol

from ..tx.operation import FeeSuggestion
from ..utils.bytes import hex_to_int

__all__ = ["FeeOracle", "StaticFeeOracle", "parse_fee_suggestion"]


class FeeOracle(Protocol):
    def read_fee_suggestion(self) -> FeeSuggestion: ...


def parse_fee_suggestion(result: Any) -> FeeSuggestion:
    if not isinstance(result, Mapping):
        raise ValueError(f"fee suggestion must be an object, got {type(result).__name__}")
    tier = result.get("standard") or result.get("fast") or result.get("slow") or result
    try:
        return FeeSuggestion(
            max_fee_per_gas=hex_to_int(tier["maxFeePerGas"]),
            max_priority_fee_per_gas=hex_to_int(tier["maxPriorityFeePerGas"]),
        )
    except (KeyError, TypeError) as e:
        raise ValueError(f"fee suggestion is missing fee fields: {result!r}") from e


@dataclass(frozen=True)
class StaticFeeOracle:
    """Fixed fee rates, e.g. from configuration on chains without a fee endpoint."""

    fees: FeeSuggestion

    def read_fee_suggestion(self) -> FeeSuggestion:
        return self.fees
