"""
Usage aggregation.

Running sums of cost and token counts, overall and per model.
"""

from dataclasses import dataclass, field
from typing import Dict

from ocusage.storage.models import MessageRecord

UNKNOWN_MODEL = "unknown"


@dataclass
class ModelUsage:
    """Usage accumulated for a single model."""
    cost: float = 0.0
    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_tokens: int = 0
    cache_write_tokens: int = 0

    def add(
        self,
        cost: float,
        input_tokens: int,
        output_tokens: int,
        cache_read_tokens: int,
        cache_write_tokens: int
    ) -> None:
        self.cost += cost
        self.input_tokens += input_tokens
        self.output_tokens += output_tokens
        self.cache_read_tokens += cache_read_tokens
        self.cache_write_tokens += cache_write_tokens

    def to_dict(self) -> Dict[str, float]:
        return {
            "cost": self.cost,
            "inputTokens": self.input_tokens,
            "outputTokens": self.output_tokens,
            "cacheReadTokens": self.cache_read_tokens,
            "cacheWriteTokens": self.cache_write_tokens,
        }


@dataclass
class AggregatedUsage:
    """Accumulator for one report scope (a session or a period bucket).

    Every total equals the sum of the matching per-model field.
    """
    total_cost: float = 0.0
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    total_cache_read_tokens: int = 0
    total_cache_write_tokens: int = 0
    models: Dict[str, ModelUsage] = field(default_factory=dict)

    @property
    def has_usage(self) -> bool:
        """True when cost, input or output tokens are non-zero."""
        return (
            self.total_cost > 0
            or self.total_input_tokens > 0
            or self.total_output_tokens > 0
        )

    def add(
        self,
        model_id: str,
        cost: float,
        input_tokens: int,
        output_tokens: int,
        cache_read_tokens: int,
        cache_write_tokens: int
    ) -> None:
        """Add one usage sample to the totals and to ``model_id``."""
        self.total_cost += cost
        self.total_input_tokens += input_tokens
        self.total_output_tokens += output_tokens
        self.total_cache_read_tokens += cache_read_tokens
        self.total_cache_write_tokens += cache_write_tokens
        self.models.setdefault(model_id, ModelUsage()).add(
            cost, input_tokens, output_tokens, cache_read_tokens, cache_write_tokens
        )

    def merge(self, other: "AggregatedUsage") -> None:
        """Fold another accumulator into this one."""
        for model_id, usage in other.models.items():
            self.add(
                model_id,
                usage.cost,
                usage.input_tokens,
                usage.output_tokens,
                usage.cache_read_tokens,
                usage.cache_write_tokens
            )


def accumulate(acc: AggregatedUsage, message: MessageRecord) -> None:
    """Add an assistant message's cost and tokens to ``acc``.

    Messages from the user, or without token data, are ignored. Missing
    counts and cost count as zero; a missing model id is recorded as
    ``"unknown"``.
    """
    if message.role != "assistant" or message.tokens is None:
        return

    tokens = message.tokens
    acc.add(
        message.model_id or UNKNOWN_MODEL,
        message.cost or 0.0,
        tokens.input or 0,
        tokens.output or 0,
        tokens.cache_read or 0,
        tokens.cache_write or 0
    )
