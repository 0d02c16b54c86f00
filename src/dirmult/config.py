from __future__ import annotations

from typing import Dict, Literal, Optional

import numpy as np
from pydantic import BaseModel, Field

from dirmult.core.multinomial import CountingMultinomial
from dirmult.core.prior import DirichletPrior
from dirmult.storage.codec import EventCodec, get_codec

EventType = Literal["int", "float", "text"]


class DirmultConfig(BaseModel):
    """Settings for building and persisting smoothed distributions.

    A symmetric prior is built from ``alpha`` and ``vocab_size`` unless
    ``prior_weights`` is given, in which case those weights form an
    asymmetric prior.
    """

    alpha: float = Field(
        default=0.1,
        allow_inf_nan=False,
        description="Pseudo-count shared by every event in a symmetric prior.",
    )
    vocab_size: int = Field(
        default=0,
        ge=0,
        description="Vocabulary size n; the symmetric total pseudo-count is n * alpha.",
    )
    prior_weights: Optional[Dict[str, float]] = Field(
        default=None,
        description="Per-event pseudo-counts for an asymmetric prior (keys parsed per event_type).",
    )
    event_type: EventType = Field(
        default="text",
        description="Event type, selecting the wire codec used for persistence.",
    )
    seed: Optional[int] = Field(
        default=None,
        description="Seed for the random generator returned by make_rng().",
    )
    compress_level: int = Field(
        default=3,
        ge=0,
        le=9,
        description="gzip level used when saving distribution tables.",
    )

    @classmethod
    def uniform(cls, vocab_size: int, prior_mass: float, **kwargs: object) -> "DirmultConfig":
        """Spread ``prior_mass`` evenly over ``vocab_size`` events."""
        if vocab_size <= 0:
            raise ValueError("vocab_size must be positive.")
        return cls(alpha=prior_mass / float(vocab_size), vocab_size=vocab_size, **kwargs)

    def codec(self) -> EventCodec:
        return get_codec(self.event_type)

    def _parse_event(self, key: str):  # type: ignore[no-untyped-def]
        if self.event_type == "int":
            return int(key)
        if self.event_type == "float":
            return float(key)
        return key

    def build_prior(self) -> DirichletPrior:
        if self.prior_weights is not None:
            return DirichletPrior.asymmetric(
                (self._parse_event(k), w) for k, w in self.prior_weights.items()
            )
        return DirichletPrior.symmetric(self.alpha, self.vocab_size)

    def build_multinomial(self) -> CountingMultinomial:
        return CountingMultinomial(self.build_prior())

    def make_rng(self) -> np.random.Generator:
        return np.random.default_rng(self.seed)
