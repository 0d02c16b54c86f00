from __future__ import annotations

import logging
import random
from types import MappingProxyType
from typing import Any, Dict, Hashable, Iterable, Iterator, Mapping, Optional, Sequence, Tuple

import numpy as np

from dirmult.errors import SamplingError
from dirmult.storage.codec import TEXT_CODEC, ByteReader, ByteWriter, EventCodec, codec_for
from .prior import DirichletPrior

logger = logging.getLogger(__name__)

Event = Hashable


class CountingMultinomial:
    """Empirical event counts smoothed by a fixed Dirichlet prior.

    Smoothed quantities combine the observed counts with the prior's
    pseudo-counts:

        count(e) = c_e + alpha_e
        P(e)     = count(e) / (sum_e c_e + alpha_sum)

    Counts are plain floats and may go negative; nothing is validated.
    The running total is kept equal to the sum of the counts by every
    mutator.
    """

    def __init__(self, prior: Optional[DirichletPrior] = None) -> None:
        self._prior: DirichletPrior = prior if prior is not None else DirichletPrior.symmetric(0.0, 0)
        self._counts: Dict[Event, float] = {}
        self._total: float = 0.0

    @classmethod
    def from_counts(
        cls,
        pairs: Iterable[Tuple[Event, float]],
        prior: Optional[DirichletPrior] = None,
    ) -> "CountingMultinomial":
        """Build a distribution by incrementing each ``(event, weight)`` in order."""
        dist = cls(prior)
        for event, weight in pairs:
            dist.increment(event, weight)
        return dist

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def increment(self, event: Event, weight: float = 1.0) -> None:
        """Add ``weight`` observations of ``event``."""
        self._counts[event] = self._counts.get(event, 0.0) + weight
        self._total += weight

    def decrement(self, event: Event, weight: float = 1.0) -> None:
        """Remove ``weight`` observations of ``event``."""
        self.increment(event, -weight)

    def merge(self, other: "CountingMultinomial") -> None:
        """Add every observed count of ``other`` into this distribution.

        Only the counts are combined. This distribution keeps its own prior
        and the prior of ``other`` is ignored.
        """
        for event, weight in other._counts.items():
            self._counts[event] = self._counts.get(event, 0.0) + weight
        self._total += other._total

    def __iadd__(self, other: "CountingMultinomial") -> "CountingMultinomial":
        self.merge(other)
        return self

    def __add__(self, other: "CountingMultinomial") -> "CountingMultinomial":
        result = self.copy()
        result.merge(other)
        return result

    def clear(self) -> None:
        """Forget all observations; the prior is kept."""
        self._counts.clear()
        self._total = 0.0

    def copy(self) -> "CountingMultinomial":
        dup = type(self)(self._prior)
        dup._counts = dict(self._counts)
        dup._total = self._total
        return dup

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def prior(self) -> DirichletPrior:
        return self._prior

    @property
    def counts(self) -> Mapping[Event, float]:
        """Read-only view of the observed counts."""
        return MappingProxyType(self._counts)

    @property
    def total(self) -> float:
        """Sum of the observed counts, excluding the prior."""
        return self._total

    def raw_count(self, event: Event) -> float:
        """Observed count of ``event`` without any pseudo-count."""
        return self._counts.get(event, 0.0)

    def observed_count(self, event: Event) -> float:
        """Smoothed count of ``event``: its observations plus its pseudo-count.

        Raises KeyNotFoundError when the prior is asymmetric and has no
        entry for ``event``.
        """
        return self._counts.get(event, 0.0) + self._prior.pseudo_count(event)

    def total_count(self) -> float:
        return self._total + self._prior.total_pseudo_count()

    def probability(self, event: Event) -> float:
        """Posterior predictive probability of ``event``.

        A zero total yields nan or inf rather than an exception.
        """
        with np.errstate(divide="ignore", invalid="ignore"):
            return float(np.float64(self.observed_count(event)) / np.float64(self.total_count()))

    def as_array(self, events: Sequence[Event]) -> np.ndarray:
        """Return ``[P(e) for e in events]`` as a float64 vector."""
        return np.fromiter((self.probability(e) for e in events), dtype=np.float64, count=len(events))

    def each_seen_event(self) -> Iterator[Event]:
        """Yield every event that has an entry in the counts, in insertion order."""
        return iter(self._counts)

    def unique_events(self) -> int:
        return len(self._counts)

    def __len__(self) -> int:
        return len(self._counts)

    def __contains__(self, event: object) -> bool:
        return event in self._counts

    # ------------------------------------------------------------------
    # Sampling
    # ------------------------------------------------------------------
    def sample(self, rng: Optional[Any] = None) -> Event:
        """Draw an event by inverse-CDF over the observed events.

        Events that exist only in the prior are never returned. ``rng`` may
        be anything with a ``random()`` method returning a float in [0, 1),
        such as random.Random or numpy.random.Generator.
        """
        rng = rng or random
        u = rng.random()
        cumulative = 0.0
        for event in self._counts:
            cumulative += self.probability(event)
            if cumulative >= u:
                return event
        raise SamplingError(
            f"cumulative probability {cumulative!r} over {len(self._counts)} events "
            f"never reached {u!r}"
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def _resolve_codec(self, codec: Optional[EventCodec]) -> EventCodec:
        if codec is not None:
            return codec
        if self._counts:
            return codec_for(next(iter(self._counts)))
        weights = getattr(self._prior, "weights", None)
        if weights:
            return codec_for(next(iter(weights)))
        return TEXT_CODEC

    def write(self, writer: ByteWriter, codec: Optional[EventCodec] = None) -> None:
        """Append the counts record followed by the prior record."""
        codec = self._resolve_codec(codec)
        writer.write_double(self._total)
        writer.write_uint(len(self._counts))
        for event, count in self._counts.items():
            codec.write(writer, event)
            writer.write_double(count)
        self._prior.write(writer, codec)

    def dumps(self, codec: Optional[EventCodec] = None) -> bytes:
        writer = ByteWriter()
        self.write(writer, codec)
        return writer.getvalue()

    def load(self, reader: ByteReader, codec: EventCodec) -> None:
        """Replace this distribution with the record at ``reader``.

        The counts are cleared first. An exhausted stream leaves the
        distribution cleared with its prior unchanged. Otherwise the record
        is decoded in full before anything is committed, so a
        MalformedStreamError also leaves the prior untouched.
        """
        self.clear()
        if reader.at_end():
            logger.debug("empty stream; distribution left cleared")
            return

        total = reader.read_double()
        count = reader.read_uint()
        counts: Dict[Event, float] = {}
        for _ in range(count):
            event = codec.read(reader)
            counts[event] = reader.read_double()
        prior = DirichletPrior.read(reader, codec)

        self._counts = counts
        self._total = total
        if prior is not None:
            self._prior = prior
        logger.debug("loaded %d entries (prior present: %s)", len(counts), prior is not None)

    @classmethod
    def read(cls, reader: ByteReader, codec: EventCodec) -> "CountingMultinomial":
        dist = cls()
        dist.load(reader, codec)
        return dist

    @classmethod
    def loads(cls, data: bytes, codec: EventCodec) -> "CountingMultinomial":
        return cls.read(ByteReader(data), codec)

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CountingMultinomial):
            return NotImplemented
        return (
            self._counts == other._counts
            and self._total == other._total
            and self._prior == other._prior
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(events={len(self._counts)}, "
            f"total={self._total!r}, prior={self._prior!r})"
        )
