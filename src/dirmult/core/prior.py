from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from types import MappingProxyType
from typing import ClassVar, Dict, Hashable, Iterable, Mapping, Optional, Tuple, Union

from dirmult.errors import KeyNotFoundError, MalformedStreamError
from dirmult.storage.codec import TEXT_CODEC, ByteReader, ByteWriter, EventCodec, codec_for

logger = logging.getLogger(__name__)

Event = Hashable

SYMMETRIC_TAG = 0
ASYMMETRIC_TAG = 1


class DirichletPrior(ABC):
    """Fixed Dirichlet hyperparameters, expressed as per-event pseudo-counts.

    A prior is exactly one of two variants:

    - SymmetricPrior: a single alpha shared by every event, seen or not.
    - AsymmetricPrior: an explicit pseudo-count per event.

    Both are immutable values. The total pseudo-count is fixed when the
    prior is built and is never recomputed afterwards.
    """

    tag: ClassVar[int]

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @staticmethod
    def symmetric(alpha: float, n: int) -> "SymmetricPrior":
        """Build a symmetric prior of ``alpha`` over a vocabulary of size ``n``."""
        alpha = float(alpha)
        if not math.isfinite(alpha):
            raise ValueError(f"alpha must be finite, got {alpha!r}")
        n = int(n)
        if n < 0:
            raise ValueError(f"vocabulary size must be non-negative, got {n}")
        prior = SymmetricPrior(alpha=alpha, alpha_sum=n * alpha)
        logger.debug("built symmetric prior alpha=%r n=%d alpha_sum=%r", alpha, n, prior.alpha_sum)
        return prior

    @staticmethod
    def asymmetric(
        pairs: Union[Mapping[Event, float], Iterable[Tuple[Event, float]]],
    ) -> "AsymmetricPrior":
        """Build an asymmetric prior from ``(event, weight)`` pairs.

        The pairs are consumed once. A repeated event keeps its last weight
        in the table, but every occurrence still counts towards the total.
        """
        items = pairs.items() if isinstance(pairs, Mapping) else pairs
        weights: Dict[Event, float] = {}
        alpha_sum = 0.0
        for event, weight in items:
            w = float(weight)
            weights[event] = w
            alpha_sum += w
        prior = AsymmetricPrior(weights=weights, alpha_sum=alpha_sum)
        logger.debug(
            "built asymmetric prior entries=%d alpha_sum=%r", len(prior.weights), alpha_sum
        )
        return prior

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def is_symmetric(self) -> bool:
        return self.tag == SYMMETRIC_TAG

    @abstractmethod
    def pseudo_count(self, event: Event) -> float:
        """Return the pseudo-count this prior assigns to ``event``."""

    @abstractmethod
    def total_pseudo_count(self) -> float:
        """Return the total pseudo-count (alpha_sum)."""

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    @abstractmethod
    def _write_payload(self, writer: ByteWriter, codec: Optional[EventCodec]) -> None:
        ...

    def write(self, writer: ByteWriter, codec: Optional[EventCodec] = None) -> None:
        """Append this prior's binary record to ``writer``."""
        writer.write_uint(self.tag)
        self._write_payload(writer, codec)

    def dumps(self, codec: Optional[EventCodec] = None) -> bytes:
        writer = ByteWriter()
        self.write(writer, codec)
        return writer.getvalue()

    @classmethod
    def read(
        cls,
        reader: ByteReader,
        codec: Optional[EventCodec] = None,
    ) -> Optional["DirichletPrior"]:
        """Decode a prior record, or return None if the stream is exhausted.

        An exhausted stream stands for "no persisted prior"; callers keep
        whatever prior they already have.
        """
        if reader.at_end():
            logger.debug("no prior record at offset %d", reader.position)
            return None

        tag = reader.read_uint()
        if tag == SYMMETRIC_TAG:
            alpha = reader.read_double()
            n = reader.read_uint()
            try:
                return cls.symmetric(alpha, n)
            except ValueError as exc:
                raise MalformedStreamError(str(exc)) from exc

        if tag == ASYMMETRIC_TAG:
            if codec is None:
                raise ValueError("an event codec is required to read an asymmetric prior")
            count = reader.read_uint()
            pairs = []
            for _ in range(count):
                event = codec.read(reader)
                pairs.append((event, reader.read_double()))
            return cls.asymmetric(pairs)

        raise MalformedStreamError(f"unknown prior tag {tag}")

    @classmethod
    def loads(cls, data: bytes, codec: Optional[EventCodec] = None) -> Optional["DirichletPrior"]:
        return cls.read(ByteReader(data), codec)


@dataclass(frozen=True)
class SymmetricPrior(DirichletPrior):
    """Single pseudo-count ``alpha`` applied uniformly to every event."""

    alpha: float
    alpha_sum: float

    tag: ClassVar[int] = SYMMETRIC_TAG

    def pseudo_count(self, event: Event) -> float:
        return self.alpha

    def total_pseudo_count(self) -> float:
        return self.alpha_sum

    @property
    def implied_n(self) -> int:
        """Vocabulary size recovered from the cached total.

        Lossy when alpha is zero, in which case 0 is reported.
        """
        if self.alpha == 0.0:
            return 0
        return int(round(self.alpha_sum / self.alpha))

    def _write_payload(self, writer: ByteWriter, codec: Optional[EventCodec]) -> None:
        writer.write_double(self.alpha)
        writer.write_uint(self.implied_n)


@dataclass(frozen=True)
class AsymmetricPrior(DirichletPrior):
    """Explicit per-event pseudo-counts.

    ``weights`` is a read-only view; ``alpha_sum`` is the total declared at
    construction and may differ from ``sum(weights.values())`` when the
    source pairs repeated an event.
    """

    weights: Mapping[Event, float]
    alpha_sum: float

    tag: ClassVar[int] = ASYMMETRIC_TAG

    def __post_init__(self) -> None:
        object.__setattr__(self, "weights", MappingProxyType(dict(self.weights)))

    def __reduce__(self):  # type: ignore[no-untyped-def]
        return (type(self), (dict(self.weights), self.alpha_sum))

    def pseudo_count(self, event: Event) -> float:
        try:
            return self.weights[event]
        except KeyError:
            raise KeyNotFoundError(event) from None

    def total_pseudo_count(self) -> float:
        return self.alpha_sum

    def _write_payload(self, writer: ByteWriter, codec: Optional[EventCodec]) -> None:
        if codec is None:
            codec = codec_for(next(iter(self.weights))) if self.weights else TEXT_CODEC
        writer.write_uint(len(self.weights))
        for event, weight in self.weights.items():
            codec.write(writer, event)
            writer.write_double(weight)
