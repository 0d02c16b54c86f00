from __future__ import annotations

from .config import DirmultConfig
from .core.multinomial import CountingMultinomial
from .core.prior import AsymmetricPrior, DirichletPrior, SymmetricPrior
from .errors import DirmultError, KeyNotFoundError, MalformedStreamError, SamplingError

__all__ = [
    "AsymmetricPrior",
    "CountingMultinomial",
    "DirichletPrior",
    "DirmultConfig",
    "DirmultError",
    "KeyNotFoundError",
    "MalformedStreamError",
    "SamplingError",
    "SymmetricPrior",
]


def main() -> None:
    """Entry point for the `dirmult` console script."""
    print("dirmult is installed. Import `CountingMultinomial` from `dirmult` to use the API.")
