from __future__ import annotations

from .prior import AsymmetricPrior, DirichletPrior, SymmetricPrior  # noqa: F401
from .multinomial import CountingMultinomial  # noqa: F401

__all__ = ["DirichletPrior", "SymmetricPrior", "AsymmetricPrior", "CountingMultinomial"]
