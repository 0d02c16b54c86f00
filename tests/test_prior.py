from __future__ import annotations

import copy
import math
import pickle

import pytest

from dirmult.core.prior import AsymmetricPrior, DirichletPrior, SymmetricPrior
from dirmult.errors import DirmultError, KeyNotFoundError


def test_symmetric_prior_applies_alpha_to_every_event() -> None:
    prior = DirichletPrior.symmetric(0.25, 4)

    assert isinstance(prior, SymmetricPrior)
    assert prior.is_symmetric
    for event in ("a", "never-seen", 17, 3.5):
        assert prior.pseudo_count(event) == 0.25
    assert prior.total_pseudo_count() == 1.0


def test_symmetric_prior_with_empty_vocabulary() -> None:
    prior = DirichletPrior.symmetric(0.5, 0)
    assert prior.total_pseudo_count() == 0.0
    assert prior.pseudo_count("x") == 0.5


@pytest.mark.parametrize("alpha", [math.inf, -math.inf, math.nan])
def test_symmetric_prior_rejects_non_finite_alpha(alpha: float) -> None:
    with pytest.raises(ValueError):
        DirichletPrior.symmetric(alpha, 3)


def test_symmetric_prior_rejects_negative_vocabulary() -> None:
    with pytest.raises(ValueError):
        DirichletPrior.symmetric(1.0, -1)


def test_asymmetric_prior_lookup_and_total() -> None:
    prior = DirichletPrior.asymmetric([("x", 0.5), ("y", 1.5)])

    assert isinstance(prior, AsymmetricPrior)
    assert not prior.is_symmetric
    assert prior.pseudo_count("x") == 0.5
    assert prior.pseudo_count("y") == 1.5
    assert prior.total_pseudo_count() == 2.0

    with pytest.raises(KeyNotFoundError):
        prior.pseudo_count("z")


def test_key_not_found_is_a_key_error() -> None:
    prior = DirichletPrior.asymmetric({"x": 1.0})
    with pytest.raises(KeyError):
        prior.pseudo_count("missing")
    with pytest.raises(DirmultError):
        prior.pseudo_count("missing")


def test_asymmetric_prior_keeps_raw_sum_of_duplicate_pairs() -> None:
    prior = DirichletPrior.asymmetric([("x", 1.0), ("y", 2.0), ("x", 3.0)])

    # Last writer wins in the table...
    assert prior.pseudo_count("x") == 3.0
    assert dict(prior.weights) == {"x": 3.0, "y": 2.0}
    # ...but the total reflects every supplied pair.
    assert prior.total_pseudo_count() == 6.0
    assert sum(prior.weights.values()) == 5.0


def test_asymmetric_prior_consumes_a_generator_once() -> None:
    pairs = ((f"t{i}", float(i)) for i in range(4))
    prior = DirichletPrior.asymmetric(pairs)
    assert prior.total_pseudo_count() == 6.0
    assert len(prior.weights) == 4


def test_asymmetric_weights_are_read_only() -> None:
    source = {"x": 1.0}
    prior = DirichletPrior.asymmetric(source)

    with pytest.raises(TypeError):
        prior.weights["x"] = 2.0  # type: ignore[index]

    # Mutating the caller's mapping must not leak into the prior.
    source["x"] = 9.0
    assert prior.pseudo_count("x") == 1.0


def test_priors_are_frozen() -> None:
    prior = DirichletPrior.symmetric(1.0, 2)
    with pytest.raises(AttributeError):
        prior.alpha = 2.0  # type: ignore[misc]


def test_prior_equality_across_variants() -> None:
    assert DirichletPrior.symmetric(0.1, 3) == DirichletPrior.symmetric(0.1, 3)
    assert DirichletPrior.symmetric(0.1, 3) != DirichletPrior.symmetric(0.1, 4)
    assert DirichletPrior.asymmetric({"a": 1.0}) == DirichletPrior.asymmetric([("a", 1.0)])
    assert DirichletPrior.symmetric(1.0, 1) != DirichletPrior.asymmetric({"a": 1.0})


def test_prior_copies_and_pickles() -> None:
    asym = DirichletPrior.asymmetric([("a", 0.2), ("b", 0.8)])
    sym = DirichletPrior.symmetric(0.3, 10)

    for prior in (asym, sym):
        assert copy.copy(prior) == prior
        assert copy.deepcopy(prior) == prior
        assert pickle.loads(pickle.dumps(prior)) == prior

    restored = copy.deepcopy(asym)
    assert restored.total_pseudo_count() == asym.total_pseudo_count()


def test_symmetric_prior_is_hashable_asymmetric_is_not() -> None:
    assert hash(DirichletPrior.symmetric(0.1, 3)) == hash(DirichletPrior.symmetric(0.1, 3))
    with pytest.raises(TypeError):
        hash(DirichletPrior.asymmetric({"a": 1.0}))


def test_implied_vocabulary_size() -> None:
    assert DirichletPrior.symmetric(0.1, 3).implied_n == 3
    assert DirichletPrior.symmetric(0.0, 7).implied_n == 0
