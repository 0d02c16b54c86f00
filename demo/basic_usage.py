from __future__ import annotations

import re
import tempfile
from collections import Counter
from typing import Dict, List

from dirmult.config import DirmultConfig
from dirmult.core.multinomial import CountingMultinomial
from dirmult.core.prior import DirichletPrior
from dirmult.storage.persistence import load_table, save_table

_STOP = frozenset(
    "a an the and or but in on at to for of with by from as is was are were be been it its this that".split()
)

_DOCS = {
    "ml": "models learn parameters from data; priors smooth sparse counts in models",
    "db": "indexes speed up queries; storage engines persist pages and indexes to disk",
    "net": "packets travel through routers; congestion control limits packets in flight",
}


def _tokenize(text: str) -> List[str]:
    """Lowercase tokenize; keep alphabetic tokens of length >= 2 that are not stopwords."""
    tokens = re.findall(r"[a-zA-Z]+", text.lower())
    return [t for t in tokens if len(t) >= 2 and t not in _STOP]


def build_term_distributions(cfg: DirmultConfig) -> Dict[str, CountingMultinomial]:
    """One smoothed term distribution per document, sharing a symmetric prior."""
    prior = cfg.build_prior()
    table: Dict[str, CountingMultinomial] = {}
    for name, text in _DOCS.items():
        dist = CountingMultinomial(prior)
        for term, count in Counter(_tokenize(text)).items():
            dist.increment(term, float(count))
        table[name] = dist
    return table


def main() -> None:
    vocab = sorted({t for text in _DOCS.values() for t in _tokenize(text)})
    cfg = DirmultConfig.uniform(len(vocab), prior_mass=1.0, seed=7)
    table = build_term_distributions(cfg)

    ml = table["ml"]
    print(f"vocabulary size: {len(vocab)}")
    print(f"P(models | ml)  = {ml.probability('models'):.4f}")
    print(f"P(packets | ml) = {ml.probability('packets'):.4f}  (prior mass only)")

    # Sampling walks observed terms only, so draw from the unsmoothed counts.
    empirical = CountingMultinomial.from_counts(ml.counts.items())
    rng = cfg.make_rng()
    print("samples from ml:", [empirical.sample(rng) for _ in range(5)])

    corpus = CountingMultinomial(DirichletPrior.symmetric(cfg.alpha, len(vocab)))
    for dist in table.values():
        corpus.merge(dist)
    top = sorted(corpus.each_seen_event(), key=corpus.probability, reverse=True)[:5]
    print("top corpus terms:", top)

    with tempfile.TemporaryDirectory() as tmp:
        save_table(tmp, table, config=cfg)
        loaded, _ = load_table(tmp)
        print("roundtrip equal:", loaded == table)


if __name__ == "__main__":
    main()
