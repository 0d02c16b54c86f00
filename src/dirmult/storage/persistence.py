from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Hashable, Mapping, Optional, Tuple

import joblib

from dirmult.config import DirmultConfig
from dirmult.core.multinomial import CountingMultinomial
from dirmult.storage.codec import EventCodec, get_codec

logger = logging.getLogger(__name__)

# Filenames for joblib persistence
TABLE_JOBLIB = "table.joblib"
CONFIG_JSON = "config.json"


def save_table(
    path: str,
    table: Mapping[Hashable, CountingMultinomial],
    *,
    config: Optional[DirmultConfig] = None,
    codec: Optional[EventCodec] = None,
) -> None:
    """Persist a keyed collection of distributions to a directory.

    The directory will contain:
      - table.joblib (each distribution as its binary record)
      - config.json (optional, for human-readable config)

    The event codec is taken from ``codec``, then ``config.event_type``,
    and defaults to text.
    """
    if codec is None:
        codec = config.codec() if config is not None else get_codec("text")

    os.makedirs(path, exist_ok=True)
    table_path = os.path.join(path, TABLE_JOBLIB)
    cfg_path = os.path.join(path, CONFIG_JSON)

    payload: Dict[str, Any] = {
        "event_type": codec.name,
        "entries": {key: dist.dumps(codec) for key, dist in table.items()},
    }
    level = config.compress_level if config is not None else 3
    joblib.dump(payload, table_path, compress=("gzip", level))

    if config is not None:
        with open(cfg_path, "w", encoding="utf-8") as f:
            json.dump(config.model_dump(), f)

    logger.debug("saved %d distributions to %s", len(table), path)


def load_table(
    path: str,
    *,
    mmap_mode: Optional[str] = None,
) -> Tuple[Dict[Hashable, CountingMultinomial], Optional[DirmultConfig]]:
    """Load a table written by save_table.

    Parameters
    ----------
    path
        Directory containing the table files.
    mmap_mode
        Passed through to joblib.load when set.
    """
    table_path = os.path.join(path, TABLE_JOBLIB)
    cfg_path = os.path.join(path, CONFIG_JSON)

    if not os.path.exists(table_path):
        raise FileNotFoundError(f"{TABLE_JOBLIB} not found in {path!r}")
    kwargs = {} if mmap_mode is None else {"mmap_mode": mmap_mode}
    payload = joblib.load(table_path, **kwargs)

    codec = get_codec(payload.get("event_type", "text"))
    table: Dict[Hashable, CountingMultinomial] = {
        key: CountingMultinomial.loads(blob, codec)
        for key, blob in (payload.get("entries") or {}).items()
    }

    config: Optional[DirmultConfig] = None
    if os.path.exists(cfg_path):
        with open(cfg_path, "r", encoding="utf-8") as f:
            cfg_payload = json.load(f)
        config = DirmultConfig(**cfg_payload)

    logger.debug("loaded %d distributions from %s", len(table), path)
    return table, config
