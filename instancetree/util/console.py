# instancetree/util/console.py
from __future__ import annotations

import os
import sys
from typing import Any


def eprint(*args: Any) -> None:
    print(*args, file=sys.stderr)


def obs_enabled() -> bool:
    v = (os.getenv("INSTANCETREE_OBS_LOG", "") or "").strip().lower()
    return v in {"1", "true", "yes", "on"}


def obs(tag: str, msg: str) -> None:
    # One observability line on stderr, only when INSTANCETREE_OBS_LOG is on.
    if obs_enabled():
        eprint(f"[instancetree.{tag}] {msg}")
