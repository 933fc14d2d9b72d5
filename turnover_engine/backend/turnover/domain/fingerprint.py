# backend/turnover/domain/fingerprint.py
from __future__ import annotations

import hashlib
import json
import re
from typing import Any

_WS = re.compile(r"\s+")


def _fold(part: Any) -> Any:
    if part is None:
        return ""
    if isinstance(part, str):
        return _WS.sub(" ", part).strip().casefold()
    if isinstance(part, (list, tuple)):
        return [_fold(p) for p in part]
    return part


def fingerprint(namespace: str, *parts: Any) -> str:
    """
    sha256 hex over (namespace, parts...).

    Strings are case-folded with whitespace collapsed and None reads as "", so
    "A-100 " and "a-100" collide. The namespace keeps keys for different
    record kinds apart.
    """
    blob = json.dumps([namespace, *(_fold(p) for p in parts)], default=str, ensure_ascii=False)
    return hashlib.sha256(blob.encode("utf-8")).hexdigest()
