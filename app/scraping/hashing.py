"""
Content fingerprinting for scrape results.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def canonical_json(content: Any) -> str:
    """
    Serialize content with stable key ordering and compact separators.
    """

    if isinstance(content, str):
        return content
    return json.dumps(
        content,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def content_hash(content: Any) -> str:
    """
    Return the sha256 hex digest of the canonical serialization of `content`.

    Two structurally identical payloads hash equally regardless of key order.
    """

    return hashlib.sha256(canonical_json(content).encode("utf-8")).hexdigest()
