"""
Launch-configuration fingerprints.

Two backend specs with equal signatures launch the same process, so a
cached catalog or a live session opened under one is valid for the other.
"""

from __future__ import annotations

import hashlib
import json
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .spec import BackendSpec

# Returned for an absent spec. Real signatures are hex digests.
NO_SIGNATURE = "<no-spec>"


def signature(spec: BackendSpec | None) -> str:
    """Return the fingerprint of a backend's command, args and env."""
    if spec is None:
        return NO_SIGNATURE

    canonical = json.dumps(
        {
            "command": spec.command,
            "args": list(spec.args),
            "env": dict(spec.env),
        },
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
