"""
Object names for uploaded evidence: {prefix}{epoch_millis}_{suffix}.{ext}
"""

import secrets
import string
import time
from typing import Optional

BASE36_ALPHABET = string.digits + string.ascii_lowercase
SUFFIX_LENGTH = 6


def generate_object_name(extension: str, prefix: str = "", now_ms: Optional[int] = None) -> str:
    """
    Build a unique-enough object key.

    Collisions are not checked here; the bucket rejects duplicate keys.

    Args:
        extension: File extension without the dot ("jpg", "webp", ...)
        prefix: "" for alert photos, "sighting_" or "id_proof_"
        now_ms: Override for the millisecond timestamp (tests)
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(BASE36_ALPHABET) for _ in range(SUFFIX_LENGTH))
    return f"{prefix}{now_ms}_{suffix}.{extension.lstrip('.').lower()}"
