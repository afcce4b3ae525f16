"""
Utility functions for generating blob names.

Blob names are random base62 strings: URL-safe, filesystem-safe on every
platform, and shorter than UUIDs.
"""
import secrets
import string

# Base62 character set: [0-9a-zA-Z]
BASE62_CHARS = string.digits + string.ascii_letters


def generate_short_id(length: int = 12) -> str:
    """
    Generate a random base62 identifier of exactly `length` characters.

    Examples:
        >>> len(generate_short_id())
        12
        >>> len(generate_short_id(8))
        8

    Notes:
        - 12 characters give ~71 bits of entropy
        - The blob store still refuses to overwrite an existing name
    """
    return "".join(secrets.choice(BASE62_CHARS) for _ in range(length))
