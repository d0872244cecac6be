"""
Tenant slug derivation.
"""

import re

_DISALLOWED = re.compile(r"[^a-z0-9 -]")
_WHITESPACE = re.compile(r"\s+")
_DASHES = re.compile(r"-+")


def slugify(name: str | None) -> str:
    """
    Derive a URL slug from a tenant name.

    "Kopi Kenangan 2" -> "kopi-kenangan-2". The result only contains
    [a-z0-9-] with no leading, trailing or repeated dashes, and may be empty
    when the name has no usable characters.
    """
    if not name:
        return ""
    slug = _DISALLOWED.sub("", name.lower())
    slug = _WHITESPACE.sub("-", slug)
    slug = _DASHES.sub("-", slug)
    return slug.strip("-")
