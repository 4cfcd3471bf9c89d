"""
Public identifiers and the profile URLs encoded into QR tags.
"""

from streetpaws.config import settings

PUBLIC_ID_PREFIX = "SP"


def format_public_id(sequence: int, year: int) -> str:
    """SP-<year>-<sequence>, sequence zero-padded to six digits (e.g. SP-2024-000042)."""
    return f"{PUBLIC_ID_PREFIX}-{year}-{sequence:06d}"


def profile_url(animal_id: str, base_url: str | None = None) -> str:
    """Absolute URL of the animal's public profile page; this is the QR payload."""
    base = (base_url or settings.public_base_url).rstrip("/")
    return f"{base}/animal/{animal_id}"
