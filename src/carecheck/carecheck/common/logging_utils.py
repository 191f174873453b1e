"""
Helpers for logging caregiver and beneficiary data without leaking it
"""

from typing import Optional


def mask_name(full_name: Optional[str]) -> str:
    """
    Masks a display name for logs

    Returns:
        First letter of each word (e.g., "Marie Curie" -> "M*** C***")
    """
    if not full_name or not full_name.strip():
        return "[no_name]"
    return " ".join(f"{part[0]}***" for part in full_name.split())


def mask_secret(secret: Optional[str]) -> str:
    if not secret:
        return "[none]"
    return f"***{secret[-2:]}" if len(secret) > 6 else "***"


def mask_coordinates(lat: Optional[float], lng: Optional[float]) -> str:
    """
    Coarse location for logs (roughly 10 km precision)
    """
    if lat is None or lng is None:
        return "[no_location]"
    return f"~{round(lat, 1)},{round(lng, 1)}"
