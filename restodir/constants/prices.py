"""Price tier constants.

Single source of truth for the price tiers a restaurant can be listed under.
"""

from typing import Iterable, Tuple

PRICE_TIERS: Tuple[str, ...] = ("$", "$$", "$$$", "$$$$")


def validate_price_tier(price: str, tiers: Iterable[str] = PRICE_TIERS) -> bool:
    """Check whether a price string is one of the known tiers."""
    return price in tuple(tiers)
