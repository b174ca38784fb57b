"""Post-visit review links for a facility."""
from __future__ import annotations

from urllib.parse import quote

from ..schemas.place import Location

WRITE_REVIEW_URL = "https://search.google.com/local/writereview?placeid={place_id}"
SEARCH_URL = "https://www.google.com/search?q={query}"


def generate_search_review_url(location: Location) -> str:
    """Search URL built from the facility's name and address, which surfaces the business review panel."""
    parts = [location.name, location.address, location.city, location.zip]
    query = ", ".join(part for part in parts if part)
    return SEARCH_URL.format(query=quote(query, safe="!*'()"))


def get_review_url(location: Location | None) -> str | None:
    """
    Review URL for a facility.

    Precedence: stored survey URL, then the place id write-review link,
    then a search URL generated from the address.
    """
    if location is None:
        return None
    if location.review_url:
        return location.review_url
    if location.place_id:
        return WRITE_REVIEW_URL.format(place_id=location.place_id)
    return generate_search_review_url(location)
