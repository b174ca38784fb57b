from typing import Any

from pydantic import BaseModel, Field


class Coordinates(BaseModel):
    latitude: float = Field(..., description="degrees")
    longitude: float = Field(..., description="degrees")


def _parse_coordinate(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class Location(BaseModel):
    """A facility from the backend location directory."""

    sys_id: str
    name: str = ""
    address: str = ""
    city: str = ""
    zip: str = ""
    latitude: float | None = None
    longitude: float | None = None
    review_url: str | None = None
    place_id: str | None = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @classmethod
    def from_remote(cls, record: dict[str, Any]) -> "Location":
        return cls(
            sys_id=str(record.get("sys_id", "")),
            name=record.get("name") or "",
            address=record.get("street") or "",
            city=record.get("city") or "",
            zip=record.get("zip") or "",
            latitude=_parse_coordinate(record.get("latitude")),
            longitude=_parse_coordinate(record.get("longitude")),
            review_url=record.get("u_google_survey_url") or None,
            place_id=record.get("u_google_place_id") or None,
        )


class NearestLocationResponse(BaseModel):
    location: Location
    distance_miles: float
    review_url: str | None = None
