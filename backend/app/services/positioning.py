from typing import Protocol

from ..schemas.place import Coordinates


class PositionProvider(Protocol):
    async def current_position(self) -> Coordinates | None:
        """Single-shot device position, or None when location permission was not granted."""
        ...


class StaticPositionProvider:
    """Position reported by the kiosk front end after it resolved the device permission."""

    def __init__(self, coordinates: Coordinates | None) -> None:
        self._coordinates = coordinates

    async def current_position(self) -> Coordinates | None:
        return self._coordinates
