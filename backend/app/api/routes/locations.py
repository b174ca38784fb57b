from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...dependencies import get_record_client
from ...schemas import Location, NearestLocationResponse
from ...services.geolocation import nearest_location_with_distance
from ...services.records import RecordLifecycleClient
from ...services.review_links import get_review_url

router = APIRouter()


@router.get("/", response_model=list[Location])
async def list_locations(client: RecordLifecycleClient = Depends(get_record_client)) -> list[Location]:
    return await client.fetch_locations()


@router.get("/nearest", response_model=NearestLocationResponse)
async def nearest_location(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    client: RecordLifecycleClient = Depends(get_record_client),
) -> NearestLocationResponse:
    """Nearest facility to the given point, with its distance in miles and review link."""
    locations = await client.fetch_locations()
    match = nearest_location_with_distance(latitude, longitude, locations)
    if match is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No facility with coordinates found.")

    location, distance = match
    return NearestLocationResponse(
        location=location,
        distance_miles=round(distance, 2),
        review_url=get_review_url(location),
    )
