from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from core.deps import get_geo_matcher
from utils.geofence import GeoMatcher

router = APIRouter()

# --- Pydantic Models for Response ---

class OfficeGeofenceResponse(BaseModel):
    office_id: str
    latitude: float
    longitude: float
    radius_km: float

# --- API Endpoints ---

@router.get("", response_model=List[OfficeGeofenceResponse])
def list_offices(geo_matcher: GeoMatcher = Depends(get_geo_matcher)):
    """
    All configured offices in the order shared locations are matched against them.
    """
    return [
        OfficeGeofenceResponse(
            office_id=office.id,
            latitude=office.latitude,
            longitude=office.longitude,
            radius_km=office.radius_km,
        )
        for office in geo_matcher.offices
    ]


@router.get("/{office_id}/geofence", response_model=OfficeGeofenceResponse)
def get_office_geofence(
    office_id: str,
    geo_matcher: GeoMatcher = Depends(get_geo_matcher),
):
    """
    Retrieve the geofence information (latitude, longitude, radius) for a specific office.
    """
    office = geo_matcher.get(office_id)

    if not office:
        raise HTTPException(status_code=404, detail=f"Office with ID {office_id} not found.")

    return OfficeGeofenceResponse(
        office_id=office.id,
        latitude=office.latitude,
        longitude=office.longitude,
        radius_km=office.radius_km,
    )
