from sqlmodel import SQLModel, Field

# Defines an Office w/ Circular Geofence Used to Validate Shared Locations

class Office(SQLModel, table=True):
    id: str = Field(primary_key=True, description="Unique office name, e.g. Head_Office")
    latitude: float = Field(..., description="Latitude of office center")
    longitude: float = Field(..., description="Longitude of office center")
    radius_km: float = Field(..., description="Allowed clock radius in kilometres")
    position: int = Field(default=0, description="Match order when geofences overlap")
