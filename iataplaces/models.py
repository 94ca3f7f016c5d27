"""Airport record type."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Airport:
    """One row of the OurAirports airports.csv file."""

    id: int
    iata_code: str
    ident: str = ""
    type: str = ""
    name: str = ""
    latitude_deg: float = 0.0
    longitude_deg: float = 0.0
    elevation_ft: Optional[int] = None
    continent: str = ""
    country_name: str = ""
    iso_country: str = ""
    region_name: str = ""
    iso_region: str = ""
    local_region: str = ""
    municipality: str = ""
    scheduled_service: bool = False
    gps_code: str = ""
    icao_code: str = ""
    local_code: str = ""
    home_link: str = ""
    wikipedia_link: str = ""
    keywords: str = ""
    score: Optional[int] = None
    last_updated: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if self.last_updated is not None:
            data["last_updated"] = self.last_updated.isoformat()
        return data
