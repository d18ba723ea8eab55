"""Static city -> coordinate lookup used to bias directory searches toward a metro."""
from typing import Dict, Optional, Tuple

from leadfit.config import GEO_BIAS_RADIUS_METERS
from leadfit.models import GeoBias
from leadfit.normalize import normalize_city, normalize_state

METRO_COORDINATES: Dict[Tuple[str, str], Tuple[float, float]] = {
    ("new york", "NY"): (40.7128, -74.0060),
    ("brooklyn", "NY"): (40.6782, -73.9442),
    ("los angeles", "CA"): (34.0522, -118.2437),
    ("chicago", "IL"): (41.8781, -87.6298),
    ("houston", "TX"): (29.7604, -95.3698),
    ("phoenix", "AZ"): (33.4484, -112.0740),
    ("philadelphia", "PA"): (39.9526, -75.1652),
    ("san antonio", "TX"): (29.4241, -98.4936),
    ("san diego", "CA"): (32.7157, -117.1611),
    ("dallas", "TX"): (32.7767, -96.7970),
    ("fort worth", "TX"): (32.7555, -97.3308),
    ("austin", "TX"): (30.2672, -97.7431),
    ("san jose", "CA"): (37.3382, -121.8863),
    ("san francisco", "CA"): (37.7749, -122.4194),
    ("jacksonville", "FL"): (30.3322, -81.6557),
    ("columbus", "OH"): (39.9612, -82.9988),
    ("charlotte", "NC"): (35.2271, -80.8431),
    ("indianapolis", "IN"): (39.7684, -86.1581),
    ("seattle", "WA"): (47.6062, -122.3321),
    ("denver", "CO"): (39.7392, -104.9903),
    ("washington", "DC"): (38.9072, -77.0369),
    ("boston", "MA"): (42.3601, -71.0589),
    ("nashville", "TN"): (36.1627, -86.7816),
    ("memphis", "TN"): (35.1495, -90.0490),
    ("detroit", "MI"): (42.3314, -83.0458),
    ("oklahoma city", "OK"): (35.4676, -97.5164),
    ("portland", "OR"): (45.5152, -122.6784),
    ("las vegas", "NV"): (36.1699, -115.1398),
    ("louisville", "KY"): (38.2527, -85.7585),
    ("baltimore", "MD"): (39.2904, -76.6122),
    ("milwaukee", "WI"): (43.0389, -87.9065),
    ("albuquerque", "NM"): (35.0844, -106.6504),
    ("tucson", "AZ"): (32.2226, -110.9747),
    ("fresno", "CA"): (36.7378, -119.7871),
    ("sacramento", "CA"): (38.5816, -121.4944),
    ("kansas city", "MO"): (39.0997, -94.5786),
    ("atlanta", "GA"): (33.7490, -84.3880),
    ("miami", "FL"): (25.7617, -80.1918),
    ("orlando", "FL"): (28.5383, -81.3792),
    ("tampa", "FL"): (27.9506, -82.4572),
    ("raleigh", "NC"): (35.7796, -78.6382),
    ("minneapolis", "MN"): (44.9778, -93.2650),
    ("cleveland", "OH"): (41.4993, -81.6944),
    ("new orleans", "LA"): (29.9511, -90.0715),
    ("st louis", "MO"): (38.6270, -90.1994),
    ("pittsburgh", "PA"): (40.4406, -79.9959),
    ("cincinnati", "OH"): (39.1031, -84.5120),
    ("salt lake city", "UT"): (40.7608, -111.8910),
    ("san juan", "PR"): (18.4655, -66.1057),
    ("honolulu", "HI"): (21.3069, -157.8583),
}

_CITY_ALIASES = {
    "nyc": "new york",
    "new york city": "new york",
    "la": "los angeles",
    "saint louis": "st louis",
    "sf": "san francisco",
}


def _city_key(city: Optional[str]) -> str:
    key = normalize_city(city)
    return _CITY_ALIASES.get(key, key)


def lookup_city(city: Optional[str], state: Optional[str] = None) -> Optional[Tuple[float, float]]:
    """
    Resolve a city to metro-center coordinates.

    Args:
        city: City name in any casing.
        state: State code or full state name. When absent, a city-only match is
            used if exactly one metro carries that name.

    Returns:
        Optional[Tuple[float, float]]: (latitude, longitude), or None when unknown.
    """
    key = _city_key(city)
    if not key:
        return None
    st = normalize_state(state)
    if st:
        return METRO_COORDINATES.get((key, st))
    hits = [coords for (c, _), coords in METRO_COORDINATES.items() if c == key]
    return hits[0] if len(hits) == 1 else None


def bias_for(city: Optional[str], state: Optional[str] = None) -> Optional[GeoBias]:
    coords = lookup_city(city, state)
    if coords is None:
        return None
    return GeoBias(latitude=coords[0], longitude=coords[1], radius_meters=GEO_BIAS_RADIUS_METERS)
