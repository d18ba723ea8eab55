from typing import Optional

from loguru import logger

from leadfit.models import CandidateProfile, LocationClass
from leadfit.normalize import CategoryTagSet

RESIDENTIAL_TAGS = (
    "lodging", "campground", "rv_park", "hotel", "motel", "apartment",
    "apartment_building", "apartment_complex", "condominium_complex",
    "housing_complex", "bed_and_breakfast", "guest_house", "hostel",
    "private_guest_room", "cottage", "mobile_home_park", "residence",
)

STOREFRONT_TAGS = (
    "store", "shop", "retail", "boutique", "shopping_mall", "supermarket",
    "grocery_or_supermarket", "grocery_store", "convenience_store", "market",
    "restaurant", "cafe", "coffee_shop", "bar", "bakery", "meal_takeaway",
    "meal_delivery", "salon", "beauty_salon", "hair_care", "hair_salon",
    "barber_shop", "nail_salon", "spa", "gym", "fitness_center",
    "car_dealer", "auto_dealer", "florist", "pharmacy", "drugstore",
    "liquor_store", "pet_store", "bicycle_store", "jewelry_store",
    "clothing_store", "shoe_store", "furniture_store", "hardware_store",
    "home_goods_store", "electronics_store", "book_store", "laundry",
)

OFFICE_TAGS = (
    "doctor", "dentist", "physiotherapist", "hospital", "medical_lab",
    "medical_clinic", "health", "veterinary_care", "lawyer", "attorney",
    "legal_services", "accounting", "accountant", "finance", "bank",
    "insurance_agency", "real_estate_agency", "real_estate_agent",
    "car_repair", "auto_repair", "car_wash", "storage", "self_storage",
    "moving_company", "travel_agency", "consultant", "corporate_office",
    "school", "church", "local_government_office",
)

CONTRACTOR_TAGS = (
    "general_contractor", "contractor", "plumber", "electrician", "roofing",
    "roofing_contractor", "landscaper", "landscaping", "lawn_care",
    "house_cleaning_service", "cleaning_service", "cleaner", "handyman",
    "painter", "locksmith", "pest_control", "hvac_contractor", "carpenter",
    "flooring_contractor", "pool_cleaning_service", "tree_service",
    "window_cleaning_service", "pressure_washing_service",
)


def has_fixed_base(candidate: CandidateProfile) -> bool:
    """Operational with a formatted address."""
    return bool(candidate.is_operational and (candidate.formatted_address or "").strip())


def classify_location(candidate: Optional[CandidateProfile]) -> LocationClass:
    """
    Classify where a business physically operates.

    The explicit service-area flag is checked before any tag so a contractor tagged
    like a shop still comes out as service_area. After that, the first tag list that
    intersects wins: residential, storefront, office, contractor.

    Args:
        candidate (CandidateProfile): Matched directory profile, or None.

    Returns:
        LocationClass: One of storefront, office, service_area, residential, unknown.
    """
    if candidate is None:
        return LocationClass.UNKNOWN

    tags = CategoryTagSet.from_tags(candidate.types)

    if candidate.is_service_area:
        result = LocationClass.SERVICE_AREA
    elif tags.intersects(RESIDENTIAL_TAGS):
        result = LocationClass.RESIDENTIAL
    elif tags.intersects(STOREFRONT_TAGS):
        result = LocationClass.STOREFRONT
    elif tags.intersects(OFFICE_TAGS):
        result = LocationClass.OFFICE
    elif tags.intersects(CONTRACTOR_TAGS):
        # Review volume is not consulted; operational status plus a formatted address is
        # what marks a fixed base. Without one, assume home-based
        result = LocationClass.OFFICE if has_fixed_base(candidate) else LocationClass.SERVICE_AREA
    elif has_fixed_base(candidate):
        result = LocationClass.OFFICE
    else:
        result = LocationClass.UNKNOWN

    logger.debug(
        f"🏷️ {candidate.place_id} types={sorted(tags.tags)} "
        f"service_area={candidate.is_service_area} -> {result.value}"
    )
    return result
