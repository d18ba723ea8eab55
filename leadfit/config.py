# leadfit/config.py
from dotenv import load_dotenv
import os

load_dotenv()

# API Keys
GOOGLE_PLACES_API_KEY = os.getenv("GOOGLE_PLACES_API_KEY")
PDL_API_KEY = os.getenv("PDL_API_KEY")

# Runtime parameters
CONCURRENCY = int(os.getenv("LEADFIT_CONCURRENCY", "5"))
MIN_REQUEST_INTERVAL_SECONDS = 1.0
REQUEST_TIMEOUT_SECONDS = 10
MAX_RETRIES = 3
BACKOFF_BASE_SECONDS = 1.0
BACKOFF_MAX_SECONDS = 10.0
GEO_BIAS_RADIUS_METERS = 50000.0
ENRICHMENT_RATE_PER_SECOND = 5
CIRCUIT_FAILURE_THRESHOLD = 5
CIRCUIT_RESET_TIMEOUT_SECONDS = 60.0
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# URLs
PLACES_SEARCH_URL = "https://places.googleapis.com/v1/places:searchText"
PLACES_DETAILS_URL = "https://places.googleapis.com/v1/places/{place_id}"
PDL_COMPANY_ENRICH_URL = "https://api.peopledatalabs.com/v5/company/enrich"
RDAP_DOMAIN_URL = "https://rdap.org/domain/{domain}"

# Field masks for the directory API
PLACES_SEARCH_FIELD_MASK = "places.id"
PLACES_DETAILS_FIELD_MASK = ",".join([
    "id",
    "displayName",
    "nationalPhoneNumber",
    "internationalPhoneNumber",
    "formattedAddress",
    "addressComponents",
    "types",
    "rating",
    "userRatingCount",
    "businessStatus",
    "pureServiceAreaBusiness",
    "websiteUri",
])

# File names
INPUT_CSV = "leads.csv"
OUTPUT_CSV = "leads_scored.csv"
