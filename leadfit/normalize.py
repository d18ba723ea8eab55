"""
Normalized value types for heuristic name, phone, address and category matching.

Everything here is pure so the matching rules can be tested without a directory.
"""
import math
import re
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional, Tuple
from urllib.parse import urlparse

from rapidfuzz import utils as fuzz_utils

LEGAL_SUFFIXES = frozenset({
    "llc", "inc", "incorporated", "corp", "corporation", "co", "company",
    "ltd", "limited", "lp", "llp", "pllc", "pc", "pa", "plc", "dba",
})

# Words that never count as significant when comparing names
NAME_STOPWORDS = frozenset({"the", "and", "of", "a", "an", "at", "in", "for", "&"})

# Social networks, review sites and listing hosts; never a business's own website
BLOCKED_WEBSITE_DOMAINS = frozenset({
    "facebook.com", "fb.com", "instagram.com", "twitter.com", "x.com",
    "linkedin.com", "tiktok.com", "youtube.com", "pinterest.com",
    "yelp.com", "yellowpages.com", "bbb.org", "angi.com", "angieslist.com",
    "homeadvisor.com", "thumbtack.com", "houzz.com", "nextdoor.com",
    "mapquest.com", "manta.com", "foursquare.com", "tripadvisor.com",
    "google.com", "g.page", "business.site", "linktr.ee", "porch.com",
})

# Free site builders; a subdomain here is not a custom domain
FREE_BUILDER_DOMAINS = frozenset({
    "wixsite.com", "weebly.com", "godaddysites.com", "square.site",
    "blogspot.com", "wordpress.com", "squarespace.com", "webflow.io",
    "carrd.co", "sites.google.com", "mystrikingly.com", "jimdosite.com",
})

US_STATES = {
    "alabama": "AL", "alaska": "AK", "arizona": "AZ", "arkansas": "AR",
    "california": "CA", "colorado": "CO", "connecticut": "CT", "delaware": "DE",
    "district of columbia": "DC", "florida": "FL", "georgia": "GA", "hawaii": "HI",
    "idaho": "ID", "illinois": "IL", "indiana": "IN", "iowa": "IA", "kansas": "KS",
    "kentucky": "KY", "louisiana": "LA", "maine": "ME", "maryland": "MD",
    "massachusetts": "MA", "michigan": "MI", "minnesota": "MN", "mississippi": "MS",
    "missouri": "MO", "montana": "MT", "nebraska": "NE", "nevada": "NV",
    "new hampshire": "NH", "new jersey": "NJ", "new mexico": "NM", "new york": "NY",
    "north carolina": "NC", "north dakota": "ND", "ohio": "OH", "oklahoma": "OK",
    "oregon": "OR", "pennsylvania": "PA", "rhode island": "RI",
    "south carolina": "SC", "south dakota": "SD", "tennessee": "TN", "texas": "TX",
    "utah": "UT", "vermont": "VT", "virginia": "VA", "washington": "WA",
    "west virginia": "WV", "wisconsin": "WI", "wyoming": "WY", "puerto rico": "PR",
}


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


@dataclass(frozen=True)
class NormalizedName:
    """
    A business name reduced to comparable forms.

    Attributes:
        original: The name as given.
        loose: Lowercased, punctuation stripped, leading "the" and trailing digits removed.
            Legal suffixes are kept.
        core: ``loose`` with legal suffixes and every embedded digit removed.
        words: Significant words of ``core`` in order.
    """
    original: str
    loose: str
    core: str
    words: Tuple[str, ...]

    @classmethod
    def from_text(cls, name: Optional[str]) -> "NormalizedName":
        original = _clean(name)
        processed = fuzz_utils.default_process(original.replace(".", "").replace("&", " and "))
        tokens = processed.split()
        if tokens and tokens[0] == "the":
            tokens = tokens[1:]
        while tokens and tokens[-1].isdigit():
            tokens = tokens[:-1]
        loose = " ".join(tokens)

        core_tokens = []
        for token in tokens:
            if token in LEGAL_SUFFIXES:
                continue
            token = re.sub(r"\d+", "", token)
            if token:
                core_tokens.append(token)
        core = " ".join(core_tokens)
        words = tuple(t for t in core_tokens if t not in NAME_STOPWORDS and len(t) > 1)
        return cls(original=original, loose=loose, core=core, words=words)

    def matches(self, other: "NormalizedName") -> bool:
        """
        Fuzzy business-name agreement.

        Names agree when their cores are equal, one core contains the other, at least
        half (rounded up) of the shorter name's significant words appear in the longer
        one, or their loose forms are equal.
        """
        if self.core and other.core:
            if self.core == other.core:
                return True
            if self.core in other.core or other.core in self.core:
                return True
            if word_overlap_matches(self.words, other.words):
                return True
        return bool(self.loose) and self.loose == other.loose


def word_overlap_matches(a: Iterable[str], b: Iterable[str]) -> bool:
    a_words, b_words = list(a), list(b)
    if not a_words or not b_words:
        return False
    shorter, longer = (a_words, b_words) if len(a_words) <= len(b_words) else (b_words, a_words)
    required = math.ceil(len(shorter) * 0.5)
    longer_set = set(longer)
    hits = sum(1 for w in shorter if w in longer_set)
    return hits >= required


def significant_name_words(name: Optional[str]) -> List[str]:
    """Significant words of a name in original casing, legal suffixes removed."""
    out = []
    for raw in _clean(name).replace("&", " ").split():
        bare = re.sub(r"[^\w]", "", raw).lower()
        if not bare or bare in LEGAL_SUFFIXES or bare in NAME_STOPWORDS:
            continue
        out.append(re.sub(r"[^\w'-]", "", raw))
    return out


@dataclass(frozen=True)
class CategoryTagSet:
    """Lowercased directory category tags such as ``roofing_contractor``."""
    tags: FrozenSet[str]

    @classmethod
    def from_tags(cls, tags: Optional[Iterable[str]]) -> "CategoryTagSet":
        return cls(frozenset(_clean(t).lower() for t in (tags or []) if _clean(t)))

    def intersects(self, keywords: Iterable[str]) -> bool:
        """True if any tag equals a keyword or contains it as a ``_``-separated part."""
        for keyword in keywords:
            if keyword in self.tags:
                return True
            for tag in self.tags:
                if keyword in tag.split("_") or tag.startswith(keyword + "_") or tag.endswith("_" + keyword):
                    return True
        return False

    def __bool__(self) -> bool:
        return bool(self.tags)


def phone_digits(phone: Optional[str]) -> str:
    return re.sub(r"\D", "", _clean(phone))


def last_ten_digits(phone: Optional[str]) -> str:
    digits = phone_digits(phone)
    return digits[-10:] if len(digits) >= 10 else digits


def format_us_phone(phone: Optional[str]) -> Optional[str]:
    """``5551234567`` -> ``(555) 123-4567``; None when there are fewer than 10 digits."""
    digits = last_ten_digits(phone)
    if len(digits) != 10:
        return None
    return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"


def normalize_state(state: Optional[str]) -> str:
    s = _clean(state)
    if not s:
        return ""
    if len(s) == 2:
        return s.upper()
    return US_STATES.get(s.lower(), s.upper())


def normalize_zip(postal_code: Optional[str]) -> str:
    digits = re.sub(r"\D", "", _clean(postal_code))
    return digits[:5]


def normalize_city(city: Optional[str]) -> str:
    return " ".join(_clean(city).lower().replace(".", "").split())


def cities_match(a: Optional[str], b: Optional[str]) -> bool:
    """Substring-tolerant comparison: "Austin" agrees with "Austin TX"."""
    ca, cb = normalize_city(a), normalize_city(b)
    if not ca or not cb:
        return False
    return ca == cb or ca in cb or cb in ca


def extract_domain(url: Optional[str]) -> str:
    """Host of a URL, lowercased, with protocol, ``www.``, port and path removed."""
    u = _clean(url)
    if not u:
        return ""
    if "://" not in u:
        u = "http://" + u
    try:
        host = urlparse(u).hostname or ""
    except ValueError:
        return ""
    host = host.lower().rstrip(".")
    if host.startswith("www."):
        host = host[4:]
    return host


def _domain_in(host: str, domains: Iterable[str]) -> bool:
    return any(host == d or host.endswith("." + d) for d in domains)


def is_blocked_website_domain(url: Optional[str]) -> bool:
    host = extract_domain(url)
    return bool(host) and _domain_in(host, BLOCKED_WEBSITE_DOMAINS)


def is_free_builder_domain(url: Optional[str]) -> bool:
    host = extract_domain(url)
    return bool(host) and _domain_in(host, FREE_BUILDER_DOMAINS)


def filter_business_website(url: Optional[str]) -> Optional[str]:
    """Drop social/directory URLs; they are listings, not the business's own site."""
    u = _clean(url)
    if not u or is_blocked_website_domain(u):
        return None
    return u


def name_from_domain(url: Optional[str]) -> str:
    """``https://www.abc-roofing.com`` -> ``abc roofing``."""
    host = extract_domain(url)
    if not host:
        return ""
    label = host.split(".")[0]
    label = re.sub(r"[-_]+", " ", label)
    label = re.sub(r"(?<=[a-z])(?=\d)|(?<=\d)(?=[a-z])", " ", label)
    return " ".join(label.split())
