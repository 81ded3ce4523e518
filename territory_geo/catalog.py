"""
Static boundary table: subdivisions (US states + DC), the territories built
from them, and the partition rule for the one subdivision split between two
territories.

Design:
  - Every subdivision carries an axis-aligned bounding box. Boxes of
    neighbouring subdivisions overlap; the coordinate resolver breaks those
    ties, the table does not.
  - Territories list their member subdivisions in order. A subdivision that
    appears in two territories must have a PartitionRule deciding between them.
  - Partition sub-areas (counties and cities) are matched as whole words,
    longest first, so "West Hollywood" is tried before "Hollywood".
  - The catalog is built once and never mutated. Share it by reference.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Iterable, Optional


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def contains(self, lat: float, lng: float) -> bool:
        return self.min_lat <= lat <= self.max_lat and self.min_lng <= lng <= self.max_lng

    @property
    def centroid(self) -> tuple[float, float]:
        return (self.min_lat + self.max_lat) / 2, (self.min_lng + self.max_lng) / 2


@dataclass(frozen=True)
class Subdivision:
    name: str
    abbreviations: tuple[str, ...]
    bbox: BoundingBox
    aliases: tuple[str, ...] = ()

    @property
    def full_names(self) -> tuple[str, ...]:
        return (self.name,) + self.aliases


# Street suffixes that turn a place name into a street name ("Georgia St")
STREET_SUFFIXES = frozenset({
    "st", "street", "ave", "avenue", "rd", "road", "blvd", "boulevard",
    "dr", "drive", "ln", "lane", "way", "ct", "court", "pl", "place",
})

_STREET_SUFFIX_RE = re.compile(r" (?P<word>[A-Za-z]+)\.?(?![A-Za-z])")


def followed_by_street_suffix(text: str, end: int) -> bool:
    """True if text[end:] starts with a space and a street-suffix token."""
    m = _STREET_SUFFIX_RE.match(text, end)
    return bool(m and m.group("word").lower() in STREET_SUFFIXES)


def whole_word_pattern(phrase: str, ignore_case: bool = True) -> re.Pattern:
    """Compile phrase so it only matches between non-letter characters."""
    flags = re.IGNORECASE if ignore_case else 0
    return re.compile(r"(?<![A-Za-z])" + re.escape(phrase) + r"(?![A-Za-z])", flags)


@dataclass(frozen=True)
class PartitionRule:
    """How a split subdivision is divided between two territories."""
    subdivision: str
    northern: str
    southern: str
    latitude_threshold: float
    # lowercase county name (without "county") -> territory
    counties: dict[str, str] = field(default_factory=dict, hash=False)
    # lowercase city name -> territory
    cities: dict[str, str] = field(default_factory=dict, hash=False)
    _patterns: tuple = field(default=(), init=False, repr=False, compare=False, hash=False)

    def __post_init__(self):
        entries = [(f"{c} county", t) for c, t in self.counties.items()]
        entries += list(self.cities.items())
        entries.sort(key=lambda e: len(e[0]), reverse=True)
        compiled = tuple((name, t, whole_word_pattern(name)) for name, t in entries)
        object.__setattr__(self, "_patterns", compiled)

    @property
    def default(self) -> str:
        return self.northern

    @property
    def territories(self) -> tuple[str, str]:
        return self.northern, self.southern

    def by_latitude(self, lat: float) -> str:
        # On the threshold itself the point belongs to the northern side
        return self.northern if lat >= self.latitude_threshold else self.southern

    def by_sub_area(self, text: Optional[str]) -> Optional[tuple[str, str]]:
        """
        Find a county or city named in text.
        Returns (matched sub-area, territory) or None.
        """
        if not text or not text.strip():
            return None

        # A bare county name may be one comma-separated part ("Tulare, Lindsay")
        for part in text.split(","):
            bare = re.sub(r"\s+county$", "", part.strip().lower())
            if bare in self.counties:
                return bare, self.counties[bare]

        for name, territory, pattern in self._patterns:
            for m in pattern.finditer(text):
                if followed_by_street_suffix(text, m.end()):
                    continue
                return name, territory
        return None


@dataclass(frozen=True)
class Territory:
    name: str
    members: tuple[str, ...]
    accepts_international: bool = False


# ══════════════════════════════════════════════════════════════════════
# BOUNDARY DATA
# ══════════════════════════════════════════════════════════════════════

# US Census Bureau NAD83 state extents. Alaska is cut at the antimeridian
# so its box does not wrap the globe.
_SUBDIVISIONS: list[Subdivision] = []


def _add(name: str, abbrevs: Iterable[str], min_lat: float, max_lat: float,
         min_lng: float, max_lng: float, aliases: Iterable[str] = ()):
    _SUBDIVISIONS.append(Subdivision(
        name=name,
        abbreviations=tuple(abbrevs),
        bbox=BoundingBox(min_lat, max_lat, min_lng, max_lng),
        aliases=tuple(aliases),
    ))


_add("Alabama", ["AL"], 30.223334, 35.008028, -88.473227, -84.88908)
_add("Alaska", ["AK"], 51.214183, 71.365162, -179.148909, -129.979511)
_add("Arizona", ["AZ"], 31.332177, 37.00426, -114.81651, -109.045223)
_add("Arkansas", ["AR"], 33.004106, 36.4996, -94.617919, -89.644395)
_add("California", ["CA"], 32.534156, 42.009518, -124.409591, -114.131211)
_add("Colorado", ["CO"], 36.992426, 41.003444, -109.060253, -102.041524)
_add("Connecticut", ["CT"], 40.980144, 42.050587, -73.727775, -71.786994)
_add("Delaware", ["DE"], 38.451013, 39.839007, -75.788658, -75.048939)
_add("Florida", ["FL"], 24.523096, 31.000888, -87.634938, -80.031362)
_add("Georgia", ["GA"], 30.357851, 35.000659, -85.605165, -80.839729)
_add("Hawaii", ["HI"], 18.910361, 28.402123, -178.334698, -154.806773)
_add("Idaho", ["ID"], 41.988057, 49.001146, -117.243027, -111.043564)
_add("Illinois", ["IL"], 36.970298, 42.508481, -91.513079, -87.494756)
_add("Indiana", ["IN"], 37.771742, 41.760592, -88.09776, -84.784579)
_add("Iowa", ["IA"], 40.375501, 43.501196, -96.639704, -90.140061)
_add("Kansas", ["KS"], 36.993016, 40.003162, -102.051744, -94.588413)
_add("Kentucky", ["KY"], 36.497129, 39.147458, -89.571509, -81.964971)
_add("Louisiana", ["LA"], 28.928609, 33.019457, -94.043147, -88.817017)
_add("Maine", ["ME"], 43.058401, 47.459686, -71.083924, -66.949895)
_add("Maryland", ["MD"], 37.911717, 39.723043, -79.487651, -75.048939)
_add("Massachusetts", ["MA"], 41.237964, 42.886589, -73.508142, -69.928393)
_add("Michigan", ["MI"], 41.696118, 48.2388, -90.418136, -82.413474)
_add("Minnesota", ["MN"], 43.499356, 49.384358, -97.239209, -89.491739)
_add("Mississippi", ["MS"], 30.173943, 34.996052, -91.655009, -88.097888)
_add("Missouri", ["MO"], 35.995683, 40.61364, -95.774704, -89.098843)
_add("Montana", ["MT"], 44.358221, 49.00139, -116.050003, -104.039138)
_add("Nebraska", ["NE"], 39.999998, 43.001708, -104.053514, -95.30829)
_add("Nevada", ["NV"], 35.001857, 42.002207, -120.005746, -114.039648)
_add("New Hampshire", ["NH"], 42.69699, 45.305476, -72.557247, -70.610621)
_add("New Jersey", ["NJ"], 38.928519, 41.357423, -75.559614, -73.893979)
_add("New Mexico", ["NM"], 31.332301, 37.000232, -109.050173, -103.001964)
_add("New York", ["NY"], 40.496103, 45.01585, -79.762152, -71.856214)
_add("North Carolina", ["NC"], 33.842316, 36.588117, -84.321869, -75.460621)
_add("North Dakota", ["ND"], 45.935054, 49.000574, -104.0489, -96.554507)
_add("Ohio", ["OH"], 38.403202, 42.327132, -84.820159, -80.518693)
_add("Oklahoma", ["OK"], 33.615833, 37.002206, -103.002565, -94.430662)
_add("Oregon", ["OR"], 41.991794, 46.292035, -124.566244, -116.463504)
_add("Pennsylvania", ["PA"], 39.7198, 42.26986, -80.519891, -74.689516)
_add("Rhode Island", ["RI"], 41.146339, 42.018798, -71.862772, -71.12057)
_add("South Carolina", ["SC"], 32.0346, 35.215402, -83.35391, -78.54203)
_add("South Dakota", ["SD"], 42.479635, 45.94545, -104.057698, -96.436589)
_add("Tennessee", ["TN"], 34.982972, 36.678118, -90.310298, -81.6469)
_add("Texas", ["TX"], 25.837377, 36.500704, -106.645646, -93.508292)
_add("Utah", ["UT"], 36.997968, 42.001567, -114.052962, -109.041058)
_add("Vermont", ["VT"], 42.726853, 45.016659, -73.43774, -71.464555)
_add("Virginia", ["VA"], 36.540738, 39.466012, -83.675395, -75.242266)
_add("Washington", ["WA"], 45.543541, 49.002494, -124.848974, -116.915989)
_add("West Virginia", ["WV"], 37.201483, 40.638801, -82.644739, -77.719519)
_add("Wisconsin", ["WI"], 42.491983, 47.080621, -92.888114, -86.805415)
_add("Wyoming", ["WY"], 40.994746, 45.005904, -111.056888, -104.05216)
_add("District of Columbia", ["DC"], 38.791645, 38.99511, -77.119759, -76.909395,
     aliases=["Washington DC", "Washington, DC", "Washington D.C.", "Washington, D.C."])


# ── Territories ───────────────────────────────────────────────────────

CALIFORNIA_NORTH = "California North Central"
CALIFORNIA_SOUTH = "California South"
HAWAII_INTERNATIONAL = "Hawaii and International"

_TERRITORIES: list[Territory] = [
    # Single-subdivision territories
    Territory("Alabama", ("Alabama",)),
    Territory("Florida", ("Florida",)),
    Territory("Georgia", ("Georgia",)),
    Territory("Illinois", ("Illinois",)),
    Territory("Indiana", ("Indiana",)),
    Territory("Michigan", ("Michigan",)),
    Territory("New Jersey", ("New Jersey",)),
    Territory("New York", ("New York",)),
    Territory("Ohio", ("Ohio",)),
    Territory("Wisconsin", ("Wisconsin",)),
    # Multi-subdivision territories
    Territory("Carolina", ("North Carolina", "South Carolina")),
    Territory("DMV", ("Delaware", "Maryland", "Virginia", "District of Columbia")),
    Territory("Iowa-Nebraska", ("Iowa", "Nebraska")),
    Territory("Minnesota-Dakotas", ("Minnesota", "North Dakota", "South Dakota")),
    Territory("Missouri Valley", ("Missouri", "Kansas")),
    Territory("Mountain North", ("Montana", "Idaho", "Colorado", "Wyoming")),
    Territory("Mountain South", ("Utah", "Arizona", "New Mexico", "Nevada")),
    Territory("New England", ("Maine", "New Hampshire", "Vermont", "Massachusetts",
                              "Rhode Island", "Connecticut")),
    Territory("Pacific Northwest", ("Washington", "Oregon", "Alaska")),
    Territory("Pennsylvania-West Virginia", ("Pennsylvania", "West Virginia")),
    Territory("Southern", ("Louisiana", "Mississippi", "Arkansas")),
    Territory("Tennessee-Kentucky", ("Tennessee", "Kentucky")),
    Territory("Texas-Oklahoma", ("Texas", "Oklahoma")),
    # California is split between two territories
    Territory(CALIFORNIA_NORTH, ("California",)),
    Territory(CALIFORNIA_SOUTH, ("California",)),
    Territory(HAWAII_INTERNATIONAL, ("Hawaii",), accepts_international=True),
]


# ── California partition ──────────────────────────────────────────────

_CA_NORTH_COUNTIES = [
    # Bay Area
    "alameda", "contra costa", "marin", "napa", "san francisco",
    "san mateo", "santa clara", "solano", "sonoma",
    # Central Coast
    "monterey", "san benito", "santa cruz",
    # Northern Central Valley
    "merced", "stanislaus", "san joaquin", "calaveras", "tuolumne", "mariposa",
    # Sacramento Valley and Sierra
    "sacramento", "yolo", "sutter", "yuba", "placer", "el dorado",
    "amador", "alpine", "nevada", "sierra", "plumas",
    # Far north
    "butte", "colusa", "glenn", "tehama", "shasta", "lassen", "modoc",
    "siskiyou", "del norte", "humboldt", "trinity", "mendocino", "lake",
]

_CA_SOUTH_COUNTIES = [
    "los angeles", "orange", "riverside", "san bernardino", "imperial",
    "ventura", "santa barbara", "san diego",
    # Southern Central Valley
    "kern", "tulare", "fresno", "kings",
    # Eastern Sierra
    "inyo", "mono",
    "san luis obispo",
]

_CA_NORTH_CITIES = [
    "san francisco", "oakland", "san jose", "fremont", "hayward", "sunnyvale",
    "santa clara", "berkeley", "daly city", "san mateo", "richmond", "vallejo",
    "concord", "fairfield", "antioch", "livermore", "santa rosa", "petaluma",
    "napa", "emeryville", "alameda", "palo alto", "mountain view", "cupertino",
    "milpitas", "union city", "sacramento", "stockton", "modesto", "salinas",
    "santa cruz", "watsonville", "monterey", "merced", "turlock", "tracy",
    "manteca", "lodi", "davis", "woodland", "yuba city", "marysville", "chico",
    "redding", "eureka", "ukiah", "elk grove", "roseville", "folsom",
]

_CA_SOUTH_CITIES = [
    # Los Angeles area
    "los angeles", "long beach", "glendale", "santa clarita", "lancaster",
    "palmdale", "pomona", "torrance", "pasadena", "hollywood", "burbank",
    "west hollywood", "north hollywood", "beverly hills", "santa monica",
    "venice", "manhattan beach", "redondo beach", "hermosa beach",
    "culver city", "inglewood", "hawthorne", "compton", "downey", "norwalk",
    "whittier", "lakewood", "cerritos", "la mirada", "woodland hills",
    "van nuys", "sherman oaks", "encino", "tarzana",
    # Orange County
    "anaheim", "santa ana", "irvine", "huntington beach", "garden grove",
    "orange", "fullerton", "costa mesa", "mission viejo", "westminster",
    "newport beach", "buena park", "tustin", "yorba linda", "san clemente",
    "laguna niguel", "lake forest", "cypress", "placentia",
    # Inland Empire
    "riverside", "san bernardino", "fontana", "moreno valley",
    "rancho cucamonga", "ontario", "corona", "victorville", "rialto", "chino",
    "chino hills", "upland", "redlands", "diamond bar", "hesperia",
    "apple valley", "colton", "yucaipa", "highland", "temecula",
    # San Diego area
    "san diego", "chula vista", "oceanside", "escondido", "carlsbad",
    "el cajon", "vista", "san marcos", "encinitas", "national city",
    "la mesa", "santee", "poway", "coronado",
    # Southern Central Coast
    "ventura", "oxnard", "thousand oaks", "simi valley", "santa barbara",
    "santa maria", "lompoc", "camarillo", "carpinteria", "goleta",
    "paso robles", "san luis obispo", "arroyo grande",
    # Southern Central Valley
    "bakersfield", "fresno", "clovis", "visalia", "hanford", "porterville",
    "delano",
]


def _sub_area_map(north: list[str], south: list[str]) -> dict[str, str]:
    mapping = {name: CALIFORNIA_NORTH for name in north}
    for name in south:
        if name in mapping:
            raise ValueError(f"sub-area {name!r} assigned to both California territories")
        mapping[name] = CALIFORNIA_SOUTH
    return mapping


_PARTITIONS: list[PartitionRule] = [
    PartitionRule(
        subdivision="California",
        northern=CALIFORNIA_NORTH,
        southern=CALIFORNIA_SOUTH,
        latitude_threshold=35.5,
        counties=_sub_area_map(_CA_NORTH_COUNTIES, _CA_SOUTH_COUNTIES),
        cities=_sub_area_map(_CA_NORTH_CITIES, _CA_SOUTH_CITIES),
    ),
]


# ══════════════════════════════════════════════════════════════════════
# CATALOG
# ══════════════════════════════════════════════════════════════════════

class Catalog:
    """
    Read-only view over subdivisions, territories and partition rules.

    Construction checks the guarantees the resolvers rely on:
      - every subdivision belongs to at least one territory,
      - a subdivision in more than one territory has a partition rule,
      - partition rules only point at territories that contain the subdivision.
    """

    def __init__(
        self,
        subdivisions: Iterable[Subdivision],
        territories: Iterable[Territory],
        partitions: Iterable[PartitionRule] = (),
    ):
        self.subdivisions: tuple[Subdivision, ...] = tuple(subdivisions)
        self.territories: tuple[Territory, ...] = tuple(territories)
        self._by_name = {s.name: s for s in self.subdivisions}
        self._territory_by_name = {t.name: t for t in self.territories}
        self._partitions = {p.subdivision: p for p in partitions}

        self._member_of: dict[str, list[str]] = {s.name: [] for s in self.subdivisions}
        for territory in self.territories:
            for member in territory.members:
                if member not in self._member_of:
                    raise ValueError(f"{territory.name} lists unknown subdivision {member!r}")
                self._member_of[member].append(territory.name)

        for name, owners in self._member_of.items():
            if not owners:
                raise ValueError(f"subdivision {name!r} belongs to no territory")
            if len(owners) > 1 and name not in self._partitions:
                raise ValueError(f"subdivision {name!r} is split without a partition rule")

        for rule in self._partitions.values():
            owners = set(self._member_of.get(rule.subdivision, ()))
            targets = set(rule.territories) | set(rule.counties.values()) | set(rule.cities.values())
            if not targets <= owners:
                raise ValueError(f"partition for {rule.subdivision!r} points outside its territories")

        self._abbreviations = {
            abbr: s.name for s in self.subdivisions for abbr in s.abbreviations
        }

    def subdivision(self, name: str) -> Optional[Subdivision]:
        return self._by_name.get(name)

    def territory(self, name: str) -> Optional[Territory]:
        return self._territory_by_name.get(name)

    def subdivision_for_abbreviation(self, abbr: str) -> Optional[str]:
        return self._abbreviations.get(abbr.upper())

    def partition_for(self, subdivision: str) -> Optional[PartitionRule]:
        return self._partitions.get(subdivision)

    def territories_for(self, subdivision: str) -> list[str]:
        return list(self._member_of.get(subdivision, ()))

    def is_split(self, subdivision: str) -> bool:
        return subdivision in self._partitions

    def territory_centroid(self, name: str) -> Optional[tuple[float, float]]:
        """Centre of the box spanning all member subdivisions."""
        territory = self.territory(name)
        if territory is None:
            return None
        boxes = [self._by_name[m].bbox for m in territory.members]
        min_lat = min(b.min_lat for b in boxes)
        max_lat = max(b.max_lat for b in boxes)
        min_lng = min(b.min_lng for b in boxes)
        max_lng = max(b.max_lng for b in boxes)
        return (min_lat + max_lat) / 2, (min_lng + max_lng) / 2


@lru_cache(maxsize=1)
def get_catalog() -> Catalog:
    """The built-in catalog, loaded once per process."""
    return Catalog(_SUBDIVISIONS, _TERRITORIES, _PARTITIONS)
