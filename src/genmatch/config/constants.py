"""Reference tables for name matching, validation and scoring.

These tables are hand-curated and intentionally small. Every consumer takes
its table as a constructor argument defaulting to the values here, so callers
can extend or replace them without touching the algorithms.
"""

# =============================================================================
# NAME TABLES
# =============================================================================

# Formal given name -> common nicknames
NICKNAMES: dict[str, list[str]] = {
    # Male names
    "alexander": ["alex", "al", "sandy", "xander"],
    "andrew": ["andy", "drew", "andre"],
    "anthony": ["tony", "ant", "antonio"],
    "benjamin": ["ben", "benny", "benji"],
    "charles": ["charlie", "chuck", "chas"],
    "christopher": ["chris", "kit", "topher"],
    "daniel": ["dan", "danny", "dane"],
    "david": ["dave", "davey", "davy"],
    "edward": ["ed", "eddie", "ted", "teddy"],
    "frederick": ["fred", "freddy", "fritz"],
    "gregory": ["greg", "gregg"],
    "henry": ["harry", "hank", "hal"],
    "james": ["jim", "jimmy", "jamie", "jack"],
    "john": ["jack", "johnny", "jon"],
    "joseph": ["joe", "joey", "jose"],
    "joshua": ["josh"],
    "lawrence": ["larry", "laurie"],
    "matthew": ["matt", "matty"],
    "michael": ["mike", "mickey", "mick"],
    "nicholas": ["nick", "nicky", "cole"],
    "patrick": ["pat", "paddy", "rick"],
    "peter": ["pete", "petey"],
    "richard": ["rick", "ricky", "dick", "rich"],
    "robert": ["bob", "bobby", "rob", "robby", "robbie", "bert"],
    "ronald": ["ron", "ronny", "ronnie"],
    "stephen": ["steve", "stevie", "stefan", "steven", "stephan"],
    "steven": ["steve", "stevie"],
    "thomas": ["tom", "tommy", "thom"],
    "timothy": ["tim", "timmy"],
    "william": ["bill", "billy", "will", "willy", "willie", "liam"],
    # Female names
    "alexandra": ["alex", "sandy", "alexa"],
    "catherine": ["kate", "katie", "cathy", "kitty"],
    "christina": ["chris", "christie", "tina"],
    "deborah": ["debbie", "deb", "debra"],
    "elizabeth": ["liz", "lizzie", "beth", "betty", "betsy", "eliza", "libby"],
    "jennifer": ["jen", "jenny", "jenn"],
    "jessica": ["jess", "jessie"],
    "katherine": ["kate", "katie", "kathy", "kitty"],
    "kimberly": ["kim", "kimmy"],
    "margaret": ["maggie", "meg", "peggy", "margie"],
    "patricia": ["pat", "patty", "tricia"],
    "rebecca": ["becky", "becca", "beck"],
    "stephanie": ["steph", "stefanie"],
    "susan": ["sue", "susie", "suzy"],
    "victoria": ["vicky", "vikki", "tori"],
}

# Original-language given name -> anglicized forms used after immigration
CULTURAL_VARIANTS: dict[str, list[str]] = {
    # Polish
    "stanislaw": ["stanley", "stan"],
    "wladyslaw": ["walter", "walt"],
    "kazimierz": ["casimir", "casey"],
    "wojciech": ["albert", "wojtek"],
    "jan": ["john", "johnny"],
    # German
    "johann": ["john", "johnny"],
    "wilhelm": ["william", "bill", "will"],
    "friedrich": ["frederick", "fred"],
    "heinrich": ["henry", "harry"],
    # Italian
    "giuseppe": ["joseph", "joe"],
    "giovanni": ["john", "johnny"],
    "antonio": ["anthony", "tony"],
    "francesco": ["francis", "frank"],
    # Irish
    "padraig": ["patrick", "pat"],
    "sean": ["john", "johnny"],
    "siobhan": ["joan", "joanne"],
    # Hebrew
    "moshe": ["moses", "morris", "moe"],
    "abraham": ["abe", "abram"],
    "isaac": ["ike"],
    "jacob": ["jake", "jack"],
}

# Surname -> recorded spelling variants
SPELLING_VARIANTS: dict[str, list[str]] = {
    "smith": ["smyth", "smythe"],
    "johnson": ["johnsen", "johnston", "jonson"],
    "brown": ["browne"],
    "davis": ["davies", "davys"],
    "miller": ["muller", "mueller"],
    "wilson": ["willson"],
    "moore": ["more", "mohr"],
    "taylor": ["tailor", "tayler"],
    "anderson": ["andersen"],
    "jackson": ["jakson"],
    # Eastern European
    "kowalski": ["kowalsky", "kowalczyk"],
    "nowak": ["nowack", "novak"],
    "wojcik": ["wojczik", "woycik"],
}

# Letter-group substitutions that produce phonetically equivalent spellings
PHONETIC_SUBSTITUTIONS: list[tuple[str, str]] = [
    ("ph", "f"),
    ("ck", "k"),
    ("c", "k"),
    ("qu", "kw"),
    ("x", "ks"),
    ("z", "s"),
    ("th", "t"),
    ("gh", "g"),
]

# Surname substitutions used when generating search variants (applied once each)
SURNAME_SEARCH_SUBSTITUTIONS: list[tuple[str, str]] = [
    ("ph", "f"), ("f", "ph"), ("c", "k"), ("k", "c"),
    ("ie", "y"), ("y", "ie"), ("sen", "son"), ("son", "sen"),
    ("tz", "ts"), ("ts", "tz"), ("w", "v"), ("v", "w"),
]

NAME_TITLES = ("mr", "mrs", "ms", "dr", "prof", "rev", "sir", "lady")
NAME_SUFFIXES = ("jr", "sr", "ii", "iii", "iv", "esq")

# Words that introduce a birth surname inside a family-name string
MAIDEN_NAME_INDICATORS = ("maiden name", "maiden", "née", "nee", "born", "formerly")

# =============================================================================
# LOCATION TABLES
# =============================================================================

# Full place name -> equivalent abbreviations (compared per comma-separated part)
LOCATION_VARIANTS: dict[str, list[str]] = {
    "ontario": ["ont", "on"],
    "canada": ["can", "ca"],
    "united states": ["usa", "us", "america"],
    "pennsylvania": ["pa", "penn"],
    "new york": ["ny"],
}

# Abbreviations substituted into location strings when building search variants
LOCATION_SEARCH_ABBREVIATIONS: dict[str, str] = {
    "Ontario": "ON",
    "Canada": "CAN",
    "United States": "USA",
    "Pennsylvania": "PA",
    "New York": "NY",
}

# Historical place name -> (first valid year, last valid year, modern name)
PLACE_NAME_VALIDITY: dict[str, tuple[int, int, str]] = {
    "danzig": (1200, 1945, "Gdansk, Poland"),
    "königsberg": (1255, 1946, "Kaliningrad, Russia"),
    "konigsberg": (1255, 1946, "Kaliningrad, Russia"),
    "constantinople": (330, 1930, "Istanbul, Turkey"),
}

# =============================================================================
# HISTORICAL CONTEXT
# =============================================================================

HISTORICAL_EVENTS: dict[int, str] = {
    1914: "World War I begins",
    1918: "World War I ends",
    1929: "Great Depression begins",
    1939: "World War II begins",
    1945: "World War II ends",
    1969: "Moon landing",
}

HISTORICAL_CONTEXT_WINDOW_YEARS = 5

# =============================================================================
# SOURCE RELIABILITY
# =============================================================================

# Source types attached to a subject's own evidence (used for data quality)
EVIDENCE_RELIABILITY: dict[str, float] = {
    "government_record": 0.95,
    "church_record": 0.90,
    "census": 0.85,
    "newspaper": 0.75,
    "family_bible": 0.70,
    "oral_history": 0.50,
    "unknown": 0.30,
}

# Candidate source name -> baseline reliability for record-quality scoring
CANDIDATE_SOURCE_RELIABILITY: dict[str, float] = {
    "FamilySearch": 0.90,
    "Ancestry": 0.85,
    "FindAGrave": 0.80,
    "Census": 0.90,
    "Vital Records": 0.95,
    "Newspaper Archives": 0.70,
    "Chronicling America": 0.70,
    "WikiTree": 0.60,
    "Family Trees": 0.60,
}
DEFAULT_SOURCE_RELIABILITY = 0.5

# =============================================================================
# PLACEHOLDER DENYLIST
# =============================================================================

# Lowercase substrings that mark a candidate as demo or test data
PLACEHOLDER_PATTERNS: list[str] = [
    "mock cemetery",
    "mock city",
    "mock county",
    "test person",
    "sample record",
    "lorem ipsum",
    "john doe",
    "jane doe",
    "example.com",
    "placeholder",
]

# =============================================================================
# SEARCH DEFAULTS
# =============================================================================

DEFAULT_RECORD_TYPES: list[str] = [
    "census records",
    "birth certificates",
    "death certificates",
    "marriage records",
    "immigration records",
    "military records",
    "city directories",
    "newspaper obituaries",
]
