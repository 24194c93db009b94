"""Project-wide constants."""

from pathlib import Path

# -- Base client defaults ---------------------------------------------------
DEFAULT_TIMEOUT: float = 10.0
DEFAULT_MAX_ATTEMPTS: int = 3
DEFAULT_BACKOFF_BASE: float = 2.0
DEFAULT_MIN_REQUEST_INTERVAL: float = 1.0

# -- Cache ------------------------------------------------------------------
# Anchored to the project root (two levels above this package's src/ dir) so
# that a single _cache/ directory is used regardless of the working directory.
_PROJECT_ROOT: Path = Path(__file__).parent.parent.parent
DEFAULT_CACHE_DIR: Path = _PROJECT_ROOT / "_cache"
DEFAULT_CACHE_KEY: str = "radiology_ai_articles"
STALENESS_HOURS: int = 24
REFRESH_CHECK_MINUTES: int = 30

# -- PubMed / NCBI ----------------------------------------------------------
NCBI_BASE_URL: str = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils"
PUBMED_SEARCH_URL: str = f"{NCBI_BASE_URL}/esearch.fcgi"
PUBMED_SUMMARY_URL: str = f"{NCBI_BASE_URL}/esummary.fcgi"
PUBMED_FETCH_URL: str = f"{NCBI_BASE_URL}/efetch.fcgi"
PUBMED_ARTICLE_URL: str = "https://pubmed.ncbi.nlm.nih.gov"
PUBMED_DETAIL_BATCH_SIZE: int = 20
PUBMED_SEARCH_MAX_RESULTS: int = 100
PUBMED_SEARCH_PAGE_SIZE: int = 100

# -- Google Scholar ---------------------------------------------------------
SCHOLAR_SEARCH_URL: str = "https://scholar.google.com/scholar"
SCHOLAR_USER_AGENT: str = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
)

# -- Pipeline ---------------------------------------------------------------
LOOKBACK_DAYS: int = 30
PLACEHOLDER_TITLE: str = "No Title"
UNCLASSIFIED_BUCKET: str = "Unclassified"
NOT_AVAILABLE: str = "N/A"
TITLE_SIMILARITY_THRESHOLD: float = 0.8
WEEKLY_PERIODS: int = 12

# -- Radiology AI domain data -----------------------------------------------
CLINICAL_RADIOLOGY_JOURNALS: list[str] = [
    "Radiology",
    "European Radiology",
    "American Journal of Roentgenology",
    "European Journal of Radiology",
    "Academic Radiology",
    "Journal of Digital Imaging",
    "Clinical Radiology",
    "British Journal of Radiology",
    "Radiographics",
    "Journal of the American College of Radiology",
    "Investigative Radiology",
    "Abdominal Radiology",
    "Neuroradiology",
    "Pediatric Radiology",
    "CardioVascular and Interventional Radiology",
    "Emergency Radiology",
]

AI_KEYWORDS: list[str] = [
    "artificial intelligence",
    "machine learning",
    "deep learning",
    "neural network",
]

IMAGING_KEYWORDS: list[str] = [
    "imaging",
    "radiology",
    "radiological",
    "radiographic",
]

NON_CLINICAL_KEYWORDS: list[str] = [
    "letter to editor",
    "editorial",
    "erratum",
    "retraction",
]

# Bucket order matters for first-match classification; the empty list marks
# the catch-all bucket.
RADIOLOGY_SUBDOMAINS: dict[str, list[str]] = {
    "Neuroradiology": ["brain", "neurological", "spine", "head and neck", "neuro"],
    "Chest/Cardiac": [
        "chest",
        "lung",
        "cardiac",
        "heart",
        "thoracic",
        "pulmonary",
        "cardiovascular",
    ],
    "Abdominal": ["abdomen", "liver", "pancreas", "gastrointestinal", "abdominal"],
    "Musculoskeletal": [
        "musculoskeletal",
        "bone",
        "joint",
        "orthopedic",
        "msk",
        "skeletal",
    ],
    "Breast": ["breast", "mammography", "mammogram", "mammographic"],
    "Nuclear/Molecular": ["nuclear", "pet/ct", "positron", "molecular", "spect", "radioisotope"],
    "General/Other": [],
}

SCHOLAR_QUERY: str = "artificial intelligence radiology clinical"
