"""Platform constants, keyword tables and the default scoring rubric."""

PLATFORM_DOMAIN = "cloudskillsboost.google"
PLATFORM_ORIGIN = f"https://www.{PLATFORM_DOMAIN}"
PROFILE_PATH = "/public_profiles/"

DEFAULT_TIMEOUT = 30
MAX_REDIRECTS = 5
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)

# Config file names inside the config directory
SCORING_CONFIG_FILE = "scoringConfig.json"
ALLOW_LIST_FILE = "allowedSkillBadges.json"
ENROLLMENT_FILE = "enrolledParticipants.json"
TEST_ENROLLMENT_FILE = "testParticipants.json"

RECENT_WINDOW_DAYS = 30
RECENT_LIST_LIMIT = 10

# =============================================================================
# PRIVATE PROFILE SIGNALS
# =============================================================================

PRIVATE_PHRASES = (
    "this profile is private",
    "profile is not public",
    "profile not available",
    "this user has made their profile private",
    "private profile",
    "sorry, access denied to this resource",
    "access denied",
    "please sign in to access this content",
)

PRIVATE_SELECTORS = (
    ".private-profile",
    ".profile-private",
    '[data-private="true"]',
    ".privacy-message",
)

PRIVATE_TITLE_MARKERS = ("error", "not found", "private")

# Text that shows the page is a real profile even with no cards on it
PROFILE_CONTENT_MARKERS = ("public profile", "badges", "skill badge")

# =============================================================================
# USER INFO SELECTORS (first non-empty match wins)
# =============================================================================

NAME_SELECTORS = (
    ".profile-name",
    ".user-name",
    "h1",
    ".profile-header h1",
    '[data-testid="profile-name"]',
)
LOCATION_SELECTORS = (
    ".profile-location",
    ".user-location",
    '[data-testid="profile-location"]',
)
JOIN_DATE_SELECTORS = (
    ".join-date",
    ".member-since",
    '[data-testid="join-date"]',
)

# =============================================================================
# CATEGORY / DIFFICULTY / TAG KEYWORDS
# =============================================================================

CATEGORY_GENERAL = "general"

BADGE_CATEGORY_PATTERNS = {
    "cloud-storage": ("cloud storage", "google cloud storage", "gcs", "storage"),
    "compute-engine": (
        "compute engine",
        "google compute engine",
        "gce",
        "virtual machines",
    ),
    "kubernetes": (
        "kubernetes engine",
        "google kubernetes engine",
        "gke",
        "k8s",
        "kubernetes",
    ),
    "big-data": ("bigquery", "big query", "dataflow", "data flow", "big data"),
    "machine-learning": (
        "machine learning",
        "ml",
        "ai platform",
        "vertex ai",
        "tensorflow",
    ),
}

# Checked in order after the pattern table misses
BADGE_CATEGORY_FALLBACKS = (
    ("security", "security"),
    ("network", "networking"),
    ("data", "data"),
    ("app", "application"),
    ("dev", "development"),
)

GAME_CATEGORY_PATTERNS = {
    "cloud-quest": ("cloud quest", "quest", "google cloud quest"),
    "arcade-game": ("arcade", "cloud arcade", "skill arcade"),
    "challenge": ("challenge", "coding challenge", "cloud challenge"),
}

DIFFICULTY_BEGINNER = "beginner"
DIFFICULTY_INTERMEDIATE = "intermediate"
DIFFICULTY_ADVANCED = "advanced"

DIFFICULTY_KEYWORDS = (
    (DIFFICULTY_ADVANCED, ("advanced", "expert")),
    (DIFFICULTY_INTERMEDIATE, ("intermediate", "professional")),
    (DIFFICULTY_BEGINNER, ("beginner", "introduction", "getting started")),
)

TECH_TAGS = (
    "gcp",
    "aws",
    "azure",
    "kubernetes",
    "docker",
    "terraform",
    "python",
    "java",
    "go",
    "nodejs",
)
SERVICE_TAGS = (
    "compute",
    "storage",
    "database",
    "networking",
    "security",
    "ml",
    "ai",
    "bigdata",
)

# =============================================================================
# DEFAULT SCORING RUBRIC
# =============================================================================

DEFAULT_SCORING_CONFIG = {
    "version": "1.0",
    "badges": {
        "cloud-storage": {"points": 100, "multiplier": 1.0},
        "compute-engine": {"points": 120, "multiplier": 1.0},
        "kubernetes": {"points": 150, "multiplier": 1.2},
        "big-data": {"points": 140, "multiplier": 1.1},
        "machine-learning": {"points": 160, "multiplier": 1.3},
        "security": {"points": 130, "multiplier": 1.1},
        "networking": {"points": 110, "multiplier": 1.0},
        "data": {"points": 125, "multiplier": 1.0},
        "application": {"points": 115, "multiplier": 1.0},
        "development": {"points": 105, "multiplier": 1.0},
        "general": {"points": 100, "multiplier": 1.0},
    },
    "games": {
        "cloud-quest": {"points": 50, "multiplier": 1.0},
        "arcade-game": {"points": 30, "multiplier": 0.8},
        "challenge": {"points": 80, "multiplier": 1.2},
        "general": {"points": 40, "multiplier": 1.0},
    },
    "difficulty": {
        "beginner": 1.0,
        "intermediate": 1.2,
        "advanced": 1.5,
    },
    "bonuses": {
        "completion_streak": {
            "5_streak": 50,
            "10_streak": 150,
            "20_streak": 400,
        },
        "category_completion": {"category_bonus": 200},
        "time_bonus": {"recent_completion": 25},
    },
    "specificItems": {
        "badges": {
            "Google Cloud Digital Leader": {"points": 200, "multiplier": 1.5},
            "Google Cloud Architect": {"points": 300, "multiplier": 2.0},
            "Professional Cloud Developer": {"points": 250, "multiplier": 1.8},
        },
        "games": {
            "Cloud Hero Challenge": {"points": 100, "multiplier": 1.5},
        },
    },
    "limits": {
        "max_badge_points": 500,
        "max_game_points": 200,
        "max_bonus_points": 1000,
    },
}

# Share of the category bonus granted per distinct completed category
CATEGORY_BONUS_SHARE = 0.1
