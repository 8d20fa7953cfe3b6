# config.py
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent

# Feeds
USGS_FEED_URL = "https://earthquake.usgs.gov/earthquakes/feed/v1.0/summary/4.5_week.geojson"

GDELT_DOC_URL = "https://api.gdeltproject.org/api/v2/doc/doc"
GDELT_QUERY = "war conflict attack military disaster crisis earthquake"

ACLED_API_URL = "https://api.acleddata.com/acled/read"
ACLED_KEY = os.getenv("ACLED_KEY", "")
ACLED_EMAIL = os.getenv("ACLED_EMAIL", "")
ACLED_LOOKBACK_DAYS = 7

RELIEFWEB_API_URL = "https://api.reliefweb.int/v1/reports"
RELIEFWEB_APPNAME = os.getenv("RELIEFWEB_APPNAME", "hazardmon")

HTTP_TIMEOUT = 10

# Polling (seconds) per source id
POLL_INTERVALS = {
    "usgs": 60,
    "gdelt": 5 * 60,
    "acled": 5 * 60,
    "reliefweb": 10 * 60,
    "submissions": 60,
}

# Max events kept per batch
BATCH_CAPS = {
    "usgs": 50,
    "gdelt": 30,
    "acled": 50,
    "reliefweb": 30,
    "submissions": 50,
}

# live-push sets are capped, oldest dropped first
LIVE_EVENT_CAP = 200
LIVE_QUEUE_SIZE = 100

ALERT_DISPLAY_SECONDS = 7

CONFLICT_FALLBACK_PATH = BASE_DIR / "data" / "conflict_fallback.json"
SUBMISSIONS_DB_PATH = Path(os.getenv("SUBMISSIONS_DB_PATH", BASE_DIR / "submissions.duckdb"))

# Classifier vocabulary, checked in this order (first match wins)
CATEGORY_KEYWORDS = [
    ("earthquake", ["earthquake", "quake", "seismic", "tremor"]),
    ("conflict", ["war", "attack", "airstrike", "missile", "military", "troops", "battle",
                  "bombing", "shooting", "armed", "killed", "explosion"]),
    ("weather", ["hurricane", "typhoon", "cyclone", "flood", "tornado", "storm"]),
    ("disaster", ["wildfire", "fire", "eruption", "volcano", "tsunami", "landslide"]),
    ("political", ["election", "coup", "protest", "riot", "government", "minister",
                   "president", "parliament"]),
    ("health", ["virus", "outbreak", "disease", "epidemic", "pandemic", "health"]),
    ("violence", ["shooting", "violence", "assault", "gunfire", "casualties"]),
]
