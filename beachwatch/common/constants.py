"""Application constants."""

USER_AGENT = "beachwatch-aggregator/0.3 (+water-quality dashboard)"

SOURCE_NSW_BEACHWATCH = "nsw_beachwatch"
SOURCE_VIC_EPA = "vic_epa"
SOURCE_MANUAL = "manual"
DATA_SOURCES = (SOURCE_NSW_BEACHWATCH, SOURCE_VIC_EPA, SOURCE_MANUAL)

QUALITY_RATINGS = ("excellent", "good", "fair", "poor", "bad", "very_poor", "unknown")
BEACH_TYPES = ("ocean", "bay", "estuary", "river")
SORT_ORDERS = ("asc", "desc")

ENTEROCOCCI_UNIT = "cfu/100ml"
MAX_HISTORICAL_READINGS = 30
MAX_REJECTED_SAMPLES = 50

NSW_STATE = "NSW"
NSW_REGION = "New South Wales"
VIC_STATE = "VIC"
VIC_REGION = "Victoria"

EXIT_SUCCESS = 0
EXIT_PARTIAL = 10
EXIT_HARD_FAIL = 20
JSON_LOG_FIELDS = (
    "timestamp",
    "refresh_id",
    "component",
    "source",
    "event",
    "status",
    "attempt",
    "duration_ms",
    "records_in",
    "records_out",
    "error_code",
    "message",
)
