"""
Domain Constants: application-wide constants.

Storage keys, NBS API endpoints, supported languages and upload limits.
Storage key names match the browser build so exported data stays compatible.
"""

# =============================================================================
# NBS IPS QR API
# =============================================================================

API_BASE_URL = "https://nbs.rs/QRcode/api/qr/v1"
API_TIMEOUT_SECONDS = 30.0

ENDPOINT_GEN = "/gen"              # structured fields in, PNG out
ENDPOINT_GENERATE = "/generate"    # payload text in, JSON + base64 image out
ENDPOINT_VALIDATE = "/validate"    # payload text in, JSON result out
ENDPOINT_UPLOAD = "/upload"        # image in, JSON result out

ENDPOINTS = (ENDPOINT_GEN, ENDPOINT_GENERATE, ENDPOINT_VALIDATE, ENDPOINT_UPLOAD)

# only these accept a /{size} path suffix
SIZED_ENDPOINTS = (ENDPOINT_GEN, ENDPOINT_GENERATE)

DEFAULT_METHOD = "POST"

# =============================================================================
# IPS QR Payload Fields
# =============================================================================
# K: payment type, V: version, C: character set, R: account, N: payee,
# I: amount, P: payer, SF: purpose code, S: description, RO: reference

PAYLOAD_FIELD_ORDER = ("K", "V", "C", "R", "N", "I", "P", "SF", "S", "RO")
GEN_REQUIRED_FIELDS = ("K", "V", "C", "R", "N")
GEN_OPTIONAL_FIELDS = ("I", "P", "SF", "S", "RO")

PAYLOAD_SEPARATOR = "|"
PAYLOAD_KEY_SEPARATOR = ":"

# =============================================================================
# Persisted Store
# =============================================================================

TEMPLATES_STORAGE_KEY = "nbs_ips_templates"
LANGUAGE_STORAGE_KEY = "nbs_language"

EXPORT_FORMAT_VERSION = "1.0"
EXPORT_FILENAME_PREFIX = "nbs-ips-templates"
IMPORT_FILE_EXTENSION = ".json"

TEMPLATE_ID_PREFIX = "tpl_"

# =============================================================================
# Languages
# =============================================================================

DEFAULT_LANGUAGE = "sr_RS_Latn"
FALLBACK_LANGUAGE = "en"

LANGUAGE_NAMES = {
    "sr_RS_Latn": "Latinica",
    "sr_RS": "Ćirilica",
    "en": "English",
}

SUPPORTED_LANGUAGES = tuple(LANGUAGE_NAMES)

# minimum time between two accepted language changes
LANGUAGE_CHANGE_DEBOUNCE_SECONDS = 0.5

# =============================================================================
# Upload Limits
# =============================================================================

UPLOAD_ALLOWED_CONTENT_TYPES = ("image/png", "image/jpeg", "image/jpg")
UPLOAD_MAX_SIZE_BYTES = 5 * 1024 * 1024

# =============================================================================
# Notifications
# =============================================================================

NOTIFICATION_LEVELS = ("info", "success", "warning", "error")
NOTIFICATION_MAX_ITEMS = 50
LANGUAGE_NOTIFICATION_CATEGORY = "language"
