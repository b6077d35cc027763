"""Global constants for the groupchat application."""

# Collection names
USERS_COLLECTION = "users"
GROUPS_COLLECTION = "groups"
MESSAGES_COLLECTION = "messages"

# Message cache
MESSAGE_CACHE_WINDOW = 100
MESSAGE_CACHE_KEY_PREFIX = "messages_"

# Group summary text for image messages
IMAGE_SUMMARY = "Image"

# Image picker limits
IMAGE_MAX_WIDTH = 900
IMAGE_MAX_HEIGHT = 900
IMAGE_JPEG_QUALITY = 50
DEFAULT_IMAGE_MIME_TYPE = "image/jpeg"

# Default error strings for failed subscriptions
GROUPS_LOAD_ERROR = "Failed to load groups"
MESSAGES_LOAD_ERROR = "Failed to load messages"
USERS_LOAD_ERROR = "Failed to load users"

# Identity Toolkit REST endpoint
SIGN_IN_URL = "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword"
AUTH_REQUEST_TIMEOUT = 10

# Seconds a screen may go without being viewed before its listener is closed
SCREEN_IDLE_TIMEOUT = 300
