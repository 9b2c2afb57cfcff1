"""Constants shared by the investigation engine."""

# Reserved observation ids for the user's free-text input and project context
PRIMARY_USER_OBSERVATION_ID = "user.input.text"
PROJECT_OBSERVATION_ID = "user.project"
RESERVED_OBSERVATION_IDS = frozenset({PRIMARY_USER_OBSERVATION_ID, PROJECT_OBSERVATION_ID})

OBSERVER_TYPE_USER = "OBSERVER_TYPE_USER"
OBSERVATION_TYPE_TEXT_DESCRIPTION = "OBSERVATION_TYPE_TEXT_DESCRIPTION"
OBSERVATION_TYPE_STRUCTURED_INPUT = "OBSERVATION_TYPE_STRUCTURED_INPUT"
OBSERVATION_TYPE_HYPOTHESIS = "OBSERVATION_TYPE_HYPOTHESIS"

# Polling defaults for run_investigation
INITIAL_BACKOFF_SECONDS = 1.0
MAX_BACKOFF_SECONDS = 32.0
BACKOFF_FACTOR = 2.0
MAX_POLLING_ATTEMPTS = 20

DISCOVERY_API_URL = "https://geminicloudassist.googleapis.com/$discovery/rest?version=v1alpha"
CONSOLE_BASE_URL = "https://console.cloud.google.com"
CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"

DEFAULT_PAGE_SIZE = 20
LIST_FIELDS = "investigations(name,title,executionState),nextPageToken"

# Cloud AI Companion chat agent used for free-form resource questions
COMPANION_API_URL = "https://cloudaicompanion.googleapis.com/v1"
COMPANION_EXPERIENCE = "/cloud-assist/chat"
COMPANION_AGENT = "planandact"
COMPANION_SOURCE_URI = "mcp"
CHAT_INPUT_CONTEXT_TYPE = "type.googleapis.com/google.cloud.cloudaicompanion.v1main.ChatInputDataContext"
