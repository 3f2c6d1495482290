STATE_DIR_NAME = ".taskboard"
TASKS_FILE = "tasks.yaml"
TASKS_LOCK_FILE = "tasks.lock"
USERS_FILE = "users.yaml"
USERS_LOCK_FILE = "users.lock"
CONFIG_FILE = "config.yaml"
WINDOWS_LOCK_BYTES = 4096

STORE_SCHEMA_VERSION = 1

# Gap between neighbouring order keys inside a column
ORDER_STEP = 10

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

DEFAULT_TOKEN_EXPIRE_MINUTES = 1440  # 24 hours
DEFAULT_SECRET_KEY = "dev-secret-change-in-production"
DEFAULT_ISSUER = "taskboard"
DEFAULT_AUDIENCE = "taskboard-clients"
MIN_PASSWORD_LENGTH = 6
