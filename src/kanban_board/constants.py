STATE_DIR_NAME = ".kanban"
CONFIG_FILE = "config.yaml"
PROJECTS_FILE = "projects.yaml"
TASKS_FILE = "tasks.yaml"
SERVER_DIR_NAME = "server"
STATE_SCHEMA_VERSION = 1
WINDOWS_LOCK_BYTES = 4096

BACKEND_LOCAL = "local"
BACKEND_REMOTE = "remote"
BACKENDS = (BACKEND_LOCAL, BACKEND_REMOTE)

DEFAULT_API_URL = "http://localhost:5000/api"
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_SERVER_PORT = 5000

ENV_BACKEND = "KANBAN_BACKEND"
ENV_API_URL = "KANBAN_API_URL"
