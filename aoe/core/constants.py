"""Constants used throughout the aoe session core."""


# Naming
SESSION_PREFIX = "aoe_"
CONTAINER_PREFIX = "aoe-sandbox-"
SESSION_NAME_MAX_LEN = 20
ID_PREFIX_LEN = 8

# Sandbox defaults
DEFAULT_SANDBOX_IMAGE = "ghcr.io/njbrake/aoe-sandbox:latest"
DEFAULT_WORKDIR = "/workspace"
CONTAINER_HOME = "/root"

# Named volumes persisting agent credentials across sandbox containers
CLAUDE_AUTH_VOLUME = "aoe-claude-auth"
OPENCODE_AUTH_VOLUME = "aoe-opencode-auth"
CODEX_AUTH_VOLUME = "aoe-codex-auth"
VIBE_AUTH_VOLUME = "aoe-vibe-auth"
GEMINI_AUTH_VOLUME = "aoe-gemini-auth"

AUTH_VOLUMES = {
    "claude": (CLAUDE_AUTH_VOLUME, f"{CONTAINER_HOME}/.claude"),
    "opencode": (OPENCODE_AUTH_VOLUME, f"{CONTAINER_HOME}/.local/share/opencode"),
    "codex": (CODEX_AUTH_VOLUME, f"{CONTAINER_HOME}/.codex"),
    "vibe": (VIBE_AUTH_VOLUME, f"{CONTAINER_HOME}/.vibe"),
    "gemini": (GEMINI_AUTH_VOLUME, f"{CONTAINER_HOME}/.gemini"),
}

# Host terminal settings always forwarded into sandboxes
DEFAULT_TERMINAL_ENV_VARS = ["TERM", "COLORTERM", "FORCE_COLOR", "NO_COLOR"]

# Agent binaries and their auto-approve switches
TOOL_COMMANDS = {
    "claude": "claude",
    "opencode": "opencode",
    "codex": "codex",
    "vibe": "vibe",
    "gemini": "gemini",
}
DEFAULT_TOOL = "claude"
FALLBACK_COMMAND = "bash"

YOLO_FLAGS = {
    "claude": "--dangerously-skip-permissions",
    "vibe": "--agent auto-approve",
    "codex": "--dangerously-bypass-approvals-and-sandbox",
    "gemini": "--approval-mode yolo",
}

# Status detection windows
SPINNER_CHARS = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")
STATUS_WINDOW_LINES = 30
PROMPT_WINDOW_LINES = 10
PROMPT_MAX_LEN = 100
VIBE_WINDOW_LINES = 50
CAPTURE_LINES = 50

# Lifecycle timings (seconds)
STARTING_GRACE_PERIOD = 3.0
SESSION_CACHE_TTL = 2.0
RESTART_DELAY = 0.1
DELETION_SHUTDOWN_TIMEOUT = 10.0

# Summaries
SUMMARY_MAX_LINES = 150
SUMMARY_MODEL = "claude-haiku-4-5-20251001"
SUMMARY_SYSTEM_PROMPT = (
    "Summarize what is happening in this terminal session in 2-3 concise sentences. "
    "Focus on the current activity, any errors, and progress. Be terse."
)

# Application data
APP_DIR_NAME = ".agent-of-empires"
APP_DIR_ENV = "AOE_HOME"
CONFIG_FILE_NAME = "config.yaml"
LOG_FILE_NAME = "aoe.log"
