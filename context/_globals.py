# ─── Config ──────────────────────────────────────────────────────
GLOBAL_CFG_FILE = "ccbootstrap_settings.toml"

# ─── Environment Overrides ───────────────────────────────────────
CONFIG_ENV_VAR = "CCBOOTSTRAP_CONFIG"
LOG_LEVEL_ENV_VAR = "CCBOOTSTRAP_LOG_LEVEL"

# ─── Bootstrap Inputs / State ────────────────────────────────────
PARAMETERS_FILE = "parameters.sh"
GRANT_STATE_FILE = ".preflight_temp_grant"
JSON_FIELDS = ("tags", "template_version")

# ─── Role Policy Defaults ────────────────────────────────────────
MG_ALLOWED_ROLES = ("Owner", "User Access Administrator", "Contributor")
SUBSCRIPTION_ALLOWED_ROLES = ("Owner", "Contributor")
DIRECTORY_ADMIN_ROLES = (
    "Global Administrator",
    "Privileged Role Administrator",
    "Cloud Application Administrator",
    "Application Administrator",
)
SELF_GRANT_ROLE = "Owner"

# ─── Delegated Preflight Tool ────────────────────────────────────
# Pin to a commit SHA for stable runs; "main" follows the latest tool.
PREFLIGHT_TOOL_BASE_URL = "https://raw.githubusercontent.com/PaloAltoNetworks/cc-permissions-preflight"
PREFLIGHT_TOOL_VERSION = "d7c52a32b2421de7b50a95c19de5eaf653b34403"
PREFLIGHT_TOOL_SCRIPT = "preflight_check.sh"
DOWNLOAD_TIMEOUT = 30.0
