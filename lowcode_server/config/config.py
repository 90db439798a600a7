"""
This module encapsulates the reading and processing of the config file
/etc/lowcode-server.yaml and provides callers with a mechanism to access the
various properties specified therein.
"""

import os
import sys

import yaml

# Read/validate the configuration file
# Check for system config first, then fall back to development config
if os.name == "nt":  # Windows
    CONFIG_PATH = r"C:\ProgramData\LowcodeServer\lowcode-server.yaml"
else:  # Unix-like (Linux, macOS, BSD)
    CONFIG_PATH = "/etc/lowcode-server.yaml"

# Check for lowcode-server-dev.yaml first (user's local config), then .example
if not os.path.exists(CONFIG_PATH):
    if os.path.exists("lowcode-server-dev.yaml"):
        CONFIG_PATH = "lowcode-server-dev.yaml"
    elif os.path.exists("lowcode-server-dev.yaml.example"):
        CONFIG_PATH = "lowcode-server-dev.yaml.example"

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _load_config_file(path: str) -> dict:
    """Load the raw YAML mapping, returning an empty mapping if there is no file."""
    if not os.path.exists(path):
        return {}
    with open(path, "r", encoding="utf-8") as file:
        loaded = yaml.safe_load(file)
    return loaded or {}


def _apply_defaults(the_config: dict) -> dict:
    """Fill in every setting the server relies on that the file left out."""
    for section in ("api", "webui", "database", "security", "logging", "billing"):
        if section not in the_config or the_config[section] is None:
            the_config[section] = {}

    if not "host" in the_config["api"].keys():
        the_config["api"]["host"] = "localhost"
    if not "port" in the_config["api"].keys():
        the_config["api"]["port"] = 8443
    if not "host" in the_config["webui"].keys():
        the_config["webui"]["host"] = "localhost"
    if not "port" in the_config["webui"].keys():
        the_config["webui"]["port"] = 3000

    # Database settings - sqlite file unless a host is configured
    if not "user" in the_config["database"].keys():
        the_config["database"]["user"] = "sqlite"
    if not "password" in the_config["database"].keys():
        the_config["database"][
            "password"
        ] = ""  # nosec B105 - empty default, not a hardcoded password
    if not "host" in the_config["database"].keys():
        the_config["database"]["host"] = ""
    if not "port" in the_config["database"].keys():
        the_config["database"]["port"] = 5432
    if not "name" in the_config["database"].keys():
        the_config["database"]["name"] = "lowcode.db"

    # Security settings for JWT
    if not "jwt_secret" in the_config["security"].keys():
        the_config["security"][
            "jwt_secret"
        ] = "change-me"  # nosec B105 - development default
    if not "jwt_algorithm" in the_config["security"].keys():
        the_config["security"]["jwt_algorithm"] = "HS256"
    if not "jwt_auth_timeout" in the_config["security"].keys():
        the_config["security"]["jwt_auth_timeout"] = 3600
    if not "jwt_refresh_timeout" in the_config["security"].keys():
        the_config["security"]["jwt_refresh_timeout"] = 86400

    # Logging settings
    if not "level" in the_config["logging"].keys():
        the_config["logging"]["level"] = "INFO|WARNING|ERROR|CRITICAL"
    if not "format" in the_config["logging"].keys():
        the_config["logging"]["format"] = DEFAULT_LOG_FORMAT

    # Billing provider settings
    if not "enabled" in the_config["billing"].keys():
        the_config["billing"]["enabled"] = False
    if not "url" in the_config["billing"].keys():
        the_config["billing"]["url"] = "https://api.billing.example.com"
    if not "api_key" in the_config["billing"].keys():
        the_config["billing"][
            "api_key"
        ] = ""  # nosec B105 - empty default, not a hardcoded key
    if not "timeout" in the_config["billing"].keys():
        the_config["billing"]["timeout"] = 30

    # Code generation settings
    if not "codegen" in the_config.keys() or the_config["codegen"] is None:
        the_config["codegen"] = {}
    if not "plugins" in the_config["codegen"].keys():
        the_config["codegen"]["plugins"] = []
    if not "static_files" in the_config["codegen"].keys():
        the_config["codegen"]["static_files"] = True

    return the_config


try:
    config = _apply_defaults(_load_config_file(CONFIG_PATH))
except yaml.YAMLError as exc:
    if hasattr(exc, "problem_mark"):
        mark = exc.problem_mark
        print(
            f"Error in configuration file {CONFIG_PATH} at line {mark.line + 1}",
            file=sys.stderr,
        )
    sys.exit(1)


def get_config():
    """
    This function allows a caller to retrieve the config object.
    """
    return config


def get_log_levels():
    """
    Get the pipe-separated logging levels configuration.
    """
    return config["logging"]["level"]


def get_log_format():
    """
    Get the logging format string.
    """
    return config["logging"]["format"]


def get_log_file():
    """
    Get the log file path if specified.
    """
    return config["logging"].get("file")


def get_billing_config():
    """
    Get the complete billing provider configuration.
    """
    return config["billing"]


def is_billing_enabled():
    """
    Check if billing and entitlement enforcement is enabled.
    """
    value = config["billing"]["enabled"]
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def get_codegen_config():
    """
    Get the code generation configuration.
    """
    return config["codegen"]
