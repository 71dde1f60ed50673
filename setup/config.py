# setup/config.py
"""
Static constants for the proxy setup.

Values that operators may want to change live in setup.config_models and
can be overridden from YAML, the environment or the command line. The
values here are fixed facts about the tools being driven.
"""

# Represents the version of the setup script logic.
SCRIPT_VERSION: str = "1.0.0"

NGINX_SERVICE_NAME: str = "nginx"
HTTP_PORT: int = 80

# Name of the default site shipped by Debian-family nginx packages.
NGINX_DEFAULT_SITE_NAME: str = "default"
NGINX_DEFAULT_CONF_D_FILE: str = "default.conf"

ACME_CHALLENGE_RECORD_PREFIX: str = "_acme-challenge"
LETSENCRYPT_LOG_DIR: str = "/var/log/letsencrypt"
