# setup/config_models.py
# -*- coding: utf-8 -*-
"""
Pydantic models for application configuration.

This module defines the structured settings for the proxy setup,
including defaults, type annotations, and descriptions.
It utilizes Pydantic for data validation and settings management.
"""

from pathlib import Path
from typing import Dict, List

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Default Static Values (can be overridden by config file/env/cli) ---
DOMAIN_DEFAULT: str = "example.com"
EMAIL_DEFAULT: str = ""
LOG_PREFIX_DEFAULT: str = "[PROXY-SETUP]"
STATE_FILE_PATH_DEFAULT: Path = Path(
    "/var/lib/tribenest-proxy-setup/progress_state.txt"
)
OS_RELEASE_PATH_DEFAULT: Path = Path("/etc/os-release")

SITE_NAME_DEFAULT: str = "tribenest"
NGINX_CONF_DIR_DEFAULT: Path = Path("/etc/nginx")
UPSTREAM_HOST_DEFAULT: str = "127.0.0.1"
UPSTREAM_PORT_DEFAULT: int = 3000
CLIENT_MAX_BODY_SIZE_DEFAULT: str = "500M"
PROXY_TIMEOUT_DEFAULT: str = "60s"
CONFLICTING_SERVICES_DEFAULT: List[str] = ["apache2", "httpd", "lighttpd"]

LETSENCRYPT_LIVE_DIR_DEFAULT: Path = Path("/etc/letsencrypt/live")
SSL_PROTOCOLS_DEFAULT: str = "TLSv1.2 TLSv1.3"
SSL_CIPHERS_DEFAULT: str = (
    "ECDHE-RSA-AES128-GCM-SHA256:ECDHE-RSA-AES256-GCM-SHA384:"
    "ECDHE-RSA-AES128-SHA256:ECDHE-RSA-AES256-SHA384"
)

SYMBOLS_DEFAULT: Dict[str, str] = {
    "success": "✅",
    "error": "❌",
    "warning": "⚠️",
    "info": "ℹ️",
    "step": "➡️",
    "gear": "⚙️",
    "package": "📦",
    "rocket": "🚀",
    "sparkles": "✨",
    "critical": "🔥",
    "debug": "🐛",
    "trash": "🗑️",
    "memo": "📝",
    "party": "🎉",
}

# Catch-all server written to conf.d so nginx always has a valid default.
DEFAULT_SERVER_TEMPLATE_DEFAULT: str = """\
server {{
    listen 80 default_server;
    server_name _;
    return 444;
}}
"""

# Plain HTTP reverse proxy used until the certificate exists.
NGINX_HTTP_SITE_TEMPLATE_DEFAULT: str = """\
# TribeNest Production Configuration
server {{
    listen 80;
    server_name {domain};

    location / {{
        proxy_pass http://{upstream_host}:{upstream_port};
        proxy_set_header Host $host;
        proxy_set_header X-Real-IP $remote_addr;
        proxy_set_header X-Forwarded-For $proxy_add_x_forwarded_for;
        proxy_set_header X-Forwarded-Proto $scheme;

        proxy_http_version 1.1;
        proxy_set_header Upgrade $http_upgrade;
        proxy_set_header Connection "upgrade";
        client_max_body_size {client_max_body_size};
        proxy_request_buffering off;

        proxy_connect_timeout {proxy_timeout};
        proxy_send_timeout {proxy_timeout};
        proxy_read_timeout {proxy_timeout};
    }}

    location /health {{
        access_log off;
        return 200 "healthy\\n";
        add_header Content-Type text/plain;
    }}
}}
"""

# HTTP -> HTTPS redirect plus the TLS terminating proxy.
NGINX_HTTPS_SITE_TEMPLATE_DEFAULT: str = """\
# TribeNest Production Configuration with SSL
server {{
    listen 80;
    server_name {server_names};

    # Redirect all HTTP traffic to HTTPS
    return 301 https://$host$request_uri;
}}

server {{
    listen 443 ssl http2;
    server_name {server_names};

    # SSL configuration
    ssl_certificate {cert_dir}/fullchain.pem;
    ssl_certificate_key {cert_dir}/privkey.pem;

    # SSL security settings
    ssl_protocols {ssl_protocols};
    ssl_ciphers {ssl_ciphers};
    ssl_prefer_server_ciphers off;
    ssl_session_cache shared:SSL:10m;
    ssl_session_timeout 10m;

    location / {{
        proxy_pass http://{upstream_host}:{upstream_port};
        proxy_set_header Host $host;
        proxy_set_header X-Real-IP $remote_addr;
        proxy_set_header X-Forwarded-For $proxy_add_x_forwarded_for;
        proxy_set_header X-Forwarded-Proto $scheme;

        proxy_http_version 1.1;
        proxy_set_header Upgrade $http_upgrade;
        proxy_set_header Connection "upgrade";
        client_max_body_size {client_max_body_size};

        proxy_connect_timeout {proxy_timeout};
        proxy_send_timeout {proxy_timeout};
        proxy_read_timeout {proxy_timeout};
    }}

    location /health {{
        access_log off;
        return 200 "healthy\\n";
        add_header Content-Type text/plain;
    }}
}}
"""


class OsRelease(BaseModel):
    """Fields of /etc/os-release that drive package manager selection."""

    name: str = Field(description="NAME, e.g. 'Ubuntu'.")
    version_id: str = Field(default="", description="VERSION_ID, e.g. '24.04'.")


class NginxSettings(BaseSettings):
    """Nginx site settings."""

    model_config = SettingsConfigDict(env_prefix="NGINX_", extra="ignore")

    site_name: str = Field(
        default=SITE_NAME_DEFAULT,
        description="File name of the site under sites-available/sites-enabled.",
    )
    conf_dir: Path = Field(
        default=NGINX_CONF_DIR_DEFAULT,
        description="Nginx configuration root directory.",
    )
    upstream_host: str = Field(
        default=UPSTREAM_HOST_DEFAULT,
        description="Host of the proxied web application.",
    )
    upstream_port: int = Field(
        default=UPSTREAM_PORT_DEFAULT,
        ge=1,
        le=65535,
        description="Port of the proxied web application.",
    )
    client_max_body_size: str = Field(
        default=CLIENT_MAX_BODY_SIZE_DEFAULT,
        description="Maximum accepted request body size.",
    )
    proxy_timeout: str = Field(
        default=PROXY_TIMEOUT_DEFAULT,
        description="Connect/send/read timeout towards the upstream.",
    )
    conflicting_services: List[str] = Field(
        default_factory=lambda: list(CONFLICTING_SERVICES_DEFAULT),
        description="Services stopped when port 80 is already taken.",
    )
    default_server_template: str = Field(
        default=DEFAULT_SERVER_TEMPLATE_DEFAULT,
        description="Template for conf.d/default.conf.",
    )
    http_site_template: str = Field(
        default=NGINX_HTTP_SITE_TEMPLATE_DEFAULT,
        description="HTTP-only site template. Supports {domain}, {upstream_host}, {upstream_port}, "
        "{client_max_body_size}, {proxy_timeout}.",
    )
    https_site_template: str = Field(
        default=NGINX_HTTPS_SITE_TEMPLATE_DEFAULT,
        description="HTTPS site template. Additionally supports {server_names}, {cert_dir}, "
        "{ssl_protocols}, {ssl_ciphers}.",
    )

    @property
    def sites_available_dir(self) -> Path:
        return self.conf_dir / "sites-available"

    @property
    def sites_enabled_dir(self) -> Path:
        return self.conf_dir / "sites-enabled"

    @property
    def conf_d_dir(self) -> Path:
        return self.conf_dir / "conf.d"


class CertbotSettings(BaseSettings):
    """Certbot / Let's Encrypt settings."""

    model_config = SettingsConfigDict(env_prefix="CERTBOT_", extra="ignore")

    live_dir: Path = Field(
        default=LETSENCRYPT_LIVE_DIR_DEFAULT,
        description="Directory holding the issued certificate lineages.",
    )
    preferred_challenges: str = Field(
        default="dns", description="ACME challenge type passed to certbot."
    )
    include_wildcard: bool = Field(
        default=True, description="Also request *.<domain>."
    )
    staging: bool = Field(
        default=False,
        description="Use the Let's Encrypt staging environment (--test-cert).",
    )
    ssl_protocols: str = Field(default=SSL_PROTOCOLS_DEFAULT)
    ssl_ciphers: str = Field(default=SSL_CIPHERS_DEFAULT)


class AppSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(env_prefix="PROXY_SETUP_", extra="ignore")

    domain: str = Field(
        default=DOMAIN_DEFAULT, description="Bare domain to serve and certify."
    )
    email: str = Field(
        default=EMAIL_DEFAULT,
        description="Registration email for Let's Encrypt.",
    )
    log_prefix: str = Field(
        default=LOG_PREFIX_DEFAULT,
        description="Prefix for console log lines.",
    )
    state_file_path: Path = Field(
        default=STATE_FILE_PATH_DEFAULT,
        description="File recording completed steps.",
    )
    os_release_path: Path = Field(
        default=OS_RELEASE_PATH_DEFAULT,
        description="os-release file used for distribution detection.",
    )
    interactive: bool = Field(
        default=True,
        description="Pause for confirmation before starting the DNS challenge.",
    )
    resume: bool = Field(
        default=False,
        description="Offer to skip steps already recorded as completed.",
    )

    nginx: NginxSettings = Field(default_factory=NginxSettings)
    certbot: CertbotSettings = Field(default_factory=CertbotSettings)

    symbols: Dict[str, str] = Field(
        default_factory=lambda: dict(SYMBOLS_DEFAULT)
    )
