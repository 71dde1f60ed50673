# configure/nginx_configurator.py
# -*- coding: utf-8 -*-
"""
Handles configuration of Nginx as a reverse proxy for the web application.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from common.command_utils import (
    get_symbols,
    log_proxy_setup,
    run_elevated_command,
)
from common.system_utils import (
    enable_service,
    is_port_in_use,
    is_service_active,
    restart_service,
    show_service_journal,
    start_service,
    stop_service,
)
from setup import config as static_config
from setup.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def _site_available_path(app_settings: AppSettings) -> Path:
    return app_settings.nginx.sites_available_dir / app_settings.nginx.site_name


def _site_enabled_path(app_settings: AppSettings) -> Path:
    return app_settings.nginx.sites_enabled_dir / app_settings.nginx.site_name


def _site_conf_d_path(app_settings: AppSettings) -> Path:
    return app_settings.nginx.conf_d_dir / f"{app_settings.nginx.site_name}.conf"


def certificate_dir(app_settings: AppSettings) -> Path:
    """Directory certbot places the lineage for the configured domain in."""
    return app_settings.certbot.live_dir / app_settings.domain


def server_names(app_settings: AppSettings) -> str:
    """server_name value covering the domain and, if requested, its wildcard."""
    names = [app_settings.domain]
    if app_settings.certbot.include_wildcard:
        names.append(f"*.{app_settings.domain}")
    return " ".join(names)


def write_root_file(
    path: Path,
    content: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """Writes content to a root-owned file through `tee`."""
    run_elevated_command(
        ["tee", str(path)],
        app_settings,
        cmd_input=content,
        capture_output=True,
        current_logger=current_logger,
    )


def remove_root_file(
    path: Path,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    run_elevated_command(
        ["rm", "-f", str(path)],
        app_settings,
        current_logger=current_logger,
    )


def clean_existing_nginx_configuration(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """
    Removes the distribution default site and any earlier copy of our site,
    then installs a catch-all default server in conf.d so nginx keeps a
    valid configuration while the package is reinstalled.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    nginx_settings = app_settings.nginx
    site_name = nginx_settings.site_name

    log_proxy_setup(
        f"{symbols.get('step', '➡️')} Checking and cleaning existing nginx configurations...",
        "info",
        logger_to_use,
        app_settings,
    )

    stale_files = [
        (
            nginx_settings.sites_enabled_dir / static_config.NGINX_DEFAULT_SITE_NAME,
            "default nginx site",
        ),
        (_site_enabled_path(app_settings), f"existing {site_name} site link"),
        (_site_available_path(app_settings), f"existing {site_name} configuration"),
        (_site_conf_d_path(app_settings), f"existing {site_name} conf.d file"),
    ]
    for path, description in stale_files:
        # lexists: a dangling sites-enabled symlink must go as well.
        if os.path.lexists(path):
            log_proxy_setup(
                f"{symbols.get('trash', '🗑️')} Removing {description}...",
                "info",
                logger_to_use,
                app_settings,
            )
            remove_root_file(path, app_settings, current_logger=logger_to_use)

    if nginx_settings.conf_d_dir.is_dir():
        write_root_file(
            nginx_settings.conf_d_dir / static_config.NGINX_DEFAULT_CONF_D_FILE,
            nginx_settings.default_server_template.format(),
            app_settings,
            current_logger=logger_to_use,
        )

    log_proxy_setup(
        f"{symbols.get('success', '✅')} Nginx configuration cleanup completed",
        "success",
        logger_to_use,
        app_settings,
    )


def _template_values(app_settings: AppSettings) -> Dict[str, Any]:
    nginx_settings = app_settings.nginx
    certbot_settings = app_settings.certbot
    return {
        "domain": app_settings.domain,
        "server_names": server_names(app_settings),
        "upstream_host": nginx_settings.upstream_host,
        "upstream_port": nginx_settings.upstream_port,
        "client_max_body_size": nginx_settings.client_max_body_size,
        "proxy_timeout": nginx_settings.proxy_timeout,
        "cert_dir": certificate_dir(app_settings).as_posix(),
        "ssl_protocols": certbot_settings.ssl_protocols,
        "ssl_ciphers": certbot_settings.ssl_ciphers,
        "site_name": nginx_settings.site_name,
    }


def _render(
    template: str,
    template_name: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> str:
    symbols = get_symbols(app_settings)
    try:
        return template.format(**_template_values(app_settings))
    except KeyError as e_key:
        log_proxy_setup(
            f"{symbols.get('error', '❌')} Missing placeholder key '{e_key}' for the {template_name} template. Check config.yaml.",
            "error",
            current_logger,
            app_settings,
        )
        raise


def render_http_site_config(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> str:
    """Renders the plain HTTP reverse proxy site."""
    return _render(
        app_settings.nginx.http_site_template,
        "HTTP site",
        app_settings,
        current_logger,
    )


def render_https_site_config(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> str:
    """Renders the HTTPS site with the HTTP to HTTPS redirect."""
    return _render(
        app_settings.nginx.https_site_template,
        "HTTPS site",
        app_settings,
        current_logger,
    )


def enable_nginx_site(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """
    Activates the site: Debian-style layouts get a sites-enabled symlink and
    lose the default site, layouts without sites-enabled get a conf.d copy.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    nginx_settings = app_settings.nginx
    source_conf_path = _site_available_path(app_settings)

    if nginx_settings.sites_enabled_dir.is_dir():
        run_elevated_command(
            [
                "ln",
                "-sf",
                str(source_conf_path),
                str(_site_enabled_path(app_settings)),
            ],
            app_settings,
            current_logger=logger_to_use,
        )
        remove_root_file(
            nginx_settings.sites_enabled_dir / static_config.NGINX_DEFAULT_SITE_NAME,
            app_settings,
            current_logger=logger_to_use,
        )
    else:
        run_elevated_command(
            ["cp", str(source_conf_path), str(_site_conf_d_path(app_settings))],
            app_settings,
            current_logger=logger_to_use,
        )

    log_proxy_setup(
        f"{symbols.get('success', '✅')} Enabled nginx site '{nginx_settings.site_name}'.",
        "success",
        logger_to_use,
        app_settings,
    )


def _install_site(
    content: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger],
) -> None:
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    site_path = _site_available_path(app_settings)
    try:
        # RHEL-family and Alpine packages ship no sites-available directory.
        run_elevated_command(
            ["mkdir", "-p", str(site_path.parent)],
            app_settings,
            current_logger=logger_to_use,
        )
        write_root_file(
            site_path, content, app_settings, current_logger=logger_to_use
        )
    except Exception as e:
        log_proxy_setup(
            f"{symbols.get('error', '❌')} Failed to write nginx site configuration {site_path}: {e}",
            "error",
            logger_to_use,
            app_settings,
        )
        raise
    log_proxy_setup(
        f"{symbols.get('success', '✅')} Wrote nginx site configuration: {site_path}",
        "success",
        logger_to_use,
        app_settings,
    )
    enable_nginx_site(app_settings, current_logger=logger_to_use)


def install_http_site(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """Writes and enables the HTTP-only site."""
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    log_proxy_setup(
        f"{symbols.get('step', '➡️')} Adding nginx configuration...",
        "info",
        logger_to_use,
        app_settings,
    )
    _install_site(
        render_http_site_config(app_settings, logger_to_use),
        app_settings,
        logger_to_use,
    )


def install_https_site(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """Overwrites the site with the TLS configuration and re-enables it."""
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    log_proxy_setup(
        f"{symbols.get('step', '➡️')} Updating nginx configuration with SSL...",
        "info",
        logger_to_use,
        app_settings,
    )
    _install_site(
        render_https_site_config(app_settings, logger_to_use),
        app_settings,
        logger_to_use,
    )
    log_proxy_setup(
        f"{symbols.get('success', '✅')} SSL configuration applied",
        "success",
        logger_to_use,
        app_settings,
    )


def check_nginx_configuration(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """Tests the Nginx configuration for syntax errors."""
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    log_proxy_setup(
        f"{symbols.get('step', '➡️')} Testing nginx configuration (nginx -t)...",
        "info",
        logger_to_use,
        app_settings,
    )
    # A failing test raises CalledProcessError; run_elevated_command logs it.
    run_elevated_command(
        ["nginx", "-t"],
        app_settings,
        current_logger=logger_to_use,
        check=True,
    )
    log_proxy_setup(
        f"{symbols.get('success', '✅')} Nginx configuration test successful.",
        "success",
        logger_to_use,
        app_settings,
    )


def free_http_port(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """Stops other web servers when something already listens on port 80."""
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    if not is_port_in_use(
        static_config.HTTP_PORT, app_settings, current_logger=logger_to_use
    ):
        return
    log_proxy_setup(
        f"{symbols.get('warning', '!')} Port {static_config.HTTP_PORT} is already in use. Stopping conflicting services...",
        "warning",
        logger_to_use,
        app_settings,
    )
    for service_name in app_settings.nginx.conflicting_services:
        stop_service(service_name, app_settings, current_logger=logger_to_use)


def verify_nginx_active(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """
    Raises:
        RuntimeError: nginx is not active. The recent journal is shown first.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    service_name = static_config.NGINX_SERVICE_NAME
    if is_service_active(service_name, app_settings, current_logger=logger_to_use):
        log_proxy_setup(
            f"{symbols.get('success', '✅')} Nginx is running",
            "success",
            logger_to_use,
            app_settings,
        )
        return
    log_proxy_setup(
        f"{symbols.get('error', '❌')} Nginx failed to start. Checking logs...",
        "error",
        logger_to_use,
        app_settings,
    )
    show_service_journal(service_name, app_settings, current_logger=logger_to_use)
    raise RuntimeError("Nginx service is not active.")


def start_nginx_service(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """Stops stray instances, frees port 80, tests, enables and starts nginx."""
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    service_name = static_config.NGINX_SERVICE_NAME
    log_proxy_setup(
        f"{symbols.get('step', '➡️')} Testing and restarting nginx...",
        "info",
        logger_to_use,
        app_settings,
    )
    stop_service(service_name, app_settings, current_logger=logger_to_use)
    free_http_port(app_settings, current_logger=logger_to_use)
    check_nginx_configuration(app_settings, current_logger=logger_to_use)
    enable_service(service_name, app_settings, current_logger=logger_to_use)
    start_service(service_name, app_settings, current_logger=logger_to_use)
    verify_nginx_active(app_settings, current_logger=logger_to_use)


def restart_nginx_service(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """Tests the TLS configuration and restarts nginx with it."""
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    log_proxy_setup(
        f"{symbols.get('step', '➡️')} Restarting nginx with SSL...",
        "info",
        logger_to_use,
        app_settings,
    )
    check_nginx_configuration(app_settings, current_logger=logger_to_use)
    restart_service(
        static_config.NGINX_SERVICE_NAME,
        app_settings,
        current_logger=logger_to_use,
    )
    verify_nginx_active(app_settings, current_logger=logger_to_use)
    log_proxy_setup(
        f"{symbols.get('success', '✅')} Nginx restarted with SSL",
        "success",
        logger_to_use,
        app_settings,
    )
