# installer/nginx_installer.py
# -*- coding: utf-8 -*-
"""
Reinstalls Nginx from the distribution's package repositories.
"""

import logging
from typing import Optional

from common.command_utils import (
    elevated_command_exists,
    get_symbols,
    log_proxy_setup,
)
from common.package_manager import get_package_manager
from common.system_utils import (
    detect_os_release,
    enable_service,
    get_nginx_version,
    resolve_package_manager_name,
    stop_service,
)
from setup import config as static_config
from setup.config_models import AppSettings

module_logger = logging.getLogger(__name__)

NGINX_PACKAGE_NAME = "nginx"
# Debian splits nginx over several packages; all of them go on reinstall.
APT_NGINX_PACKAGES = ["nginx", "nginx-common", "nginx-full"]


def reinstall_nginx(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """
    Removes any existing Nginx package and installs a fresh one with the
    native package manager of the detected distribution.

    Raises:
        EnvironmentError: The OS cannot be detected or is unsupported, or
            nginx is not available after installation.
        RuntimeError: The package manager failed to install nginx.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)

    log_proxy_setup(
        f"{symbols.get('step', '➡️')} Reinstalling nginx...",
        "info",
        logger_to_use,
        app_settings,
    )
    os_release = detect_os_release(app_settings, current_logger=logger_to_use)
    manager_name = resolve_package_manager_name(os_release)
    if manager_name is None:
        log_proxy_setup(
            f"{symbols.get('error', '❌')} Unsupported OS: {os_release.name}",
            "error",
            logger_to_use,
            app_settings,
        )
        raise EnvironmentError(
            f"Unsupported OS: {os_release.name}. "
            "Please install nginx manually for your OS and run this script again."
        )

    log_proxy_setup(
        "   Stopping nginx service...", "info", logger_to_use, app_settings
    )
    stop_service(
        static_config.NGINX_SERVICE_NAME,
        app_settings,
        current_logger=logger_to_use,
    )

    package_manager = get_package_manager(manager_name, logger=logger_to_use)
    log_proxy_setup(
        f"   Using {package_manager.name} package manager...",
        "info",
        logger_to_use,
        app_settings,
    )

    if manager_name == "apt":
        package_manager.update(app_settings, raise_error=True)
        package_manager.remove(APT_NGINX_PACKAGES, app_settings)
        if not package_manager.autoremove(app_settings):
            raise RuntimeError("Package autoremove failed.")
    else:
        package_manager.remove(NGINX_PACKAGE_NAME, app_settings)

    if not package_manager.install(NGINX_PACKAGE_NAME, app_settings):
        raise RuntimeError(
            f"Installing '{NGINX_PACKAGE_NAME}' with {package_manager.name} failed."
        )

    if package_manager.enable_service_after_install:
        enable_service(
            static_config.NGINX_SERVICE_NAME,
            app_settings,
            current_logger=logger_to_use,
        )

    ensure_nginx_command_available(app_settings, current_logger=logger_to_use)


def ensure_nginx_command_available(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """
    Verifies the nginx binary is reachable and logs its version.

    Raises:
        EnvironmentError: nginx cannot be found.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)

    if not elevated_command_exists(
        "nginx", app_settings, current_logger=logger_to_use
    ):
        log_proxy_setup(
            f"{symbols.get('error', '❌')} Nginx installation failed",
            "error",
            logger_to_use,
            app_settings,
        )
        raise EnvironmentError(
            "Nginx command not found after installation."
        )

    log_proxy_setup(
        f"{symbols.get('success', '✅')} Nginx reinstalled successfully",
        "success",
        logger_to_use,
        app_settings,
    )
    version = get_nginx_version(app_settings, current_logger=logger_to_use)
    log_proxy_setup(
        f"   Version: {version or 'unknown'}",
        "info",
        logger_to_use,
        app_settings,
    )
