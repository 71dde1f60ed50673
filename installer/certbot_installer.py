# installer/certbot_installer.py
# -*- coding: utf-8 -*-
"""
This module handles the installation of Certbot and its Nginx plugin.
"""

import logging
from typing import Dict, List, Optional

from common.command_utils import command_exists, get_symbols, log_proxy_setup
from common.package_manager import get_package_manager
from common.system_utils import detect_os_release, resolve_package_manager_name
from setup.config_models import AppSettings

module_logger = logging.getLogger(__name__)

CERTBOT_PACKAGES = ["certbot", "python3-certbot-nginx"]

# Package managers for which certbot is installed automatically, and
# whether the package index is refreshed first.
CERTBOT_INSTALL_UPDATE_FIRST: Dict[str, bool] = {
    "apt": True,
    "yum": False,
}


def install_certbot(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
    packages: Optional[List[str]] = None,
) -> None:
    """
    Installs Certbot and the Nginx plugin unless certbot is already on PATH.

    Args:
        app_settings (AppSettings): The application settings object.
        current_logger (Optional[logging.Logger]): A logger instance for logging messages.
        packages (Optional[List[str]]): Packages to install instead of the defaults.

    Raises:
        EnvironmentError: The distribution has no automated certbot install.
        RuntimeError: The package manager failed.
    """
    logger_to_use = current_logger or module_logger
    symbols = get_symbols(app_settings)

    log_proxy_setup(
        f"{symbols.get('package', '📦')} Installing certbot...",
        "info",
        logger_to_use,
        app_settings,
    )
    if command_exists("certbot"):
        log_proxy_setup(
            f"{symbols.get('success', '✅')} Certbot already installed",
            "success",
            logger_to_use,
            app_settings,
        )
        return

    os_release = detect_os_release(app_settings, current_logger=logger_to_use)
    manager_name = resolve_package_manager_name(os_release)
    if manager_name not in CERTBOT_INSTALL_UPDATE_FIRST:
        log_proxy_setup(
            f"{symbols.get('error', '❌')} Please install certbot manually for your OS",
            "error",
            logger_to_use,
            app_settings,
        )
        raise EnvironmentError(
            f"Automatic certbot installation is not supported on {os_release.name}."
        )

    package_manager = get_package_manager(manager_name, logger=logger_to_use)
    if not package_manager.install(
        packages or CERTBOT_PACKAGES,
        app_settings,
        update_first=CERTBOT_INSTALL_UPDATE_FIRST[manager_name],
    ):
        log_proxy_setup(
            f"{symbols.get('error', '❌')} Failed to install Certbot packages",
            "error",
            logger_to_use,
            app_settings,
        )
        raise RuntimeError("Certbot installation failed.")

    log_proxy_setup(
        f"{symbols.get('success', '✅')} Certbot installed",
        "success",
        logger_to_use,
        app_settings,
    )
