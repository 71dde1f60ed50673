# common/system_utils.py
# -*- coding: utf-8 -*-
"""
System-level utility functions for the proxy setup script.

This module includes distribution detection from os-release, systemd
service management and a port occupancy check.
"""

import logging
import re
import shlex
import subprocess
from pathlib import Path
from typing import Dict, Optional

from common.command_utils import (
    command_exists,
    get_symbols,
    log_proxy_setup,
    run_elevated_command,
    run_elevated_command_ignoring_errors,
)
from setup.config_models import AppSettings, OsRelease

module_logger = logging.getLogger(__name__)

# Substring of os-release NAME -> package manager family. Order matters:
# the first family with a matching substring wins.
OS_NAME_TO_PACKAGE_MANAGER = (
    (("Ubuntu", "Debian"), "apt"),
    (("CentOS", "Red Hat", "Amazon Linux"), "yum"),
    (("Alpine",), "apk"),
    (("Fedora",), "dnf"),
)


def parse_os_release(content: str) -> Dict[str, str]:
    """Parse KEY=value lines of an os-release file, honouring shell quoting."""
    values: Dict[str, str] = {}
    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, raw_value = line.partition("=")
        try:
            parts = shlex.split(raw_value)
        except ValueError:
            parts = [raw_value.strip("\"'")]
        values[key.strip()] = parts[0] if parts else ""
    return values


def detect_os_release(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> OsRelease:
    """
    Reads the os-release file configured in app_settings.

    Raises:
        EnvironmentError: The file does not exist or has no NAME entry.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    os_release_path = Path(app_settings.os_release_path)

    if not os_release_path.is_file():
        log_proxy_setup(
            f"{symbols.get('error', '❌')} Could not detect OS: {os_release_path} not found.",
            "error",
            logger_to_use,
            app_settings,
        )
        raise EnvironmentError(
            "Could not detect OS. Please install nginx manually and run this script again."
        )

    values = parse_os_release(os_release_path.read_text(encoding="utf-8"))
    if not values.get("NAME"):
        raise EnvironmentError(
            f"Could not detect OS: {os_release_path} has no NAME entry."
        )

    os_release = OsRelease(
        name=values["NAME"],
        version_id=values.get("VERSION_ID", ""),
    )
    log_proxy_setup(
        f"   Detected OS: {os_release.name} {os_release.version_id}",
        "info",
        logger_to_use,
        app_settings,
    )
    return os_release


def resolve_package_manager_name(os_release: OsRelease) -> Optional[str]:
    """Return "apt", "yum", "apk" or "dnf" for a supported OS, else None."""
    for name_fragments, manager_name in OS_NAME_TO_PACKAGE_MANAGER:
        if any(fragment in os_release.name for fragment in name_fragments):
            return manager_name
    return None


def stop_service(
    service_name: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """Stops a systemd service, ignoring failures (service absent or stopped)."""
    run_elevated_command_ignoring_errors(
        ["systemctl", "stop", service_name],
        app_settings,
        current_logger=current_logger,
    )


def enable_service(
    service_name: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    run_elevated_command(
        ["systemctl", "enable", service_name],
        app_settings,
        current_logger=current_logger,
    )


def start_service(
    service_name: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    run_elevated_command(
        ["systemctl", "start", service_name],
        app_settings,
        current_logger=current_logger,
    )


def restart_service(
    service_name: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    run_elevated_command(
        ["systemctl", "restart", service_name],
        app_settings,
        current_logger=current_logger,
    )


def is_service_active(
    service_name: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """Return True when `systemctl is-active --quiet` succeeds."""
    result = run_elevated_command(
        ["systemctl", "is-active", "--quiet", service_name],
        app_settings,
        check=False,
        capture_output=True,
        current_logger=current_logger,
    )
    return result.returncode == 0


def show_service_journal(
    service_name: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
    lines: int = 10,
) -> None:
    """
    Prints the last journal lines of a service to the terminal. The output
    is not captured; a failing or missing journalctl is only logged.
    """
    logger_to_use = current_logger if current_logger else module_logger
    try:
        run_elevated_command(
            ["journalctl", "-u", service_name, "--no-pager", "-n", str(lines)],
            app_settings,
            check=False,
            current_logger=logger_to_use,
        )
    except FileNotFoundError:
        log_proxy_setup(
            f"{get_symbols(app_settings).get('warning', '!')} journalctl is not available; no service log to show.",
            "warning",
            logger_to_use,
            app_settings,
        )


def is_port_in_use(
    port: int,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """
    Checks `netstat -tlnp` for a listener on the given port.

    Returns False when netstat is not installed, as the check is only a
    best-effort hint for stopping conflicting web servers.
    """
    logger_to_use = current_logger if current_logger else module_logger
    if not command_exists("netstat"):
        log_proxy_setup(
            "   netstat not available; skipping port check.",
            "debug",
            logger_to_use,
            app_settings,
        )
        return False

    try:
        result = run_elevated_command(
            ["netstat", "-tlnp"],
            app_settings,
            check=False,
            capture_output=True,
            current_logger=logger_to_use,
        )
    except FileNotFoundError:
        return False

    listener = re.compile(rf":{port}\s")
    return any(
        listener.search(line) for line in (result.stdout or "").splitlines()
    )


def get_nginx_version(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> Optional[str]:
    """
    Returns the version reported by `nginx -v` ("nginx version: nginx/1.24.0"
    gives "1.24.0"), or None if it cannot be determined.
    """
    symbols = get_symbols(app_settings)
    try:
        result = run_elevated_command(
            ["nginx", "-v"],
            app_settings,
            check=False,
            capture_output=True,
            current_logger=current_logger,
        )
    except (FileNotFoundError, subprocess.SubprocessError) as e:
        log_proxy_setup(
            f"{symbols.get('warning', '!')} Could not query nginx version: {e}",
            "warning",
            current_logger,
            app_settings,
        )
        return None
    # nginx prints its version banner on stderr.
    banner = (result.stderr or result.stdout or "").strip()
    if "/" not in banner:
        return None
    return banner.split("/")[1].strip()
