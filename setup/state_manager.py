# setup/state_manager.py
# -*- coding: utf-8 -*-
"""
Manages the state file for tracking setup progress.

The file holds a header naming the domain the recorded progress belongs to,
followed by one completed step tag per line. Progress recorded for another
domain is discarded.
"""

import datetime
import logging
import re
from typing import List, Optional

from common.command_utils import (
    get_symbols,
    log_proxy_setup,
    run_elevated_command,
)
from setup import config as static_config
from setup.config_models import AppSettings

module_logger = logging.getLogger(__name__)

_DOMAIN_HEADER = re.compile(r"^# DOMAIN:\s*(\S+)", re.MULTILINE)


def _state_header(app_settings: AppSettings) -> str:
    return (
        f"# DOMAIN: {app_settings.domain}\n"
        f"# Human-readable Script Version: {static_config.SCRIPT_VERSION}\n"
        f"# State initialized on {datetime.datetime.now().isoformat()}\n"
    )


def _read_state_file(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> Optional[str]:
    """Return the state file content, or None if it cannot be read."""
    result = run_elevated_command(
        ["cat", str(app_settings.state_file_path)],
        app_settings,
        check=False,
        capture_output=True,
        current_logger=current_logger,
    )
    if result.returncode != 0:
        return None
    return result.stdout or ""


def initialize_state_system(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    Ensures the state directory and file exist and that the recorded
    progress belongs to the configured domain.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    state_dir = app_settings.state_file_path.parent

    if not state_dir.is_dir():
        log_proxy_setup(
            f"{symbols.get('info', 'ℹ️')} Creating state directory: {state_dir}",
            "info",
            logger_to_use,
            app_settings,
        )
        run_elevated_command(
            ["mkdir", "-p", str(state_dir)],
            app_settings,
            current_logger=logger_to_use,
        )
        run_elevated_command(
            ["chmod", "750", str(state_dir)],
            app_settings,
            current_logger=logger_to_use,
        )

    content = _read_state_file(app_settings, current_logger=logger_to_use)
    if content is None:
        log_proxy_setup(
            f"{symbols.get('info', 'ℹ️')} State file {app_settings.state_file_path} does not exist. Initializing.",
            "info",
            logger_to_use,
            app_settings,
        )
        clear_state_file(app_settings, current_logger=logger_to_use)
        return

    match = _DOMAIN_HEADER.search(content)
    stored_domain = match.group(1) if match else None
    if stored_domain != app_settings.domain:
        log_proxy_setup(
            f"{symbols.get('warning', '!')} State file belongs to domain '{stored_domain}', "
            f"not '{app_settings.domain}'. Clearing recorded progress.",
            "warning",
            logger_to_use,
            app_settings,
        )
        clear_state_file(app_settings, current_logger=logger_to_use)


def clear_state_file(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    log_proxy_setup(
        f"{symbols.get('info', 'ℹ️')} Clearing state file: {app_settings.state_file_path}",
        "info",
        logger_to_use,
        app_settings,
    )
    run_elevated_command(
        ["tee", str(app_settings.state_file_path)],
        app_settings,
        cmd_input=_state_header(app_settings),
        capture_output=True,
        current_logger=logger_to_use,
    )
    run_elevated_command(
        ["chmod", "640", str(app_settings.state_file_path)],
        app_settings,
        current_logger=logger_to_use,
    )


def is_step_completed(
    step_tag: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    result = run_elevated_command(
        ["grep", "-Fxq", step_tag, str(app_settings.state_file_path)],
        app_settings,
        check=False,
        capture_output=True,
        current_logger=current_logger,
    )
    return result.returncode == 0


def mark_step_completed(
    step_tag: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    if is_step_completed(step_tag, app_settings, current_logger=logger_to_use):
        log_proxy_setup(
            f"{symbols.get('info', 'ℹ️')} Step '{step_tag}' was already marked as completed.",
            "debug",
            logger_to_use,
            app_settings,
        )
        return
    log_proxy_setup(
        f"{symbols.get('info', 'ℹ️')} Marking step '{step_tag}' as completed.",
        "debug",
        logger_to_use,
        app_settings,
    )
    run_elevated_command(
        ["tee", "-a", str(app_settings.state_file_path)],
        app_settings,
        cmd_input=f"{step_tag}\n",
        capture_output=True,
        current_logger=logger_to_use,
    )


def view_completed_steps(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> List[str]:
    """Return the completed step tags in the order they finished."""
    content = _read_state_file(app_settings, current_logger=current_logger)
    if not content:
        return []
    return [
        line.strip()
        for line in content.splitlines()
        if line.strip() and not line.startswith("#")
    ]
