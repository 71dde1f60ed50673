# common/command_utils.py
# -*- coding: utf-8 -*-
"""
Utilities for executing shell commands and logging their output.
"""

import logging
import os
import shutil
import subprocess
from typing import Dict, List, Optional

from setup.config_models import SYMBOLS_DEFAULT, AppSettings

module_logger = logging.getLogger(__name__)


def get_symbols(app_settings: Optional[AppSettings]) -> Dict[str, str]:
    """Return the log symbols of the given settings, or the defaults."""
    if app_settings is not None and getattr(app_settings, "symbols", None):
        return app_settings.symbols
    return SYMBOLS_DEFAULT


def log_proxy_setup(
    message: str,
    level: str = "info",
    current_logger: Optional[logging.Logger] = None,
    app_settings: Optional[AppSettings] = None,
    exc_info: bool = False,
) -> None:
    """
    Logs a setup message at the requested level.

    Args:
        message (str): The message to record.
        level (str): One of "debug", "info", "success", "warning", "error"
            or "critical". "success" and unknown levels are logged as info.
        current_logger (Optional[logging.Logger]): Logger to use. Falls back to
            the module logger.
        app_settings (Optional[AppSettings]): Settings of the current run.
            Accepted for a uniform call signature across helpers.
        exc_info (bool): Attach the active exception's traceback.
    """
    effective_logger = current_logger if current_logger else module_logger

    if level == "warning":
        effective_logger.warning(message, exc_info=exc_info)
    elif level == "error":
        effective_logger.error(message, exc_info=exc_info)
    elif level == "critical":
        effective_logger.critical(message, exc_info=exc_info)
    elif level == "debug":
        effective_logger.debug(message, exc_info=exc_info)
    else:
        effective_logger.info(message, exc_info=exc_info)


def _get_elevated_command_prefix() -> List[str]:
    """
    Returns ["sudo"] unless the process already runs as root.
    """
    return [] if os.geteuid() == 0 else ["sudo"]


def run_command(
    command: List[str],
    app_settings: Optional[AppSettings],
    check: bool = True,
    capture_output: bool = False,
    text: bool = True,
    cmd_input: Optional[str] = None,
    current_logger: Optional[logging.Logger] = None,
) -> subprocess.CompletedProcess:
    """
    Executes a system command, logging the invocation and, when captured,
    its output.

    Args:
        command (List[str]): The argument vector to execute.
        app_settings (Optional[AppSettings]): Settings providing log symbols.
        check (bool): Raise CalledProcessError on a non-zero exit code.
        capture_output (bool): Capture stdout and stderr instead of letting them
            reach the terminal. Interactive tools must run uncaptured.
        text (bool): Decode output streams as text.
        cmd_input (Optional[str]): Data written to the command's stdin.
        current_logger (Optional[logging.Logger]): Logger to use.

    Returns:
        subprocess.CompletedProcess: The finished process.

    Raises:
        subprocess.CalledProcessError: The command failed and check is True.
        FileNotFoundError: The executable does not exist.
    """
    effective_logger = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)

    log_proxy_setup(
        f"{symbols.get('gear', '⚙️')} Executing: {subprocess.list2cmdline(command)}",
        "info",
        effective_logger,
        app_settings,
    )
    try:
        result = subprocess.run(
            command,
            check=check,
            capture_output=capture_output,
            text=text,
            input=cmd_input,
        )
        if capture_output:
            if result.stdout and result.stdout.strip():
                log_proxy_setup(
                    f"   stdout: {result.stdout.strip()}",
                    "debug",
                    effective_logger,
                    app_settings,
                )
            if (
                result.stderr
                and result.stderr.strip()
                and (not check or result.returncode == 0)
            ):
                log_proxy_setup(
                    f"   stderr: {result.stderr.strip()}",
                    "debug",
                    effective_logger,
                    app_settings,
                )
        return result
    except subprocess.CalledProcessError as e:
        stdout_info = (
            e.stdout.strip()
            if e.stdout and hasattr(e.stdout, "strip")
            else "N/A"
        )
        stderr_info = (
            e.stderr.strip()
            if e.stderr and hasattr(e.stderr, "strip")
            else "N/A"
        )
        cmd_executed_str = (
            subprocess.list2cmdline(e.cmd)
            if isinstance(e.cmd, list)
            else str(e.cmd)
        )

        log_proxy_setup(
            f"{symbols.get('error', '❌')} Command `{cmd_executed_str}` failed (rc {e.returncode}).",
            "error",
            effective_logger,
            app_settings,
        )
        if stdout_info != "N/A":
            log_proxy_setup(
                f"   stdout: {stdout_info}",
                "error",
                effective_logger,
                app_settings,
            )
        if stderr_info != "N/A":
            log_proxy_setup(
                f"   stderr: {stderr_info}",
                "error",
                effective_logger,
                app_settings,
            )
        raise
    except FileNotFoundError as e:
        log_proxy_setup(
            f"{symbols.get('error', '❌')} Command not found: {e.filename}. Ensure it's installed and in PATH.",
            "error",
            effective_logger,
            app_settings,
        )
        raise


def run_elevated_command(
    command: List[str],
    app_settings: Optional[AppSettings],
    check: bool = True,
    capture_output: bool = False,
    cmd_input: Optional[str] = None,
    current_logger: Optional[logging.Logger] = None,
) -> subprocess.CompletedProcess:
    """
    Executes a command with root privileges, prefixing it with sudo when the
    current process is not root. Accepts the same options as run_command.
    """
    prefix = _get_elevated_command_prefix()
    elevated_command_list = prefix + list(command)
    return run_command(
        elevated_command_list,
        app_settings,
        check=check,
        capture_output=capture_output,
        text=True,
        cmd_input=cmd_input,
        current_logger=current_logger,
    )


def run_elevated_command_ignoring_errors(
    command: List[str],
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> Optional[subprocess.CompletedProcess]:
    """
    Runs a privileged cleanup command whose failure is expected and harmless,
    such as stopping a service that is not running or removing a package
    that is not installed.

    Output is captured so that the noise of the expected failure does not
    reach the console. A missing executable is reported as a warning.

    Returns:
        The completed process, or None when the executable was not found.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    try:
        result = run_elevated_command(
            command,
            app_settings,
            check=False,
            capture_output=True,
            current_logger=logger_to_use,
        )
    except FileNotFoundError:
        log_proxy_setup(
            f"{symbols.get('warning', '!')} Skipped `{subprocess.list2cmdline(command)}`: executable not found.",
            "warning",
            logger_to_use,
            app_settings,
        )
        return None
    if result.returncode != 0:
        log_proxy_setup(
            f"{symbols.get('info', 'ℹ️')} Ignoring failure of `{subprocess.list2cmdline(command)}` (rc {result.returncode}).",
            "debug",
            logger_to_use,
            app_settings,
        )
    return result


def command_exists(command_name: str) -> bool:
    """
    Check if a command exists in the system's PATH.
    """
    return shutil.which(command_name) is not None


def elevated_command_exists(
    command_name: str,
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """
    Checks whether a command is resolvable from root's PATH by running
    `which` with elevated privileges. Binaries such as nginx often live in
    /usr/sbin, which is not on every unprivileged user's PATH.

    Returns:
        bool: True if the command was found.
    """
    symbols = get_symbols(app_settings)
    try:
        run_elevated_command(
            ["which", command_name],
            app_settings,
            capture_output=True,
            check=True,
            current_logger=current_logger,
        )
        return True
    except subprocess.CalledProcessError:
        return False
    except FileNotFoundError:
        log_proxy_setup(
            f"{symbols.get('warning', '!')} Could not check for elevated command '{command_name}' as 'sudo' or 'which' may be missing.",
            "warning",
            current_logger,
            app_settings,
        )
        return False
