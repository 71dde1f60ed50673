# setup/step_executor.py
# -*- coding: utf-8 -*-
"""
Provides functionality to execute individual setup steps.

A step is logged with a banner, run, and recorded in the state file when it
succeeds. When resuming, a step that is already recorded is only re-run if
the operator confirms.
"""

import logging
import subprocess
from typing import Any, Callable, Optional

from common.command_utils import get_symbols, log_proxy_setup
from setup.config_models import AppSettings
from setup.state_manager import is_step_completed, mark_step_completed

module_logger = logging.getLogger(__name__)

StepFunction = Callable[[AppSettings, Optional[logging.Logger]], Any]
RerunPrompt = Callable[[str, AppSettings, Optional[logging.Logger]], bool]


def execute_step(
    step_tag: str,
    step_description: str,
    step_function: StepFunction,
    app_settings: AppSettings,
    current_logger_instance: Optional[logging.Logger],
    prompt_user_for_rerun: RerunPrompt,
) -> bool:
    """
    Execute a single setup step.

    Args:
        step_tag: A unique string identifier for the step.
        step_description: A human-readable description of the step.
        step_function: The function to call. It receives (app_settings, logger)
            and may return False to signal failure; any exception is a failure.
        app_settings: The application settings object.
        current_logger_instance: The logger instance to use.
        prompt_user_for_rerun: Asks whether an already completed step should
            run again. Only consulted when app_settings.resume is set.

    Returns:
        True if the step succeeded or was skipped, False if it failed.
    """
    logger_to_use = (
        current_logger_instance if current_logger_instance else module_logger
    )
    symbols = get_symbols(app_settings)

    if app_settings.resume and is_step_completed(
        step_tag, app_settings=app_settings, current_logger=logger_to_use
    ):
        prompt = f"Step '{step_description}' ({step_tag}) is completed. Re-run anyway?"
        if not prompt_user_for_rerun(prompt, app_settings, logger_to_use):
            log_proxy_setup(
                f"{symbols.get('info', 'ℹ️')} Skipping re-run of step: {step_tag}",
                "info",
                logger_to_use,
                app_settings,
            )
            return True
        log_proxy_setup(
            f"{symbols.get('info', 'ℹ️')} User chose to re-run step: {step_tag}",
            "info",
            logger_to_use,
            app_settings,
        )

    log_proxy_setup(
        f"--- {symbols.get('step', '➡️')} Executing: {step_description} ({step_tag}) ---",
        "info",
        logger_to_use,
        app_settings,
    )
    try:
        step_result = step_function(app_settings, logger_to_use)
    except Exception as e:
        log_proxy_setup(
            f"{symbols.get('error', '❌')} FAILED: {step_description} ({step_tag})",
            "error",
            logger_to_use,
            app_settings,
        )
        log_proxy_setup(
            f"   Error details: {str(e)}",
            "error",
            logger_to_use,
            app_settings,
            exc_info=True,
        )
        return False

    if step_result is False:
        log_proxy_setup(
            f"{symbols.get('error', '❌')} Step function returned False: {step_description} ({step_tag})",
            "error",
            logger_to_use,
            app_settings,
        )
        return False

    try:
        mark_step_completed(
            step_tag, app_settings=app_settings, current_logger=logger_to_use
        )
    except (subprocess.CalledProcessError, OSError) as e:
        log_proxy_setup(
            f"{symbols.get('warning', '!')} Could not record step '{step_tag}' in the state file: {e}",
            "warning",
            logger_to_use,
            app_settings,
        )
    log_proxy_setup(
        f"--- {symbols.get('success', '✅')} Successfully completed: {step_description} ({step_tag}) ---",
        "success",
        logger_to_use,
        app_settings,
    )
    return True
