# setup/main_installer.py
# -*- coding: utf-8 -*-
"""
Main entry point and orchestrator for the TribeNest proxy setup.

Handles argument parsing, logging setup, and runs the provisioning steps in
their fixed order. The first failing step aborts the run.
"""

import logging
import subprocess
import sys
from typing import List, Optional, Tuple

from common.command_utils import get_symbols, log_proxy_setup
from common.logging_config import setup_logging
from common.network_utils import normalize_domain, validate_domain, validate_email
from configure.certbot_configurator import obtain_wildcard_certificate
from configure.nginx_configurator import (
    clean_existing_nginx_configuration,
    install_http_site,
    install_https_site,
    restart_nginx_service,
    start_nginx_service,
)
from installer.certbot_installer import install_certbot
from installer.nginx_installer import reinstall_nginx
from setup.cli_handler import (
    build_argument_parser,
    cli_prompt_for_rerun,
    view_configuration,
)
from setup.config_loader import load_app_settings
from setup.config_models import AppSettings
from setup.state_manager import (
    clear_state_file,
    initialize_state_system,
    view_completed_steps,
)
from setup.step_executor import StepFunction, execute_step

logger = logging.getLogger(__name__)

SETUP_STEPS: List[Tuple[str, str, StepFunction]] = [
    ("CLEAN_NGINX_CONFIG", "Check and clean existing nginx configurations", clean_existing_nginx_configuration),
    ("REINSTALL_NGINX", "Reinstall nginx", reinstall_nginx),
    ("NGINX_HTTP_SITE", "Add nginx HTTP site configuration", install_http_site),
    ("NGINX_START", "Test and start nginx", start_nginx_service),
    ("CERTBOT_INSTALL", "Install certbot", install_certbot),
    ("CERTBOT_WILDCARD_CERT", "Generate wildcard SSL certificate", obtain_wildcard_certificate),
    ("NGINX_HTTPS_SITE", "Update nginx configuration with SSL", install_https_site),
    ("NGINX_RESTART", "Restart nginx with SSL", restart_nginx_service),
]


def run_setup_steps(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> bool:
    """Run every step in order. Returns False at the first failure."""
    logger_to_use = current_logger if current_logger else logger
    for step_number, (tag, description, step_function) in enumerate(SETUP_STEPS):
        if not execute_step(
            tag,
            f"{step_number}. {description}",
            step_function,
            app_settings,
            logger_to_use,
            cli_prompt_for_rerun,
        ):
            return False
    return True


def print_summary(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    logger_to_use = current_logger if current_logger else logger
    symbols = get_symbols(app_settings)
    for message in (
        f"{symbols.get('party', '🎉')} Setup complete!",
        f"Your site is now available at: https://{app_settings.domain}",
        "To check nginx status: sudo systemctl status nginx",
        "To view nginx logs: sudo journalctl -u nginx",
    ):
        log_proxy_setup(message, "success", logger_to_use, app_settings)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Parses arguments, loads settings and provisions the proxy.

    Returns:
        0 on success, 1 on any failure.
    """
    parser = build_argument_parser()
    args = parser.parse_args(argv)

    app_settings = load_app_settings(
        cli_args=args, config_file_path=args.config_file
    )
    setup_logging(app_settings.log_prefix, log_file_path=args.log_file)
    symbols = get_symbols(app_settings)
    # Same form certbot uses for the live/<domain> directory.
    app_settings.domain = normalize_domain(app_settings.domain)

    if args.view_config:
        view_configuration(app_settings, logger)
        return 0
    if args.view_state:
        completed = view_completed_steps(app_settings, logger)
        log_proxy_setup(
            f"{symbols.get('info', 'ℹ️')} Completed steps: {', '.join(completed) if completed else 'none'}",
            "info",
            logger,
            app_settings,
        )
        return 0

    if not validate_domain(app_settings.domain, app_settings, logger):
        log_proxy_setup(
            f"{symbols.get('error', '❌')} Invalid domain: {app_settings.domain}",
            "error",
            logger,
            app_settings,
        )
        return 1
    if not validate_email(app_settings.email, app_settings, logger):
        log_proxy_setup(
            f"{symbols.get('error', '❌')} Invalid email: {app_settings.email}",
            "error",
            logger,
            app_settings,
        )
        return 1

    try:
        if args.clear_state:
            clear_state_file(app_settings, logger)
            return 0
        initialize_state_system(app_settings, logger)
    except (subprocess.CalledProcessError, OSError) as e:
        if args.clear_state:
            log_proxy_setup(
                f"{symbols.get('error', '❌')} Could not clear state file: {e}",
                "error",
                logger,
                app_settings,
            )
            return 1
        log_proxy_setup(
            f"{symbols.get('warning', '!')} State tracking unavailable: {e}",
            "warning",
            logger,
            app_settings,
        )

    log_proxy_setup(
        f"{symbols.get('rocket', '🚀')} Setting up Nginx for TribeNest...",
        "info",
        logger,
        app_settings,
    )
    log_proxy_setup(f"Domain: {app_settings.domain}", "info", logger, app_settings)
    log_proxy_setup(f"Email: {app_settings.email}", "info", logger, app_settings)

    if not run_setup_steps(app_settings, logger):
        log_proxy_setup(
            f"{symbols.get('critical', '🔥')} Setup aborted. Fix the error above and rerun the script.",
            "critical",
            logger,
            app_settings,
        )
        return 1

    print_summary(app_settings, logger)
    return 0


if __name__ == "__main__":
    sys.exit(main())
