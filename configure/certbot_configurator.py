# configure/certbot_configurator.py
# -*- coding: utf-8 -*-
"""
Obtains a Let's Encrypt wildcard certificate with Certbot's manual DNS-01
challenge. The operator publishes the TXT record; certbot prompts for it.
"""
import logging
import subprocess
from typing import List, Optional

from common.command_utils import (
    get_symbols,
    log_proxy_setup,
    run_elevated_command,
)
from setup import config as static_config
from setup.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def build_certbot_command(app_settings: AppSettings) -> List[str]:
    """Assemble the `certbot certonly --manual` invocation for the domain."""
    certbot_settings = app_settings.certbot
    domain = app_settings.domain
    certbot_cmd = [
        "certbot",
        "certonly",
        "--manual",
        f"--preferred-challenges={certbot_settings.preferred_challenges}",
        "-d",
        domain,
    ]
    if certbot_settings.include_wildcard:
        certbot_cmd += ["-d", f"*.{domain}"]
    certbot_cmd += ["--agree-tos", "--email", app_settings.email]
    if certbot_settings.staging:
        certbot_cmd.append("--test-cert")
    return certbot_cmd


def show_dns_challenge_instructions(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    domain = app_settings.domain
    log_proxy_setup(
        f"{symbols.get('warning', '!')} IMPORTANT: For wildcard certificates, you need to add DNS TXT records.",
        "warning",
        logger_to_use,
        app_settings,
    )
    log_proxy_setup(
        f"{symbols.get('warning', '!')} Make sure your domain {domain} points to this server's IP address",
        "warning",
        logger_to_use,
        app_settings,
    )
    log_proxy_setup(
        "The certificate generation will pause and ask you to add DNS records.",
        "info",
        logger_to_use,
        app_settings,
    )
    log_proxy_setup(
        f"You'll need to add a TXT record for {static_config.ACME_CHALLENGE_RECORD_PREFIX}.{domain}",
        "info",
        logger_to_use,
        app_settings,
    )


def wait_for_operator(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """Blocks until Enter is pressed. End of input counts as confirmation."""
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    try:
        input("Press Enter when you're ready to continue...")
    except EOFError:
        log_proxy_setup(
            f"{symbols.get('warning', '!')} No user input (EOF), continuing.",
            "warning",
            logger_to_use,
            app_settings,
        )


def obtain_wildcard_certificate(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """
    Runs certbot attached to the terminal so the operator can follow its
    TXT record instructions.

    Raises:
        RuntimeError: certbot exited with a non-zero status.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    domain = app_settings.domain

    log_proxy_setup(
        f"{symbols.get('step', '➡️')} Generating wildcard SSL certificate...",
        "info",
        logger_to_use,
        app_settings,
    )
    show_dns_challenge_instructions(app_settings, current_logger=logger_to_use)
    if app_settings.interactive:
        wait_for_operator(app_settings, current_logger=logger_to_use)

    log_proxy_setup(
        f"{symbols.get('rocket', '🚀')} Starting wildcard certificate generation...",
        "info",
        logger_to_use,
        app_settings,
    )
    log_proxy_setup(
        f"{symbols.get('memo', '📝')} Certbot will pause and ask you to add DNS records. "
        "Look for the TXT record instructions in the output below.",
        "info",
        logger_to_use,
        app_settings,
    )

    try:
        run_elevated_command(
            build_certbot_command(app_settings),
            app_settings,
            current_logger=logger_to_use,
            check=True,
        )
    except subprocess.CalledProcessError as e:
        log_proxy_setup(
            f"{symbols.get('error', '❌')} Certbot command FAILED. Please check "
            f"Certbot logs (usually in {static_config.LETSENCRYPT_LOG_DIR}/) for detailed "
            "error messages.",
            "error",
            logger_to_use,
            app_settings,
        )
        raise RuntimeError(
            f"Certbot execution failed for domain {domain}."
        ) from e

    log_proxy_setup(
        f"{symbols.get('success', '✅')} Wildcard SSL certificate generated",
        "success",
        logger_to_use,
        app_settings,
    )
