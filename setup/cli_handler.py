# setup/cli_handler.py
# -*- coding: utf-8 -*-
"""
Handles Command Line Interface (CLI) interactions for the proxy setup.
"""

import argparse
import logging
import sys
from typing import List, Optional

from common.command_utils import get_symbols, log_proxy_setup
from setup import config as static_config
from setup.config_models import AppSettings

module_logger = logging.getLogger(__name__)

EXAMPLE_USAGE = "yourdomain.com admin@yourdomain.com"


class SetupArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with status 1 and prints an example on misuse."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        print(f"{self.prog}: error: {message}", file=sys.stderr)
        print(f"Example: {self.prog} {EXAMPLE_USAGE}", file=sys.stderr)
        sys.exit(1)


def build_argument_parser(prog: Optional[str] = None) -> SetupArgumentParser:
    parser = SetupArgumentParser(
        prog=prog,
        description="Set up nginx as a reverse proxy with a Let's Encrypt "
        "wildcard certificate for TribeNest.",
        epilog=f"Example: %(prog)s {EXAMPLE_USAGE}",
    )
    parser.add_argument("domain", help="Bare domain to serve, e.g. yourdomain.com.")
    parser.add_argument("email", help="Let's Encrypt registration email.")
    parser.add_argument(
        "--config",
        dest="config_file",
        default="config.yaml",
        help="YAML configuration file (default: %(default)s).",
    )
    parser.add_argument(
        "--site-name",
        dest="site_name",
        default=None,
        help="Nginx site file name (default: tribenest).",
    )
    parser.add_argument(
        "--upstream-port",
        dest="upstream_port",
        type=int,
        default=None,
        help="Port of the proxied application (default: 3000).",
    )
    parser.add_argument(
        "--staging",
        action="store_true",
        default=None,
        help="Request a certificate from the Let's Encrypt staging environment.",
    )
    parser.add_argument(
        "--non-interactive",
        dest="interactive",
        action="store_false",
        default=None,
        help="Do not pause before starting the DNS challenge.",
    )
    parser.add_argument(
        "--resume",
        action="store_true",
        default=None,
        help="Offer to skip steps already recorded as completed.",
    )
    parser.add_argument(
        "--log-file",
        dest="log_file",
        default=None,
        help="Also write JSON log lines to this file.",
    )
    actions = parser.add_mutually_exclusive_group()
    actions.add_argument(
        "--view-config",
        action="store_true",
        help="Print the effective configuration and exit.",
    )
    actions.add_argument(
        "--view-state",
        action="store_true",
        help="List the completed steps and exit.",
    )
    actions.add_argument(
        "--clear-state",
        action="store_true",
        help="Forget recorded progress and exit.",
    )
    return parser


def cli_prompt_for_rerun(
    prompt_message: str,
    app_settings: AppSettings,
    current_logger_instance: Optional[logging.Logger] = None,
) -> bool:
    """
    Asks a yes/no question on the terminal. Anything but "y" (including end
    of input) means no.
    """
    logger_to_use = (
        current_logger_instance if current_logger_instance else module_logger
    )
    symbols = get_symbols(app_settings)
    try:
        user_input = (
            input(f"   {symbols.get('info', 'ℹ️')} {prompt_message} (y/N): ")
            .strip()
            .lower()
        )
        return user_input == "y"
    except EOFError:
        log_proxy_setup(
            f"{symbols.get('warning', '!')} No user input (EOF), defaulting to 'N' for prompt: '{prompt_message}'",
            "warning",
            logger_to_use,
            app_settings,
        )
        return False


def format_configuration(app_config: AppSettings) -> str:
    """Render the effective configuration as aligned text."""
    symbols = get_symbols(app_config)
    lines: List[str] = [
        f"{symbols.get('info', 'ℹ️')} Current effective configuration values (CLI > YAML > ENV > Defaults):",
        "",
        f"  Domain:                        {app_config.domain}",
        f"  Email:                         {app_config.email}",
        f"  Log Prefix:                    {app_config.log_prefix}",
        f"  State File:                    {app_config.state_file_path}",
        f"  Interactive:                   {app_config.interactive}",
        "",
        "  Nginx Settings (nginx.*):",
        f"    Site Name:                   {app_config.nginx.site_name}",
        f"    Config Directory:            {app_config.nginx.conf_dir}",
        f"    Upstream:                    {app_config.nginx.upstream_host}:{app_config.nginx.upstream_port}",
        f"    Client Max Body Size:        {app_config.nginx.client_max_body_size}",
        f"    Proxy Timeout:               {app_config.nginx.proxy_timeout}",
        f"    Conflicting Services:        {', '.join(app_config.nginx.conflicting_services)}",
        "",
        "  Certbot Settings (certbot.*):",
        f"    Live Directory:              {app_config.certbot.live_dir}",
        f"    Preferred Challenges:        {app_config.certbot.preferred_challenges}",
        f"    Include Wildcard:            {app_config.certbot.include_wildcard}",
        f"    Staging:                     {app_config.certbot.staging}",
        "",
        f"  Script Version:                {static_config.SCRIPT_VERSION}",
    ]
    return "\n".join(lines)


def view_configuration(
    app_config: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    logger_to_use = current_logger if current_logger else module_logger
    log_proxy_setup(
        format_configuration(app_config), "info", logger_to_use, app_config
    )
