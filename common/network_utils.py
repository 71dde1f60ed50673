# common/network_utils.py
# -*- coding: utf-8 -*-
"""
Network-related utility functions.
"""
import ipaddress
import logging
import re
from typing import Optional

from setup.config_models import AppSettings

from .command_utils import get_symbols, log_proxy_setup

module_logger = logging.getLogger(__name__)

_HOSTNAME_LABEL = re.compile(r"^(?!-)[a-z0-9-]{1,63}(?<!-)$")
_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_domain(domain: str) -> str:
    """Lowercase the domain and drop surrounding whitespace and a root dot."""
    return domain.strip().lower().rstrip(".")


def validate_domain(
    domain: str,
    app_settings: Optional[AppSettings] = None,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """
    Checks that domain is a bare fully qualified host name, usable both in an
    nginx server_name directive and as a certbot -d argument.

    Wildcards, IP addresses, single-label names and anything containing
    whitespace or nginx syntax characters are rejected. So are upper case
    letters and a trailing dot: certbot names the certificate directory
    after the normalized form (see normalize_domain).
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)

    def reject(reason: str) -> bool:
        log_proxy_setup(
            f"{symbols.get('warning', '!')} Domain '{domain}' {reason}.",
            "warning",
            logger_to_use,
            app_settings,
        )
        return False

    if not isinstance(domain, str) or not domain:
        return reject("is empty")
    if len(domain) > 253:
        return reject("is longer than 253 characters")
    if domain.startswith("*."):
        return reject("must be the bare domain; the wildcard is added automatically")
    try:
        ipaddress.ip_address(domain)
        return reject("is an IP address; certificates require a domain name")
    except ValueError:
        pass

    if domain != normalize_domain(domain):
        return reject("must be lower case without a trailing dot")

    labels = domain.split(".")
    if len(labels) < 2:
        return reject("is not a fully qualified domain name")
    for label in labels:
        if not _HOSTNAME_LABEL.match(label):
            return reject(f"has an invalid label '{label}'")
    if labels[-1].isdigit():
        return reject("has a numeric top-level label")
    return True


def validate_email(
    email: str,
    app_settings: Optional[AppSettings] = None,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """Loose local@domain check for the Let's Encrypt registration address."""
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    if isinstance(email, str) and _EMAIL.match(email):
        return True
    log_proxy_setup(
        f"{symbols.get('warning', '!')} Email '{email}' does not look like a valid address.",
        "warning",
        logger_to_use,
        app_settings,
    )
    return False
