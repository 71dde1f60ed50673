# common/package_manager.py
# -*- coding: utf-8 -*-
"""
Thin wrappers around the native package managers of the supported
distributions (apt, yum, dnf, apk).
"""

import logging
from typing import List, Optional, Tuple, Union

from common.command_utils import (
    command_exists,
    run_elevated_command,
    run_elevated_command_ignoring_errors,
)
from setup.config_models import AppSettings


class PackageManager:
    """
    Base class for a command-line package manager.

    Subclasses describe the argument vectors of their tool; the base class
    runs them with elevated privileges and reports success as a boolean.
    """

    name: str = ""
    executable: str = ""
    update_args: Tuple[str, ...] = ()
    install_args: Tuple[str, ...] = ()
    remove_args: Tuple[str, ...] = ()
    autoremove_args: Tuple[str, ...] = ()
    # yum and dnf do not enable services on install, apt and apk setups do
    # not need it for nginx.
    enable_service_after_install: bool = False

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        if not command_exists(self.executable):
            self.logger.critical(
                f"'{self.executable}' command not found. This manager cannot function."
            )
            raise FileNotFoundError(
                f"'{self.executable}' not found. Is this a {self.name}-based system?"
            )

    @staticmethod
    def _as_list(packages: Union[List[str], str]) -> List[str]:
        return packages if isinstance(packages, list) else [packages]

    def update(
        self, app_settings: AppSettings, raise_error: bool = False
    ) -> bool:
        """
        Refreshes the package index. A no-op for managers without one.

        Returns:
            True if successful, False otherwise.
        """
        if not self.update_args:
            return True
        self.logger.info(f"Updating package lists via '{self.executable}'...")
        try:
            run_elevated_command(
                [self.executable, *self.update_args],
                app_settings,
                current_logger=self.logger,
            )
            self.logger.info("Package lists updated successfully.")
            return True
        except Exception as e:
            self.logger.error(f"Failed to update package lists: {e}")
            if raise_error:
                raise
            return False

    def install(
        self,
        packages: Union[List[str], str],
        app_settings: AppSettings,
        update_first: bool = False,
    ) -> bool:
        """
        Installs one or more packages.

        Args:
            packages: A single package name or a list of package names.
            app_settings: The application settings.
            update_first: Whether to refresh the package index before installing.

        Returns:
            True if successful, False otherwise.
        """
        packages = self._as_list(packages)
        if update_first and not self.update(app_settings):
            return False

        self.logger.info(f"Installing packages: {', '.join(packages)}")
        try:
            run_elevated_command(
                [self.executable, *self.install_args] + packages,
                app_settings,
                current_logger=self.logger,
            )
            self.logger.info("Packages installed successfully.")
            return True
        except Exception as e:
            self.logger.error(f"Failed to install packages: {e}")
            return False

    def remove(
        self,
        packages: Union[List[str], str],
        app_settings: AppSettings,
    ) -> None:
        """
        Removes packages. Failure is expected when they are not installed
        and is therefore ignored.
        """
        packages = self._as_list(packages)
        self.logger.info(f"Removing packages (if present): {', '.join(packages)}")
        run_elevated_command_ignoring_errors(
            [self.executable, *self.remove_args] + packages,
            app_settings,
            current_logger=self.logger,
        )

    def autoremove(self, app_settings: AppSettings) -> bool:
        """
        Removes automatically installed packages that are no longer needed.

        Returns:
            True if successful or unsupported, False otherwise.
        """
        if not self.autoremove_args:
            return True
        self.logger.info("Running autoremove to clean up unused packages...")
        try:
            run_elevated_command(
                [self.executable, *self.autoremove_args],
                app_settings,
                current_logger=self.logger,
            )
            self.logger.info("Autoremove completed successfully.")
            return True
        except Exception as e:
            self.logger.error(f"Failed to autoremove packages: {e}")
            return False


class AptManager(PackageManager):
    name = "apt"
    executable = "apt-get"
    update_args = ("update", "-yq")
    install_args = ("install", "-yq")
    remove_args = ("remove", "-yq")
    autoremove_args = ("autoremove", "-yq")


class YumManager(PackageManager):
    name = "yum"
    executable = "yum"
    install_args = ("install", "-y")
    remove_args = ("remove", "-y")
    enable_service_after_install = True


class DnfManager(PackageManager):
    name = "dnf"
    executable = "dnf"
    install_args = ("install", "-y")
    remove_args = ("remove", "-y")
    enable_service_after_install = True


class ApkManager(PackageManager):
    name = "apk"
    executable = "apk"
    install_args = ("add",)
    remove_args = ("del",)


PACKAGE_MANAGERS = {
    manager.name: manager
    for manager in (AptManager, YumManager, DnfManager, ApkManager)
}


def get_package_manager(
    manager_name: str, logger: Optional[logging.Logger] = None
) -> PackageManager:
    """
    Instantiates the package manager registered under manager_name.

    Raises:
        KeyError: No manager of that name is known.
        FileNotFoundError: The manager's executable is not installed.
    """
    return PACKAGE_MANAGERS[manager_name](logger=logger)
