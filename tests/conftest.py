# tests/conftest.py
import logging
import os
from unittest.mock import MagicMock

import pytest

from setup.config_models import AppSettings, CertbotSettings, NginxSettings

UBUNTU_OS_RELEASE = """\
PRETTY_NAME="Ubuntu 24.04.1 LTS"
NAME="Ubuntu"
VERSION_ID="24.04"
VERSION="24.04.1 LTS (Noble Numbat)"
ID=ubuntu
ID_LIKE=debian
"""


@pytest.fixture
def mock_logger():
    return MagicMock(spec=logging.Logger)


@pytest.fixture
def app_settings(tmp_path):
    """AppSettings pointing every filesystem location into tmp_path."""
    return AppSettings(
        domain="example.org",
        email="admin@example.org",
        state_file_path=tmp_path / "state" / "progress_state.txt",
        os_release_path=tmp_path / "os-release",
        nginx=NginxSettings(conf_dir=tmp_path / "nginx"),
        certbot=CertbotSettings(live_dir=tmp_path / "letsencrypt" / "live"),
    )


@pytest.fixture
def ubuntu_os_release(app_settings):
    app_settings.os_release_path.write_text(UBUNTU_OS_RELEASE, encoding="utf-8")
    return app_settings.os_release_path


@pytest.fixture
def fake_executables(tmp_path, monkeypatch, mocker):
    """
    Puts shell scripts named after real tools first on PATH and runs
    privileged commands without sudo, so command output can be observed.
    """
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
    mocker.patch(
        "common.command_utils._get_elevated_command_prefix", return_value=[]
    )

    def install(name, script):
        executable = bin_dir / name
        executable.write_text(f"#!/bin/sh\n{script}\n")
        executable.chmod(0o755)
        return executable

    return install
