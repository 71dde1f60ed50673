import subprocess
from pathlib import Path

import pytest

from setup.state_manager import (
    clear_state_file,
    initialize_state_system,
    is_step_completed,
    mark_step_completed,
    view_completed_steps,
)


def fake_elevated_command(
    command, app_settings, check=True, capture_output=False, cmd_input=None, **kwargs
):
    """Carries out the few file commands the state manager issues on tmp_path."""
    program, args = command[0], command[1:]
    if program == "cat":
        path = Path(args[0])
        if not path.exists():
            return subprocess.CompletedProcess(command, 1, stdout="", stderr="")
        return subprocess.CompletedProcess(command, 0, stdout=path.read_text())
    if program == "tee":
        mode = "a" if args[0] == "-a" else "w"
        with open(args[-1], mode) as handle:
            handle.write(cmd_input)
        return subprocess.CompletedProcess(command, 0, stdout=cmd_input)
    if program == "grep":
        path = Path(args[-1])
        lines = path.read_text().splitlines() if path.exists() else []
        return subprocess.CompletedProcess(command, 0 if args[1] in lines else 1)
    if program == "mkdir":
        Path(args[-1]).mkdir(parents=True, exist_ok=True)
    return subprocess.CompletedProcess(command, 0)


@pytest.fixture
def mock_run_elevated_command(mocker):
    return mocker.patch(
        "setup.state_manager.run_elevated_command",
        side_effect=fake_elevated_command,
    )


def test_initialize_creates_directory_and_file(
    app_settings, mock_run_elevated_command, mock_logger
):
    initialize_state_system(app_settings, mock_logger)

    commands = [c.args[0] for c in mock_run_elevated_command.call_args_list]
    state_dir = str(app_settings.state_file_path.parent)
    assert commands[0] == ["mkdir", "-p", state_dir]
    assert commands[1] == ["chmod", "750", state_dir]
    assert ["chmod", "640", str(app_settings.state_file_path)] in commands
    content = app_settings.state_file_path.read_text()
    assert content.startswith("# DOMAIN: example.org\n")
    assert view_completed_steps(app_settings) == []


def test_initialize_keeps_progress_for_same_domain(
    app_settings, mock_run_elevated_command
):
    initialize_state_system(app_settings)
    mark_step_completed("CLEAN_NGINX_CONFIG", app_settings)

    initialize_state_system(app_settings)

    assert view_completed_steps(app_settings) == ["CLEAN_NGINX_CONFIG"]


def test_initialize_discards_progress_of_other_domain(
    app_settings, mock_run_elevated_command, mock_logger
):
    app_settings.state_file_path.parent.mkdir(parents=True)
    app_settings.state_file_path.write_text("# DOMAIN: other.org\nREINSTALL_NGINX\n")

    initialize_state_system(app_settings, mock_logger)

    assert view_completed_steps(app_settings) == []
    assert "example.org" in app_settings.state_file_path.read_text()
    mock_logger.warning.assert_called_once()


def test_mark_step_completed_once(app_settings, mock_run_elevated_command):
    initialize_state_system(app_settings)

    mark_step_completed("NGINX_START", app_settings)
    mark_step_completed("NGINX_START", app_settings)
    mark_step_completed("CERTBOT_INSTALL", app_settings)

    assert is_step_completed("NGINX_START", app_settings)
    assert not is_step_completed("NGINX", app_settings)
    assert view_completed_steps(app_settings) == ["NGINX_START", "CERTBOT_INSTALL"]


def test_clear_state_file(app_settings, mock_run_elevated_command):
    initialize_state_system(app_settings)
    mark_step_completed("NGINX_START", app_settings)

    clear_state_file(app_settings)

    assert not is_step_completed("NGINX_START", app_settings)


def test_view_completed_steps_without_file(app_settings, mock_run_elevated_command):
    assert view_completed_steps(app_settings) == []
