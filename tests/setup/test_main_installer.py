import subprocess

import pytest

from configure.certbot_configurator import build_certbot_command
from configure.nginx_configurator import render_https_site_config
from setup import main_installer
from setup.main_installer import SETUP_STEPS, main, run_setup_steps


@pytest.fixture
def argv(tmp_path):
    return ["example.org", "admin@example.org", "--config", str(tmp_path / "config.yaml")]


@pytest.fixture(autouse=True)
def mock_setup_logging(mocker):
    return mocker.patch("setup.main_installer.setup_logging")


@pytest.fixture
def mock_initialize_state(mocker):
    return mocker.patch("setup.main_installer.initialize_state_system")


@pytest.fixture
def mock_run_steps(mocker):
    return mocker.patch("setup.main_installer.run_setup_steps", return_value=True)


def test_step_order():
    assert [tag for tag, _, _ in SETUP_STEPS] == [
        "CLEAN_NGINX_CONFIG",
        "REINSTALL_NGINX",
        "NGINX_HTTP_SITE",
        "NGINX_START",
        "CERTBOT_INSTALL",
        "CERTBOT_WILDCARD_CERT",
        "NGINX_HTTPS_SITE",
        "NGINX_RESTART",
    ]


def test_run_setup_steps_numbers_descriptions(mocker, app_settings):
    mock_execute = mocker.patch(
        "setup.main_installer.execute_step", return_value=True
    )

    assert run_setup_steps(app_settings)

    descriptions = [c.args[1] for c in mock_execute.call_args_list]
    assert descriptions[0] == "0. Check and clean existing nginx configurations"
    assert descriptions[-1] == "7. Restart nginx with SSL"


def test_run_setup_steps_stops_at_first_failure(mocker, app_settings):
    mock_execute = mocker.patch(
        "setup.main_installer.execute_step", side_effect=[True, True, False, True]
    )

    assert run_setup_steps(app_settings) is False
    assert mock_execute.call_count == 3
    assert mock_execute.call_args.args[0] == "NGINX_HTTP_SITE"


def test_main_success(argv, mock_initialize_state, mock_run_steps, mock_setup_logging):
    assert main(argv) == 0

    settings = mock_run_steps.call_args.args[0]
    assert settings.domain == "example.org"
    assert settings.email == "admin@example.org"
    mock_initialize_state.assert_called_once()
    assert mock_setup_logging.call_args.args[0] == "[PROXY-SETUP]"


def test_main_step_failure(argv, mock_initialize_state, mock_run_steps):
    mock_run_steps.return_value = False
    assert main(argv) == 1


@pytest.mark.parametrize(
    "domain, email",
    [("*.example.org", "admin@example.org"), ("example.org", "not-an-email")],
)
def test_main_rejects_invalid_input(
    tmp_path, domain, email, mock_initialize_state, mock_run_steps
):
    assert main([domain, email, "--config", str(tmp_path / "config.yaml")]) == 1
    mock_run_steps.assert_not_called()
    mock_initialize_state.assert_not_called()


def test_main_continues_without_state_tracking(
    argv, mock_initialize_state, mock_run_steps
):
    mock_initialize_state.side_effect = subprocess.CalledProcessError(1, ["mkdir"])

    assert main(argv) == 0
    mock_run_steps.assert_called_once()


def test_main_view_state(mocker, argv, mock_run_steps):
    mock_view = mocker.patch(
        "setup.main_installer.view_completed_steps", return_value=["CLEAN_NGINX_CONFIG"]
    )

    assert main(argv + ["--view-state"]) == 0
    mock_view.assert_called_once()
    mock_run_steps.assert_not_called()


def test_main_view_config(mocker, argv, mock_run_steps):
    mock_view = mocker.patch("setup.main_installer.view_configuration")

    assert main(argv + ["--view-config", "--upstream-port", "4000"]) == 0
    assert mock_view.call_args.args[0].nginx.upstream_port == 4000
    mock_run_steps.assert_not_called()


def test_main_clear_state(mocker, argv, mock_initialize_state, mock_run_steps):
    mock_clear = mocker.patch("setup.main_installer.clear_state_file")

    assert main(argv + ["--clear-state"]) == 0
    mock_clear.assert_called_once()
    mock_initialize_state.assert_not_called()

    mock_clear.side_effect = OSError("read-only file system")
    assert main(argv + ["--clear-state"]) == 1
    mock_run_steps.assert_not_called()


def test_main_passes_rerun_prompt(mocker, app_settings):
    mock_execute = mocker.patch(
        "setup.main_installer.execute_step", return_value=True
    )

    run_setup_steps(app_settings)

    assert mock_execute.call_args.args[5] is main_installer.cli_prompt_for_rerun


@pytest.mark.parametrize("domain", ["Example.ORG", "example.org.", "EXAMPLE.org."])
def test_main_normalizes_domain_for_certificate_paths(
    tmp_path, domain, mock_initialize_state, mock_run_steps
):
    assert main([domain, "admin@example.org", "--config", str(tmp_path / "config.yaml")]) == 0

    settings = mock_run_steps.call_args.args[0]
    assert settings.domain == "example.org"
    assert build_certbot_command(settings)[4:8] == ["-d", "example.org", "-d", "*.example.org"]
    cert_dir = (settings.certbot.live_dir / "example.org").as_posix()
    assert f"ssl_certificate {cert_dir}/fullchain.pem;" in render_https_site_config(settings)


def test_main_view_actions_skip_input_validation(mocker, tmp_path, mock_run_steps):
    mock_view = mocker.patch("setup.main_installer.view_configuration")
    mock_steps = mocker.patch(
        "setup.main_installer.view_completed_steps", return_value=[]
    )
    config = str(tmp_path / "config.yaml")

    assert main(["localhost", "root", "--config", config, "--view-config"]) == 0
    assert main(["localhost", "root", "--config", config, "--view-state"]) == 0
    mock_view.assert_called_once()
    mock_steps.assert_called_once()
    assert main(["localhost", "root", "--config", config, "--clear-state"]) == 1
    mock_run_steps.assert_not_called()
