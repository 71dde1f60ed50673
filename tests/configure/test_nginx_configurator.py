import subprocess

import pytest

from configure.nginx_configurator import (
    clean_existing_nginx_configuration,
    enable_nginx_site,
    free_http_port,
    install_http_site,
    install_https_site,
    render_http_site_config,
    render_https_site_config,
    restart_nginx_service,
    server_names,
    start_nginx_service,
    verify_nginx_active,
)


@pytest.fixture
def mock_run_elevated_command(mocker):
    return mocker.patch("configure.nginx_configurator.run_elevated_command")


@pytest.fixture
def debian_layout(app_settings):
    nginx_settings = app_settings.nginx
    for directory in (
        nginx_settings.sites_available_dir,
        nginx_settings.sites_enabled_dir,
        nginx_settings.conf_d_dir,
    ):
        directory.mkdir(parents=True)
    return nginx_settings


def issued_commands(mock_run):
    return [c.args[0] for c in mock_run.call_args_list]


def test_render_http_site_config(app_settings):
    config = render_http_site_config(app_settings)

    assert "server_name example.org;" in config
    assert "proxy_pass http://127.0.0.1:3000;" in config
    assert "client_max_body_size 500M;" in config
    assert "proxy_read_timeout 60s;" in config
    assert "proxy_request_buffering off;" in config
    assert 'return 200 "healthy\\n";' in config
    assert "{" in config and "{{" not in config


def test_render_https_site_config(app_settings):
    app_settings.nginx.upstream_port = 8080
    cert_dir = (app_settings.certbot.live_dir / "example.org").as_posix()

    config = render_https_site_config(app_settings)

    assert config.count("server_name example.org *.example.org;") == 2
    assert "return 301 https://$host$request_uri;" in config
    assert "listen 443 ssl http2;" in config
    assert f"ssl_certificate {cert_dir}/fullchain.pem;" in config
    assert f"ssl_certificate_key {cert_dir}/privkey.pem;" in config
    assert "ssl_protocols TLSv1.2 TLSv1.3;" in config
    assert "proxy_pass http://127.0.0.1:8080;" in config
    assert "proxy_request_buffering" not in config


def test_server_names_without_wildcard(app_settings):
    app_settings.certbot.include_wildcard = False
    assert server_names(app_settings) == "example.org"


def test_render_with_unknown_placeholder(app_settings, mock_logger):
    app_settings.nginx.http_site_template = "server_name {hostname};"

    with pytest.raises(KeyError):
        render_http_site_config(app_settings, mock_logger)
    mock_logger.error.assert_called_once()


def test_clean_removes_stale_files(
    app_settings, debian_layout, mock_run_elevated_command, mock_logger
):
    default_link = debian_layout.sites_enabled_dir / "default"
    default_link.symlink_to(debian_layout.sites_available_dir / "missing")
    site_file = debian_layout.sites_available_dir / "tribenest"
    site_file.write_text("old")

    clean_existing_nginx_configuration(app_settings, mock_logger)

    commands = issued_commands(mock_run_elevated_command)
    assert ["rm", "-f", str(default_link)] in commands
    assert ["rm", "-f", str(site_file)] in commands
    assert ["rm", "-f", str(debian_layout.sites_enabled_dir / "tribenest")] not in commands
    assert commands[-1] == ["tee", str(debian_layout.conf_d_dir / "default.conf")]
    default_server = mock_run_elevated_command.call_args.kwargs["cmd_input"]
    assert "listen 80 default_server;" in default_server
    assert "return 444;" in default_server


def test_clean_without_nginx_directories(app_settings, mock_run_elevated_command):
    clean_existing_nginx_configuration(app_settings)
    mock_run_elevated_command.assert_not_called()


def test_enable_site_with_sites_enabled(
    app_settings, debian_layout, mock_run_elevated_command
):
    enable_nginx_site(app_settings)

    assert issued_commands(mock_run_elevated_command) == [
        [
            "ln",
            "-sf",
            str(debian_layout.sites_available_dir / "tribenest"),
            str(debian_layout.sites_enabled_dir / "tribenest"),
        ],
        ["rm", "-f", str(debian_layout.sites_enabled_dir / "default")],
    ]


def test_enable_site_copies_into_conf_d(app_settings, mock_run_elevated_command):
    nginx_settings = app_settings.nginx

    enable_nginx_site(app_settings)

    assert issued_commands(mock_run_elevated_command) == [
        [
            "cp",
            str(nginx_settings.sites_available_dir / "tribenest"),
            str(nginx_settings.conf_d_dir / "tribenest.conf"),
        ]
    ]


def test_install_http_site(app_settings, debian_layout, mock_run_elevated_command):
    install_http_site(app_settings)

    commands = issued_commands(mock_run_elevated_command)
    assert commands[0] == ["mkdir", "-p", str(debian_layout.sites_available_dir)]
    assert commands[1] == ["tee", str(debian_layout.sites_available_dir / "tribenest")]
    assert commands[2][:2] == ["ln", "-sf"]
    written = mock_run_elevated_command.call_args_list[1].kwargs["cmd_input"]
    assert "listen 80;" in written
    assert "ssl_certificate" not in written


def test_install_https_site_write_failure(
    app_settings, mock_run_elevated_command, mock_logger
):
    mock_run_elevated_command.side_effect = [
        None,
        subprocess.CalledProcessError(1, ["tee"]),
    ]

    with pytest.raises(subprocess.CalledProcessError):
        install_https_site(app_settings, mock_logger)

    mock_logger.error.assert_called_once()
    assert mock_run_elevated_command.call_count == 2


def test_free_http_port_stops_conflicting_services(mocker, app_settings):
    mocker.patch("configure.nginx_configurator.is_port_in_use", return_value=True)
    mock_stop = mocker.patch("configure.nginx_configurator.stop_service")

    free_http_port(app_settings)

    assert [c.args[0] for c in mock_stop.call_args_list] == [
        "apache2",
        "httpd",
        "lighttpd",
    ]


def test_free_http_port_when_idle(mocker, app_settings):
    mocker.patch("configure.nginx_configurator.is_port_in_use", return_value=False)
    mock_stop = mocker.patch("configure.nginx_configurator.stop_service")

    free_http_port(app_settings)

    mock_stop.assert_not_called()


def test_verify_nginx_active_shows_journal(mocker, app_settings, mock_logger):
    mocker.patch("configure.nginx_configurator.is_service_active", return_value=False)
    mock_journal = mocker.patch("configure.nginx_configurator.show_service_journal")

    with pytest.raises(RuntimeError):
        verify_nginx_active(app_settings, mock_logger)

    mock_journal.assert_called_once_with(
        "nginx", app_settings, current_logger=mock_logger
    )


def test_verify_nginx_active_prints_journal_lines(
    fake_executables, app_settings, capfd
):
    fake_executables("systemctl", "exit 3")
    fake_executables("journalctl", 'echo "nginx: [emerg] bind() to 0.0.0.0:80 failed"')

    with pytest.raises(RuntimeError):
        verify_nginx_active(app_settings)

    assert "[emerg] bind() to 0.0.0.0:80 failed" in capfd.readouterr().out


def test_start_nginx_service_order(mocker, app_settings, mock_run_elevated_command):
    manager = mocker.MagicMock()
    for name in ("stop_service", "free_http_port", "enable_service", "start_service"):
        manager.attach_mock(
            mocker.patch(f"configure.nginx_configurator.{name}"), name
        )
    mocker.patch("configure.nginx_configurator.is_service_active", return_value=True)
    manager.attach_mock(mock_run_elevated_command, "run_elevated_command")

    start_nginx_service(app_settings)

    assert [c[0] for c in manager.mock_calls] == [
        "stop_service",
        "free_http_port",
        "run_elevated_command",
        "enable_service",
        "start_service",
    ]
    assert mock_run_elevated_command.call_args.args[0] == ["nginx", "-t"]


def test_restart_aborts_on_invalid_configuration(
    mocker, app_settings, mock_run_elevated_command
):
    mock_run_elevated_command.side_effect = subprocess.CalledProcessError(
        1, ["nginx", "-t"]
    )
    mock_restart = mocker.patch("configure.nginx_configurator.restart_service")

    with pytest.raises(subprocess.CalledProcessError):
        restart_nginx_service(app_settings)

    mock_restart.assert_not_called()
