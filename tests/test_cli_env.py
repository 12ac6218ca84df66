from typer.testing import CliRunner

from fusionstorage_client.cli import app

runner = CliRunner()

ENV = {
    "FUSIONSTORAGE_BASE_URL": "https://fm:28443",
    "FUSIONSTORAGE_USERNAME": "admin",
    "FUSIONSTORAGE_PASSWORD": "secret",
    "FUSIONSTORAGE_MANAGE_IP": "10.0.0.1",
    "FUSIONSTORAGE_AGENT_IPS": "10.0.0.11, 10.0.0.12",
}


class DummyClient:
    captured: dict[str, object] = {}

    def __init__(self, **kwargs):
        DummyClient.captured = dict(kwargs)
        self.ports = type("P", (), {"iscsi_portal": lambda self, initiator: f"portal-for-{initiator}"})()
        self.started = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def start_server(self):
        self.started = True


def test_cli_reads_connection_settings_from_env(monkeypatch, tmp_path):
    cert = tmp_path / "ca.pem"
    cert.write_text("dummy", encoding="utf-8")
    monkeypatch.setattr("fusionstorage_client.cli.StorageControlClient", DummyClient)

    result = runner.invoke(
        app,
        ["ports", "portal", "--initiator", "iqn.1"],
        env={**ENV, "FUSIONSTORAGE_CA_CERT": str(cert), "FUSIONSTORAGE_VERIFY_SSL": "1"},
    )

    assert result.exit_code == 0
    assert "portal-for-iqn.1" in result.stdout
    assert DummyClient.captured["agent_ips"] == ["10.0.0.11", "10.0.0.12"]
    assert DummyClient.captured["manage_ip"] == "10.0.0.1"
    assert DummyClient.captured["verify_ssl"] == str(cert)


def test_server_start_cli(monkeypatch):
    monkeypatch.setattr("fusionstorage_client.cli.StorageControlClient", DummyClient)

    result = runner.invoke(app, ["server", "start"], env=ENV)

    assert result.exit_code == 0
    assert "server started" in result.stdout


def test_cli_env_cert_with_no_verify_rejected(tmp_path):
    cert = tmp_path / "ca.pem"
    cert.write_text("dummy", encoding="utf-8")

    result = runner.invoke(
        app,
        ["server", "start"],
        env={**ENV, "FUSIONSTORAGE_CA_CERT": str(cert), "FUSIONSTORAGE_VERIFY_SSL": "0"},
    )

    assert result.exit_code != 0
    assert "Cannot combine --cert with --no-verify" in result.stderr
