import pytest
from unittest.mock import Mock

from proxmox_api.config import ProxmoxConfig, load_client, load_config
from proxmox_api.credentials import normalize


class TestLoadClient:

    def test_load_client_with_token_file(self, tmp_path):
        (tmp_path / 'pve-token.txt').write_text('2543b2f7-bbd9-4013-a972-42fc5b644899\n')
        config_path = tmp_path / 'config.proxmox.yaml'
        config_path.write_text(
            'proxmox:\n'
            '  hostname: pve.example.com\n'
            '  token_name: root@pam!api\n'
            '  token_path: pve-token.txt\n'
            '  verify_ssl: false\n'
            '  response_type: json\n'
        )

        client = load_client(str(config_path), transport=Mock())
        credentials = client.get_credentials()

        assert credentials.is_api_mode is True
        assert credentials.get_token_key() == 'PVEAPIToken=root@pam!api=2543b2f7-bbd9-4013-a972-42fc5b644899'
        assert credentials.get_realm() == 'pam'
        assert client.get_response_type() == 'json'

    def test_load_client_from_env(self, tmp_path, monkeypatch):
        config_path = tmp_path / 'pbs.yaml'
        config_path.write_text(
            'proxmox:\n'
            '  hostname: pbs.example.com\n'
            '  port: 8007\n'
            '  system: pbs\n'
            '  username: backup\n'
            '  password: secret\n'
        )
        monkeypatch.setenv('PROXMOX_CONFIG', str(config_path))

        client = load_client()

        assert client.get_api_url() == 'https://pbs.example.com:8007/api2'
        assert client.get_credentials().get_system() == 'pbs'
        assert client.transport.verify_ssl is True
        assert client.transport.timeout == 30

    def test_workspace_default_path(self, tmp_path, monkeypatch):
        secrets = tmp_path / 'secrets'
        secrets.mkdir()
        (secrets / 'config.proxmox.yaml').write_text(
            'proxmox:\n  hostname: h\n  username: root\n  password: p\n  realm: pve\n'
        )
        monkeypatch.delenv('PROXMOX_CONFIG', raising=False)
        monkeypatch.setenv('PROXMOX_WORKSPACE', str(tmp_path))

        config = load_config()

        assert config.hostname == 'h'
        assert config.realm == 'pve'

    def test_missing_section(self, tmp_path):
        config_path = tmp_path / 'config.yaml'
        config_path.write_text('other: {}\n')

        with pytest.raises(ValueError, match="no 'proxmox' section"):
            load_config(str(config_path))

    def test_invalid_config(self, tmp_path):
        config_path = tmp_path / 'config.yaml'
        config_path.write_text('proxmox:\n  username: root\n')

        with pytest.raises(ValueError, match='Invalid config'):
            load_config(str(config_path))


    def test_missing_secret_file(self, tmp_path):
        config_path = tmp_path / 'config.yaml'
        config_path.write_text(
            'proxmox:\n'
            '  hostname: h\n'
            '  token_name: root@pam!api\n'
            '  token_path: missing-token.txt\n'
        )

        with pytest.raises(ValueError, match='token_path'):
            load_config(str(config_path))


class TestProxmoxConfig:

    def test_unreadable_password_file(self, tmp_path):
        config = ProxmoxConfig(hostname='h', username='root', password_path=str(tmp_path / 'missing'))

        with pytest.raises(ValueError, match='cannot read secret file'):
            normalize(config)


    def test_password_file(self, tmp_path):
        (tmp_path / 'password').write_text('hunter2\n')
        config = ProxmoxConfig(hostname='h', username='root', password_path=str(tmp_path / 'password'))

        assert normalize(config).get_password() == 'hunter2'

    def test_inline_secret_wins(self, tmp_path):
        config = ProxmoxConfig(hostname='h', token_name='root@pam!api', token_key='inline',
                               token_path=str(tmp_path / 'missing'))

        assert config.get_token_key() == 'inline'
