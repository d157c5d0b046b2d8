import logging
import os
from typing import Optional, Union

import yaml
from pydantic import BaseModel, ValidationError

from .client import ProxmoxClient

logger = logging.getLogger(__name__)


def _read_secret(path):
    try:
        with open(path, 'r') as f:
            return f.read().strip()
    except OSError as e:
        raise ValueError(f"Invalid config: cannot read secret file {path}: {e}")


# Config validation
class ProxmoxConfig(BaseModel):
    """
    The 'proxmox' section of the YAML config.

    Secrets may be given inline or through password_path / token_path files.
    The object is accepted directly as credentials: unset fields stay absent
    so the credential defaults (realm, port, system) still apply.
    """
    hostname: str
    port: Optional[Union[int, str]] = None
    realm: Optional[str] = None
    system: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    password_path: Optional[str] = None
    token_name: Optional[str] = None
    token_key: Optional[str] = None
    token_path: Optional[str] = None
    verify_ssl: bool = True
    timeout: int = 30
    response_type: str = 'array'

    def get_password(self):
        if self.password is None and self.password_path:
            return _read_secret(self.password_path)
        return self.password

    def get_token_key(self):
        if self.token_key is None and self.token_path:
            return _read_secret(self.token_path)
        return self.token_key


def default_config_path():
    workspace = os.getenv('PROXMOX_WORKSPACE', os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    return os.path.join(workspace, 'secrets', 'config.proxmox.yaml')


def load_config(config_path=None):
    """
    Load and validate the YAML config.

    :param config_path: Path to the YAML file; defaults to $PROXMOX_CONFIG, then
        <workspace>/secrets/config.proxmox.yaml
    :return: ProxmoxConfig
    """
    config_path = config_path or os.getenv('PROXMOX_CONFIG') or default_config_path()
    with open(config_path, 'r') as f:
        raw_config = yaml.safe_load(f) or {}

    section = raw_config.get('proxmox') if isinstance(raw_config, dict) else None
    if not isinstance(section, dict):
        raise ValueError(f"Invalid config: no 'proxmox' section in {config_path}")

    # Secret file paths are relative to the config file
    base_dir = os.path.dirname(os.path.abspath(config_path))
    for key in ('password_path', 'token_path'):
        if section.get(key):
            section[key] = os.path.join(base_dir, section[key])
            if not os.path.isfile(section[key]):
                raise ValueError(f"Invalid config: {key} {section[key]} does not exist")

    try:
        config = ProxmoxConfig(**section)
    except ValidationError as e:
        raise ValueError(f"Invalid config: {e}")
    logger.debug(f"Loaded config for {config.hostname} from {config_path}")
    return config


# Utility function to load client from config
def load_client(config_path=None, transport=None):
    config = load_config(config_path)
    return ProxmoxClient(config, config.response_type, transport, config.verify_ssl, config.timeout)
