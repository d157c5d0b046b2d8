import logging
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, PrivateAttr, SecretStr, ValidationError, field_validator

from .exceptions import MalformedCredentialsError

logger = logging.getLogger(__name__)

# Sentinel for a field the input does not provide
MISSING = object()

# Recognized fields: canonical name -> camelCase alias
FIELDS = {
    'token_name': 'tokenName',
    'token_key': 'tokenKey',
    'hostname': 'hostname',
    'username': 'username',
    'password': 'password',
    'realm': 'realm',
    'port': 'port',
    'system': 'system',
}

REQUIRED_LOGIN_FIELDS = ('hostname', 'username', 'password')
REQUIRED_TOKEN_FIELDS = ('hostname', 'token_name', 'token_key')

DEFAULT_TOKEN_PREFIX = 'PVEAPIToken'
TOKEN_PREFIXES = {'pbs': 'PBSAPIToken'}

DEFAULT_AUTH_COOKIE = 'PVEAuthCookie'
AUTH_COOKIES = {'pbs': 'PBSAuthCookie', 'pmg': 'PMGAuthCookie'}

# Scalars and positional sequences can never carry named credential fields
REJECTED_TYPES = (str, bytes, bytearray, int, float, complex, list, tuple, set, frozenset)


class MappingSource:
    """
    Field source backed by a plain mapping (parsed JSON, YAML, kwargs).
    """
    def __init__(self, data):
        self.data = data

    def get(self, field):
        for key in (field, FIELDS[field]):
            value = self.data.get(key)
            if value is not None:
                return value
        return MISSING


class ObjectSource:
    """
    Field source backed by an arbitrary object.

    For each field the accessor method is tried first (``get_token_name`` or
    ``getTokenName``), then the plain attribute (``token_name`` or ``tokenName``).
    """
    def __init__(self, obj):
        self.obj = obj

    def get(self, field):
        alias = FIELDS[field]
        for name in (f'get_{field}', 'get' + alias[0].upper() + alias[1:]):
            accessor = getattr(self.obj, name, None)
            if callable(accessor):
                value = accessor()
                if value is not None:
                    return value
        for name in (field, alias):
            value = getattr(self.obj, name, None)
            if value is not None and not callable(value):
                return value
        return MISSING


class Credential(BaseModel):
    """
    Canonical, validated credentials for a Proxmox VE, Backup Server or
    Mail Gateway host.

    Build instances with :func:`normalize` (or :meth:`Credential.from_input`),
    which applies the defaults only to absent fields and checks that a full
    password or API token field set is present.
    """
    model_config = ConfigDict(frozen=True, hide_input_in_errors=True)

    hostname: str
    username: str = ''
    password: SecretStr = SecretStr('')
    realm: str = 'pam'
    port: str = '8006'
    system: str = 'pve'
    token_name: str = ''
    token_key: SecretStr = SecretStr('')

    _is_api: bool = PrivateAttr(default=False)

    @field_validator('port', mode='before')
    @classmethod
    def _render_port(cls, value):
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    def model_post_init(self, context):
        self._is_api = bool(self.token_name and self.token_key.get_secret_value())

    @classmethod
    def from_input(cls, credentials):
        return normalize(credentials)

    @property
    def is_api_mode(self):
        return self._is_api

    def set_is_api(self, is_api):
        self._is_api = bool(is_api)
        return self

    def set_token_key(self, token_key):
        if not isinstance(token_key, (str, SecretStr)):
            raise MalformedCredentialsError(f"Token key must be a string, got {type(token_key).__name__}")
        if isinstance(token_key, str):
            token_key = SecretStr(token_key)
        # Late token injection is the only field write allowed on a frozen record
        object.__setattr__(self, 'token_key', token_key)
        return self

    def get_hostname(self):
        return self.hostname

    def get_username(self):
        return self.username

    def get_password(self):
        return self.password.get_secret_value()

    def get_realm(self):
        return self.realm

    def get_port(self):
        return self.port

    def get_system(self):
        return self.system

    def get_token_name(self):
        return self.token_name

    def get_token_key(self):
        """
        Return the API token authorization value.

        :return: String like 'PVEAPIToken=root@pam!api=<uuid>'
        """
        prefix = TOKEN_PREFIXES.get(self.system, DEFAULT_TOKEN_PREFIX)
        return f"{prefix}={self.token_name}={self.token_key.get_secret_value()}"

    def get_api_url(self):
        return f"https://{self.hostname}:{self.port}/api2"

    def auth_cookie_name(self):
        return AUTH_COOKIES.get(self.system, DEFAULT_AUTH_COOKIE)

    def to_dict(self):
        """
        Dump raw field values, secrets included, in a form :func:`normalize` accepts.
        """
        data = self.model_dump()
        data['password'] = self.password.get_secret_value()
        data['token_key'] = self.token_key.get_secret_value()
        return data

    def __str__(self):
        return f"[Host: {self.hostname}:{self.port}], [Username: {self.username}@{self.realm}]."


def _filled(value):
    if isinstance(value, SecretStr):
        value = value.get_secret_value()
    return value is not MISSING and value != ''


def _source_for(credentials):
    if isinstance(credentials, Credential):
        return MappingSource(credentials.to_dict())
    if isinstance(credentials, Mapping):
        return MappingSource(credentials)
    if credentials is None or isinstance(credentials, REJECTED_TYPES):
        raise MalformedCredentialsError('Proxmox API needs a credentials object or a mapping.')
    return ObjectSource(credentials)


def normalize(credentials):
    """
    Turn a mapping or credential-provider object into a :class:`Credential`.

    :param credentials: Mapping or object providing 'hostname', 'username' and
        'password', or 'hostname', 'token_name' and 'token_key'
    :return: Credential
    :raises MalformedCredentialsError: if the input is not usable as credentials
    """
    source = _source_for(credentials)
    values = {}
    for field in FIELDS:
        value = source.get(field)
        if value is not MISSING:
            values[field] = value

    login_ready = all(_filled(values.get(f, MISSING)) for f in REQUIRED_LOGIN_FIELDS)
    token_ready = all(_filled(values.get(f, MISSING)) for f in REQUIRED_TOKEN_FIELDS)
    if not (login_ready or token_ready):
        missing = [f for f in dict.fromkeys(REQUIRED_LOGIN_FIELDS + REQUIRED_TOKEN_FIELDS)
                   if not _filled(values.get(f, MISSING))]
        raise MalformedCredentialsError(
            "Credentials need 'hostname', 'username' and 'password' or "
            f"'hostname', 'token_name' and 'token_key' (missing: {', '.join(missing)})"
        )

    try:
        credential = Credential(**values)
    except ValidationError as e:
        raise MalformedCredentialsError(f"Invalid credentials: {e}") from e
    logger.debug(f"Normalized credentials {credential} (api token: {credential.is_api_mode})")
    return credential
