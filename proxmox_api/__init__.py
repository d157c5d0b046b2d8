from .auth import AuthSession, AuthState, Authenticator
from .client import ProxmoxClient
from .config import ProxmoxConfig, load_client, load_config
from .credentials import Credential, normalize
from .exceptions import (
    AuthenticationError,
    BadResponseError,
    MalformedCredentialsError,
    ProxmoxError,
    TaskTimeoutError,
)
from .transport import RequestsTransport, TransportResponse

__version__ = '0.1.0'
