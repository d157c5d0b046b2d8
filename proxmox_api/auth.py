import json
import logging
from dataclasses import dataclass
from enum import Enum

from .exceptions import AuthenticationError

logger = logging.getLogger(__name__)

# Requests that must carry the CSRF prevention token next to the ticket cookie
MUTATING_METHODS = frozenset(('POST', 'PUT', 'DELETE'))


@dataclass(frozen=True)
class AuthSession:
    csrf_token: str
    ticket: str
    username: str


class AuthState(Enum):
    UNAUTHENTICATED = 'unauthenticated'
    AUTHENTICATED = 'authenticated'
    FAILED = 'failed'


class Authenticator:
    """
    Produces the authorization headers for one client.

    API token credentials are turned into an Authorization header without any
    network call. Password credentials are exchanged once for a ticket and a
    CSRF prevention token; the result is kept for the lifetime of this object.
    A failed login is terminal.
    """
    def __init__(self, credential, transport):
        """
        :param credential: Normalized Credential
        :param transport: Object with send(method, url, headers, body) -> (status_code, content)
        """
        self.credential = credential
        self.transport = transport
        self.state = AuthState.UNAUTHENTICATED
        self._session = None
        self._headers = None

    @property
    def session(self):
        return self._session

    def login_url(self):
        return f"{self.credential.get_api_url()}/json/access/ticket"

    def authenticate(self):
        """
        Authenticate if needed and return the base authorization headers.

        :return: Dict of headers to attach to every request
        """
        if self.state is AuthState.FAILED:
            raise AuthenticationError(
                f"Authentication against {self.credential.hostname} already failed, create a new client to retry"
            )
        if self._headers is None:
            if self.credential.is_api_mode:
                self._headers = {'Authorization': self.credential.get_token_key()}
            else:
                self._session = self._login()
                self._headers = {'Cookie': f"{self.credential.auth_cookie_name()}={self._session.ticket}"}
            self.state = AuthState.AUTHENTICATED
        return dict(self._headers)

    def request_headers(self, method):
        """
        Headers for a request with the given HTTP method.

        :param method: HTTP method
        :return: Authorization headers, with the CSRF token on mutating ticket-based requests
        """
        headers = self.authenticate()
        if self._session is not None and method.upper() in MUTATING_METHODS:
            headers['CSRFPreventionToken'] = self._session.csrf_token
        return headers

    def _fail(self, message):
        self.state = AuthState.FAILED
        logger.error(message)
        raise AuthenticationError(message)

    def _login(self):
        body = {
            'username': self.credential.get_username(),
            'password': self.credential.get_password(),
            'realm': self.credential.get_realm(),
        }
        host = self.credential.hostname
        status_code, content = self.transport.send('POST', self.login_url(), {}, body)
        if not 200 <= status_code < 300:
            self._fail(f"Login to {host} as {body['username']}@{body['realm']} failed: HTTP {status_code}")
        try:
            data = json.loads(content)['data']
            session = AuthSession(
                csrf_token=data['CSRFPreventionToken'],
                ticket=data['ticket'],
                username=data['username'],
            )
        except (ValueError, KeyError, TypeError) as e:
            self._fail(f"Unexpected login response from {host}: {e!r}")
        for name, value in (('CSRFPreventionToken', session.csrf_token), ('ticket', session.ticket),
                            ('username', session.username)):
            if not isinstance(value, str) or not value:
                self._fail(f"Unexpected login response from {host}: empty or invalid {name}")
        logger.info(f"Authentication successful for {session.username} on {host}")
        return session
