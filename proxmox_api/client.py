import base64
import json
import logging
import time
from collections.abc import Mapping
from types import SimpleNamespace

import requests

from .auth import Authenticator
from .credentials import normalize
from .exceptions import BadResponseError, ProxmoxError, TaskTimeoutError
from .transport import RequestsTransport

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

DEFAULT_RESPONSE_TYPE = 'array'
RESPONSE_TYPES = ('array', 'object', 'json', 'html', 'extjs', 'text', 'png', 'pngb64')
# Response types rendered locally from another API format
API_FORMATS = {'array': 'json', 'object': 'json', 'pngb64': 'png'}
# Request parameters travel in the query string for these, in the form body otherwise
QUERY_METHODS = ('GET', 'DELETE')


class ProxmoxClient:
    def __init__(self, credentials, response_type=DEFAULT_RESPONSE_TYPE, transport=None, verify_ssl=True, timeout=30):
        """
        Initialize the Proxmox API client.

        Credentials are validated right away; authentication happens on the first
        request or on an explicit login() call.

        :param credentials: Mapping, credential-provider object or Credential
        :param response_type: One of RESPONSE_TYPES (unknown values fall back to 'array')
        :param transport: Object with send(method, url, headers, body); defaults to RequestsTransport
        :param verify_ssl: Whether to verify SSL certificates (default transport only)
        :param timeout: Request timeout in seconds (default transport only)
        """
        self.transport = transport if transport is not None else RequestsTransport(verify_ssl, timeout)
        self.set_response_type(response_type)
        self.set_credentials(credentials)

    def set_credentials(self, credentials):
        """
        Replace the credentials. Any previous authentication is discarded.
        """
        self.credentials = normalize(credentials)
        self.auth = Authenticator(self.credentials, self.transport)
        logger.debug(f"Using credentials {self.credentials}")
        return self

    def get_credentials(self):
        return self.credentials

    def get_api_url(self):
        return self.credentials.get_api_url()

    def set_response_type(self, response_type):
        if response_type not in RESPONSE_TYPES:
            response_type = DEFAULT_RESPONSE_TYPE
        self.response_type = response_type
        return self

    def get_response_type(self):
        return self.response_type

    def login(self):
        """
        Authenticate now instead of on the first request.

        :return: AuthSession for password credentials, None for API tokens
        """
        self.auth.authenticate()
        return self.auth.session

    def get(self, path, params=None):
        """
        GET a resource.

        :param path: API path (e.g., '/nodes')
        :param params: Optional query parameters
        :return: Response shaped according to the response type
        """
        return self._request('GET', path, params)

    def set(self, path, params=None):
        """
        PUT (update) a resource.
        """
        return self._request('PUT', path, params)

    def create(self, path, params=None):
        """
        POST (create) a resource.
        """
        return self._request('POST', path, params)

    def delete(self, path, params=None):
        """
        DELETE a resource.
        """
        return self._request('DELETE', path, params)

    def get_version(self):
        return self.get('/version')

    def _url(self, path, response_type):
        api_format = API_FORMATS.get(response_type, response_type)
        return f"{self.get_api_url()}/{api_format}/{path.lstrip('/')}"

    def _with_query(self, url, params):
        if not params:
            return url
        prepared = requests.models.PreparedRequest()
        prepared.prepare_url(url, dict(params))
        return prepared.url

    def _request(self, method, path, params=None, response_type=None):
        if params is None:
            params = {}
        if not isinstance(params, Mapping):
            raise ValueError(f"Parameters for {method} {path} must be a mapping, got {type(params).__name__}")
        response_type = response_type or self.response_type
        url = self._url(path, response_type)
        headers = self.auth.request_headers(method)
        if method in QUERY_METHODS:
            status_code, content = self.transport.send(method, self._with_query(url, params), headers, None)
        else:
            status_code, content = self.transport.send(method, url, headers, dict(params))
        if status_code >= 400:
            text = content.decode('utf-8', errors='replace')
            logger.error(f"{method} {path} failed: HTTP {status_code}")
            raise BadResponseError(status_code, text)
        logger.debug(f"{method} {path} -> HTTP {status_code}")
        return self._shape(content, response_type, status_code)

    def _shape(self, content, response_type, status_code):
        if response_type == 'png':
            return content
        if response_type == 'pngb64':
            return 'data:image/png;base64,' + base64.b64encode(content).decode('ascii')
        if response_type in ('array', 'object'):
            if not content:
                return None
            hook = (lambda d: SimpleNamespace(**d)) if response_type == 'object' else None
            try:
                return json.loads(content, object_hook=hook)
            except ValueError:
                raise BadResponseError(status_code, content.decode('utf-8', errors='replace'))
        return content.decode('utf-8', errors='replace')

    def poll_task(self, node, upid, timeout=300, poll_interval=5):
        """
        Poll a node task until completion.

        :param node: Node name
        :param upid: Unique Process ID
        :param timeout: Timeout in seconds
        :param poll_interval: Initial polling interval in seconds (with backoff)
        :return: Dict with 'success', 'exitstatus', 'status'
        """
        path = f'/nodes/{node}/tasks/{upid}/status'
        start_time = time.time()
        current_interval = poll_interval
        while time.time() - start_time < timeout:
            try:
                status = self._request('GET', path, response_type='array')
            except BadResponseError as e:
                if e.status_code == 404:
                    raise ProxmoxError(f"Task {upid} not found") from e
                raise
            task_status = status['data']['status']
            exitstatus = status['data'].get('exitstatus', 'OK')
            if task_status == 'stopped':
                success = exitstatus == 'OK'
                if success:
                    logger.info(f"Task {upid} completed successfully")
                else:
                    logger.error(f"Task {upid} failed with exitstatus: {exitstatus}")
                return {'success': success, 'exitstatus': exitstatus, 'status': 'stopped'}
            elif task_status == 'running':
                logger.debug(f"Task {upid} still running...")
            else:
                logger.warning(f"Task {upid} in unknown status: {task_status}")
            time.sleep(min(current_interval, 30))
            current_interval *= 1.5
        raise TaskTimeoutError(f"Task {upid} timed out after {timeout} seconds")
