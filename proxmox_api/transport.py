import logging
from typing import Any, Dict, NamedTuple, Optional

import requests

logger = logging.getLogger(__name__)


class TransportResponse(NamedTuple):
    status_code: int
    content: bytes


class RequestsTransport:
    """
    Synchronous HTTP transport on top of a requests session.

    Connection, TLS and timeout errors are raised by requests as-is.
    """
    def __init__(self, verify_ssl=True, timeout=30, session=None):
        """
        :param verify_ssl: Whether to verify SSL certificates
        :param timeout: Request timeout in seconds
        :param session: Optional pre-configured requests.Session
        """
        self.verify_ssl = verify_ssl
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()

    def send(self, method: str, url: str, headers: Optional[Dict[str, str]] = None,
             body: Optional[Dict[str, Any]] = None, params: Optional[Dict[str, Any]] = None) -> TransportResponse:
        """
        Send one request.

        :param method: HTTP method
        :param url: Absolute URL
        :param headers: Extra request headers
        :param body: Form fields for the request body
        :param params: Query string parameters
        :return: TransportResponse with status code and raw body
        """
        logger.debug(f"{method} {url}")
        resp = self.session.request(method, url, headers=headers, data=body, params=params,
                                    verify=self.verify_ssl, timeout=self.timeout)
        return TransportResponse(resp.status_code, resp.content)

    def close(self):
        self.session.close()
