class ProxmoxError(Exception):
    pass

class MalformedCredentialsError(ProxmoxError):
    pass

class AuthenticationError(ProxmoxError):
    pass

class BadResponseError(ProxmoxError):
    def __init__(self, status_code, body=''):
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP {status_code}: {body}")

class TaskTimeoutError(ProxmoxError):
    pass
