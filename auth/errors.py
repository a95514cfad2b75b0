from __future__ import annotations


class GatewayError(RuntimeError):
    """Base class for failures that resolve to an HTTP error response.

    ``str(error)`` carries the diagnostic detail for logs; ``public_message`` is
    the only text sent back to the client.
    """

    status_code = 500
    public_message = "Authorization failed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)


class MissingCredentials(GatewayError):
    status_code = 400
    public_message = "Missing credentials."


class InvalidState(GatewayError):
    status_code = 401
    public_message = "Invalid or expired authorization state."

    def __init__(self, state: str | None, message: str | None = None) -> None:
        super().__init__(message or f"Rejected callback state {state!r}.")
        self.state = state


class ProviderDenied(GatewayError):
    status_code = 401
    public_message = "Authorization was denied by the provider."

    def __init__(self, reason: str, state: str | None = None) -> None:
        super().__init__(f"Provider returned error {reason!r} (state={state!r}).")
        self.reason = reason
        self.state = state
        # Provider error codes (access_denied, ...) are public by definition.
        self.public_message = f"Authorization was denied by the provider: {reason}."


class NetworkError(GatewayError):
    status_code = 500
    public_message = "Could not reach the authorization provider."


class TokenParseError(GatewayError):
    status_code = 500
    public_message = "Authorization provider returned an unexpected response."

    def __init__(self, message: str, body: str | None = None) -> None:
        super().__init__(message)
        self.body = body


class ProviderRejected(GatewayError):
    public_message = "Authorization provider rejected the authorization code."

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"Token request failed with status {status}: {body}")
        self.status = status
        self.body = body
        # A 4xx means the code or client was refused; anything else is the provider's fault.
        self.status_code = 401 if 400 <= status < 500 else 500


class SessionStoreError(RuntimeError):
    pass


class DuplicateState(SessionStoreError):
    def __init__(self, state: str) -> None:
        super().__init__(f"Pending authorization already exists for state {state!r}.")
        self.state = state


class SessionNotFound(SessionStoreError):
    def __init__(self, key: str) -> None:
        super().__init__(f"No session found for {key!r}.")
        self.key = key


class SessionExpired(SessionStoreError):
    def __init__(self, key: str) -> None:
        super().__init__(f"Session {key!r} has expired.")
        self.key = key


class SessionStoreCorrupt(SessionStoreError):
    def __init__(self, path, detail: str) -> None:
        super().__init__(f"Session store {path} is invalid: {detail}.")
        self.path = path
