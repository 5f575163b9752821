"""
Error types raised by the gateway and the workflows
"""


class ModelManagerError(Exception):
    """Base class for every error the client reports to the user"""


class GatewayError(ModelManagerError):
    """The Model Registry Gateway call did not succeed"""


class NetworkError(GatewayError):
    """Transport failure or unreachable backend"""


class HttpStatusError(GatewayError):
    """Backend answered with a non-success HTTP status"""

    def __init__(self, status_code: int, message: str = None):
        self.status_code = status_code
        super().__init__(message or f"Request failed with status code {status_code}")


class ValidationError(ModelManagerError):
    """User input rejected before any request was made"""
