class GatewayError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ClientInputError(GatewayError):
    """Raised when a request payload fails the shape checks."""

    def __init__(self, message: str):
        super().__init__(400, message)
