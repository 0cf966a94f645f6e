class ApiError(Exception):
    """Domain rejection raised by services; rendered as ``{"error": message}``."""

    def __init__(self, status_code: int, message: str, details=None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.details = details

def not_found(what: str) -> ApiError:
    return ApiError(404, f"{what} not found")
