class AppError(Exception):
    """Request-level failure that the API turns into an ``ErrorResponse``."""

    def __init__(self, code: str, message: str, status_code: int = 400, details: dict | None = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}

    def __repr__(self) -> str:
        return f'AppError(code={self.code!r}, status_code={self.status_code})'
