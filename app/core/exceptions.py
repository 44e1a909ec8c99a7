from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
        )


class ConflictError(Exception):
    """A request that is well-formed but clashes with current state.

    Rendered as a soft ``{"success": false}`` response rather than an HTTP
    error so clients can show the message inline.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
