from fastapi import HTTPException, status

GENERIC_ERROR_MESSAGE = "Internal server error, please contact the administrator"

class BaseAppException(HTTPException):
    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)

class ValidationError(BaseAppException):
    def __init__(self, detail: str = "Validation error"):
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)

class NotFoundError(BaseAppException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

class ForbiddenError(BaseAppException):
    def __init__(self, detail: str = "Not enough permissions"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)

class BusinessRuleError(BaseAppException):
    def __init__(self, detail: str = "Operation not allowed"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

class InvalidTransitionError(BaseAppException):
    def __init__(self, detail: str = "Invalid application state transition"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)
