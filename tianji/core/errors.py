class TianjiError(Exception):
    code = "E_INTERNAL"
    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(TianjiError):
    code = "E_VALIDATION"
    status_code = 400
    default_message = "Invalid request"


class UnauthenticatedError(TianjiError):
    code = "E_UNAUTHENTICATED"
    status_code = 401
    default_message = "Authentication required"


class AlreadyUnlockedError(TianjiError):
    code = "E_ALREADY_UNLOCKED"
    status_code = 400
    default_message = "Time asset already unlocked"


class SubscriptionConflictError(TianjiError):
    code = "E_SUBSCRIPTION_CONFLICT"
    status_code = 400
    default_message = "An open subscription already exists"


class InsufficientBalanceError(TianjiError):
    code = "E_INSUFFICIENT_BALANCE"
    status_code = 402
    default_message = "Insufficient coin balance"


class QuotaExceededError(TianjiError):
    code = "E_QUOTA_EXCEEDED"
    status_code = 403
    default_message = "Daily usage limit reached"


class NotFoundError(TianjiError):
    code = "E_NOT_FOUND"
    status_code = 404
    default_message = "Not found"
