"""
Domain exceptions raised by adapters.

Use cases translate these into Result errors; nothing here should reach the
HTTP layer uncaught.
"""


class RecoveryServiceError(Exception):
    pass


class DuplicateUserError(RecoveryServiceError):
    """A unique user field (email, username or phone) is already taken"""

    field = "user"

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"{self.field.capitalize()} already registered: {value}")


class DuplicateEmailError(DuplicateUserError):
    field = "email"


class DuplicateUsernameError(DuplicateUserError):
    field = "username"


class DuplicatePhoneError(DuplicateUserError):
    field = "phone"


class UserNotFoundError(RecoveryServiceError):
    def __init__(self, user_id):
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


class StoreUnavailableError(RecoveryServiceError):
    """Credential store could not be reached or failed mid-operation"""


class DeliveryError(RecoveryServiceError):
    """A real notification transport rejected or failed to send a message"""
