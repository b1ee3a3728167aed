from recovery_service.app.repositories.credential_store import ICredentialStore
from recovery_service.app.services.password_hasher import PasswordHasher
from recovery_service.domain.entities import User
from recovery_service.domain.errors import (
    DuplicateEmailError,
    DuplicatePhoneError,
    DuplicateUsernameError,
    StoreUnavailableError,
)
from recovery_service.libs.result import Error, Result, Return
from .dtos import RegisterUserCommand, RegisterUserResponse


class RegisterUserUseCase:
    """
    Register User Use Case

    Business Logic:
    1. Validate password complexity
    2. Hash password with bcrypt cost factor 12
    3. Create User (email lower-cased, phone normalized by the store)
    4. EMAIL_ALREADY_EXISTS, USERNAME_ALREADY_EXISTS or PHONE_ALREADY_EXISTS
       when that field is already registered
    """

    def __init__(self, store: ICredentialStore, password_hasher: PasswordHasher):
        self.store = store
        self.password_hasher = password_hasher

    async def execute(self, command: RegisterUserCommand) -> Result[RegisterUserResponse]:
        password_validation = self.password_hasher.validate(command.password)
        if password_validation.is_err():
            return Return.err(password_validation.error)

        user = User(
            email=command.email,
            username=command.username,
            phone=command.phone,
            password_hash=self.password_hasher.hash(command.password),
        )

        try:
            user = await self.store.create(user)
        except DuplicateEmailError:
            return Return.err(Error("EMAIL_ALREADY_EXISTS", "Email already registered"))
        except DuplicateUsernameError:
            return Return.err(Error("USERNAME_ALREADY_EXISTS", "Username already taken"))
        except DuplicatePhoneError:
            return Return.err(Error("PHONE_ALREADY_EXISTS", "Phone number already registered"))
        except StoreUnavailableError:
            return Return.err(
                Error("STORE_UNAVAILABLE", "Service temporarily unavailable, please try again")
            )

        return Return.ok(
            RegisterUserResponse(
                id=str(user.id),
                email=user.email,
                username=user.username,
                phone=user.phone,
            )
        )
