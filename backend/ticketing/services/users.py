from ticketing.domain import EmailTakenError, Result, User, UserNotFoundError, UserRole
from ticketing.ids import new_id
from ticketing.services.base import USER_EMAILS, USERS, load_record
from ticketing.stores import StoreGateway, Write, WriteConflictError


class UserDirectory:
    """Local attendee profiles. Identity itself is verified upstream."""

    def __init__(self, store: StoreGateway) -> None:
        self._store = store

    async def create_user(self, *, name: str, email: str, role: UserRole = UserRole.STUDENT) -> Result[User]:
        email = email.strip().lower()
        if await self._store.get_one(USER_EMAILS, email) is not None:
            return Result.failure(EmailTakenError(email))
        user = User(id=new_id("usr"), name=name.strip(), email=email, role=role)
        try:
            await self._store.conditional_write(
                [
                    Write.insert(USERS, user.id, user.to_json()),
                    Write.insert(USER_EMAILS, email, {"user_id": user.id}),
                ]
            )
        except WriteConflictError:
            # Handle race: another request claimed the email between check and write
            return Result.failure(EmailTakenError(email))
        return Result.success(user)

    async def get_user(self, user_id: str) -> Result[User]:
        user = await load_record(self._store, USERS, user_id, User)
        if user is None:
            return Result.failure(UserNotFoundError(user_id))
        return Result.success(user)
