from sqlalchemy import func, select

from eats.core.results import ErrorCode
from eats.models import User, UserRole, Verification

EMAIL = "client@eats.io"


async def count(db, model) -> int:
    result = await db.execute(select(func.count(model.id)))
    return result.scalar()


async def test_create_account_stores_user_and_verification(db, user_service, mailer):
    result = await user_service.create_account(EMAIL, "12345", UserRole.CLIENT)

    assert result.ok
    assert await count(db, User) == 1
    assert await count(db, Verification) == 1

    verification = (await db.execute(select(Verification))).scalars().one()
    assert verification.user_id == result.value.id
    mailer.assert_called_once_with(EMAIL, verification.code)


async def test_create_account_with_taken_email_fails(db, user_service, mailer):
    await user_service.create_account(EMAIL, "12345", UserRole.CLIENT)
    mailer.reset_mock()

    result = await user_service.create_account(EMAIL, "other", UserRole.OWNER)

    assert not result.ok
    assert result.error_code == ErrorCode.ALREADY_EXISTS
    assert result.error == "User with input email already exists."
    assert await count(db, User) == 1
    assert await count(db, Verification) == 1
    mailer.assert_not_called()


async def test_login(user_service, tokens):
    created = await user_service.create_account(EMAIL, "12345", UserRole.CLIENT)

    result = await user_service.login(EMAIL, "12345")

    assert result.ok
    assert tokens.verify(result.value)["id"] == created.value.id


async def test_login_wrong_password(user_service):
    await user_service.create_account(EMAIL, "12345", UserRole.CLIENT)

    result = await user_service.login(EMAIL, "wrong")

    assert not result.ok
    assert result.error_code == ErrorCode.WRONG_PASSWORD
    assert result.value is None


async def test_login_unknown_user(user_service):
    result = await user_service.login("ghost@eats.io", "12345")
    assert result.error_code == ErrorCode.NOT_FOUND


async def test_find_by_id(user_service):
    created = await user_service.create_account(EMAIL, "12345", UserRole.CLIENT)

    found = await user_service.find_by_id(created.value.id)
    assert found.ok
    assert found.value.email == EMAIL

    missing = await user_service.find_by_id(999)
    assert missing.error_code == ErrorCode.NOT_FOUND


async def test_verification_code_is_single_use(db, user_service):
    created = await user_service.create_account(EMAIL, "12345", UserRole.CLIENT)
    code = (await db.execute(select(Verification.code))).scalar_one()

    first = await user_service.verify_email(code)
    second = await user_service.verify_email(code)

    assert first.ok
    assert first.value.id == created.value.id
    assert first.value.verified
    assert not second.ok
    assert second.error_code == ErrorCode.NOT_FOUND
    assert await count(db, Verification) == 0


async def test_edit_profile_email_change_requires_new_verification(db, user_service, mailer):
    created = await user_service.create_account(EMAIL, "12345", UserRole.CLIENT)
    old_code = (await db.execute(select(Verification.code))).scalar_one()
    await user_service.verify_email(old_code)
    mailer.reset_mock()

    result = await user_service.edit_profile(created.value.id, email="new@eats.io")

    assert result.ok
    assert result.value.email == "new@eats.io"
    assert not result.value.verified
    new_code = (await db.execute(select(Verification.code))).scalar_one()
    assert new_code != old_code
    mailer.assert_called_once_with("new@eats.io", new_code)


async def test_edit_profile_password(user_service):
    created = await user_service.create_account(EMAIL, "12345", UserRole.CLIENT)

    result = await user_service.edit_profile(created.value.id, password="better")

    assert result.ok
    assert (await user_service.login(EMAIL, "better")).ok
    assert not (await user_service.login(EMAIL, "12345")).ok


async def test_edit_profile_rejects_taken_email(user_service):
    await user_service.create_account("taken@eats.io", "12345", UserRole.OWNER)
    created = await user_service.create_account(EMAIL, "12345", UserRole.CLIENT)

    result = await user_service.edit_profile(created.value.id, email="taken@eats.io")

    assert result.error_code == ErrorCode.ALREADY_EXISTS


async def test_edit_profile_missing_user(user_service, mailer):
    result = await user_service.edit_profile(999, email="new@eats.io")

    assert result.error_code == ErrorCode.NOT_FOUND
    mailer.assert_not_called()


async def test_signup_race_on_same_email(db, user_service, mailer, monkeypatch):
    await user_service.create_account(EMAIL, "12345", UserRole.CLIENT)
    mailer.reset_mock()

    # Both requests passed the lookup before either committed
    async def nobody(*criteria):
        return None
    monkeypatch.setattr(user_service.users, "find_one", nobody)

    result = await user_service.create_account(EMAIL, "other", UserRole.OWNER)

    assert result.error_code == ErrorCode.ALREADY_EXISTS
    assert await count(db, User) == 1
    mailer.assert_not_called()


async def test_create_account_database_failure(db, user_service, mailer, monkeypatch, broken_query):
    monkeypatch.setattr(user_service.users, "save", broken_query)

    result = await user_service.create_account(EMAIL, "12345", UserRole.CLIENT)

    assert not result.ok
    assert result.error_code == ErrorCode.INFRASTRUCTURE_FAILURE
    assert await count(db, User) == 0
    mailer.assert_not_called()


async def test_login_database_failure(user_service, monkeypatch, broken_query):
    monkeypatch.setattr(user_service.users, "find_one", broken_query)

    result = await user_service.login(EMAIL, "12345")

    assert result.error_code == ErrorCode.INFRASTRUCTURE_FAILURE
