"""
Akademi Backend — User Service Unit Tests
===========================================

What we test:
    ✅ create-user inserts once per email with the "user" role
    ✅ create-user on an existing email writes nothing
    ✅ Lookup returns {} for unknown emails
    ✅ Role lookup for blank, unknown and known emails
    ✅ Role changes validate the role and the identifier before writing
    ✅ Driver errors surface as DatabaseError
"""

from unittest.mock import AsyncMock

import pytest
from bson import ObjectId
from pymongo.errors import OperationFailure

from akademi.exceptions import DatabaseError, InvalidIdentifierError, ValidationError
from akademi.schemas.user import CreateUserRequest
from akademi.services.user_service import EXISTING_USER_MESSAGE, UserService

from conftest import ADMIN_EMAIL, USER_EMAIL, make_collection


class TestCreateUser:

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_new_user_is_inserted_with_user_role(self):
        users = make_collection()
        inserted = ObjectId()
        users.insert_one.return_value.inserted_id = inserted

        result = await self.service.create_user(
            users, CreateUserRequest(displayName="Ada Lovelace", email="ada@akademi.test")
        )

        assert result.inserted_id == str(inserted)
        assert result.message is None
        document = users.insert_one.await_args.args[0]
        assert document["userEmail"] == "ada@akademi.test"
        assert document["userName"] == "Ada Lovelace"
        assert document["role"] == "user"
        assert "created_at" in document

    @pytest.mark.asyncio
    async def test_existing_user_is_not_inserted_again(self):
        users = make_collection()
        users.find_one.return_value = {"_id": ObjectId(), "userEmail": "ada@akademi.test", "role": "admin"}

        result = await self.service.create_user(users, CreateUserRequest(email="ada@akademi.test"))

        assert result.inserted_id is None
        assert result.message == EXISTING_USER_MESSAGE
        users.insert_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_response_uses_camel_case_keys(self):
        users = make_collection()
        users.find_one.return_value = {"userEmail": "ada@akademi.test"}

        result = await self.service.create_user(users, CreateUserRequest(email="ada@akademi.test"))

        assert result.model_dump(by_alias=True)["insertedId"] is None

    def test_blank_email_is_rejected(self):
        with pytest.raises(ValueError):
            CreateUserRequest(email="   ")


class TestGetUser:

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_unknown_email_returns_empty_dict(self, users):
        assert await self.service.get_user(users, "nobody@akademi.test") == {}

    @pytest.mark.asyncio
    async def test_known_email_returns_json_safe_record(self, users):
        record = await self.service.get_user(users, ADMIN_EMAIL)

        assert record["userEmail"] == ADMIN_EMAIL
        assert isinstance(record["_id"], str)

    @pytest.mark.asyncio
    async def test_role_lookup(self, users):
        assert await self.service.get_role(users, ADMIN_EMAIL) == "admin"
        assert await self.service.get_role(users, USER_EMAIL) == "user"
        assert await self.service.get_role(users, "nobody@akademi.test") is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("stored_role", [["admin"], {"name": "admin"}, 3])
    async def test_non_string_role_reads_as_no_role(self, stored_role):
        users = make_collection()
        users.find_one.return_value = {"userEmail": "odd@akademi.test", "role": stored_role}

        assert await self.service.get_role(users, "odd@akademi.test") is None

    @pytest.mark.asyncio
    async def test_blank_email_has_no_role_and_skips_the_store(self):
        users = make_collection()
        assert await self.service.get_role(users, None) is None
        assert await self.service.get_role(users, "") is None
        users.find_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_list_users(self):
        users = make_collection([{"_id": ObjectId(), "userEmail": "a@akademi.test"}])
        records = await self.service.list_users(users)
        assert [r["userEmail"] for r in records] == ["a@akademi.test"]


class TestUpdateRole:

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_sets_role_on_matching_id(self):
        users = make_collection()
        user_id = ObjectId()

        result = await self.service.update_role(users, str(user_id), "moderator")

        users.update_one.assert_awaited_once_with({"_id": user_id}, {"$set": {"role": "moderator"}})
        assert result.matched_count == 1
        assert result.model_dump(by_alias=True)["modifiedCount"] == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", [None, "", "superuser", "Admin"])
    async def test_unknown_role_is_rejected(self, role):
        users = make_collection()
        with pytest.raises(ValidationError) as exc_info:
            await self.service.update_role(users, str(ObjectId()), role)
        assert exc_info.value.field == "role"
        users.update_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_malformed_id_is_rejected(self):
        users = make_collection()
        with pytest.raises(InvalidIdentifierError):
            await self.service.update_role(users, "not-an-id", "admin")
        users.update_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_driver_error_becomes_database_error(self):
        users = make_collection()
        users.update_one = AsyncMock(side_effect=OperationFailure("write failed"))
        with pytest.raises(DatabaseError):
            await self.service.update_role(users, str(ObjectId()), "admin")
