"""Unit tests for AccessControl."""

import pytest

from app.domains.files.access import AccessControl
from app.exceptions.file import FilePermissionError
from models.file_permission import PermissionLevel
from tests.factories import FileFactory, PermissionFactory


@pytest.fixture
def access(test_db):
    return AccessControl(test_db)


class TestAccessControl:
    """Test cases for read/write decisions."""

    @pytest.mark.asyncio
    async def test_owner_can_read_and_write(self, access, test_db, test_user):
        item = await FileFactory.create_async(test_db, owner_id=test_user.id)

        assert await access.can_read(item, test_user)
        assert await access.can_write(item, test_user)

    @pytest.mark.asyncio
    async def test_stranger_has_no_access(self, access, test_db, test_user, test_user_2):
        item = await FileFactory.create_async(test_db, owner_id=test_user.id)

        assert not await access.can_read(item, test_user_2)
        assert not await access.can_write(item, test_user_2)
        with pytest.raises(FilePermissionError):
            await access.require_read(item, test_user_2)

    @pytest.mark.asyncio
    async def test_view_share_reads_only(self, access, test_db, test_user, test_user_2):
        item = await FileFactory.create_async(test_db, owner_id=test_user.id)
        await PermissionFactory.create_async(
            test_db, file_item_id=item.id, user_id=test_user_2.id, permission_level=PermissionLevel.VIEW
        )

        assert await access.can_read(item, test_user_2)
        assert not await access.can_write(item, test_user_2)
        with pytest.raises(FilePermissionError) as exc_info:
            await access.require_write(item, test_user_2)
        assert "write permission" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_edit_share_reads_and_writes(self, access, test_db, test_user, test_user_2):
        item = await FileFactory.create_async(test_db, owner_id=test_user.id)
        await PermissionFactory.create_async(
            test_db, file_item_id=item.id, user_id=test_user_2.id, permission_level=PermissionLevel.EDIT
        )

        assert await access.can_read(item, test_user_2)
        assert await access.can_write(item, test_user_2)
        await access.require_write(item, test_user_2)

    @pytest.mark.asyncio
    async def test_require_owner(self, access, test_db, test_user, test_user_2):
        item = await FileFactory.create_async(test_db, owner_id=test_user.id)
        await PermissionFactory.create_async(
            test_db, file_item_id=item.id, user_id=test_user_2.id, permission_level=PermissionLevel.EDIT
        )

        access.require_owner(item, test_user)
        with pytest.raises(FilePermissionError) as exc_info:
            access.require_owner(item, test_user_2, "remove shares")
        assert exc_info.value.message == "Only the owner can remove shares"
        assert exc_info.value.status_code == 403
