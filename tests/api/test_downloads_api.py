"""
API tests for the folder download controller.

Archive jobs run on the in-process worker pool bound to the test database;
``worker_pool.drain()`` waits for them.
"""

import io
import zipfile

import pytest
from fastapi import status
from httpx import AsyncClient

from models.download_request import DownloadStatus
from tests.factories import DownloadRequestFactory, PermissionFactory, create_tree


async def start_download(client, folder_id, headers=None):
    response = await client.post(f"/api/v1/files/{folder_id}/download-archive", headers=headers)
    assert response.status_code == status.HTTP_202_ACCEPTED
    return response.json()["data"]["request_id"]


class TestInitiate:
    """Test cases for POST /files/{id}/download-archive."""

    @pytest.mark.asyncio
    async def test_initiate_returns_pending(self, authenticated_client: AsyncClient, test_db, test_user, blob_store):
        tree = await create_tree(test_db, blob_store, test_user)

        response = await authenticated_client.post(f"/api/v1/files/{tree['Docs'].id}/download-archive")

        assert response.status_code == status.HTTP_202_ACCEPTED
        data = response.json()["data"]
        assert data["status"] == "PENDING"
        assert len(data["request_id"]) >= 32

    @pytest.mark.asyncio
    async def test_initiate_on_file_rejected(self, authenticated_client: AsyncClient, test_db, test_user, blob_store):
        tree = await create_tree(test_db, blob_store, test_user)

        response = await authenticated_client.post(f"/api/v1/files/{tree['report.pdf'].id}/download-archive")

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["message"] == "Only folders can be downloaded as zip"

    @pytest.mark.asyncio
    async def test_initiate_without_access(
        self, client: AsyncClient, auth_headers, test_db, test_user, test_user_2, blob_store
    ):
        tree = await create_tree(test_db, blob_store, test_user)

        response = await client.post(
            f"/api/v1/files/{tree['Docs'].id}/download-archive", headers=auth_headers(test_user_2)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestStatusAndFetch:
    """Test cases for polling and fetching archives."""

    @pytest.mark.asyncio
    async def test_full_cycle(self, authenticated_client: AsyncClient, test_db, test_user, blob_store, worker_pool):
        tree = await create_tree(test_db, blob_store, test_user)
        request_id = await start_download(authenticated_client, tree["Docs"].id)

        await worker_pool.drain()
        status_response = await authenticated_client.get(f"/api/v1/files/downloads/{request_id}")
        data = status_response.json()["data"]

        assert data["status"] == "READY"
        assert data["message"] == "Zip file is ready for download"
        assert data["download_url"] == f"/api/v1/files/downloads/{request_id}/file"

        archive = await authenticated_client.get(data["download_url"])
        assert archive.status_code == status.HTTP_200_OK
        assert archive.headers["content-type"] == "application/zip"
        assert "Docs.zip" in archive.headers["content-disposition"]
        with zipfile.ZipFile(io.BytesIO(archive.content)) as zf:
            assert sorted(zf.namelist()) == ["Docs/Sub/", "Docs/Sub/notes.txt", "Docs/report.pdf"]

    @pytest.mark.asyncio
    async def test_sharee_downloads_shared_folder(
        self, client: AsyncClient, auth_headers, test_db, test_user, test_user_2, blob_store, worker_pool
    ):
        tree = await create_tree(test_db, blob_store, test_user)
        for item in tree.values():
            await PermissionFactory.create_async(test_db, file_item_id=item.id, user_id=test_user_2.id)
        headers = auth_headers(test_user_2)

        request_id = await start_download(client, tree["Docs"].id, headers)
        await worker_pool.drain()
        archive = await client.get(f"/api/v1/files/downloads/{request_id}/file", headers=headers)

        assert archive.status_code == status.HTTP_200_OK

    @pytest.mark.asyncio
    async def test_pending_status_and_early_fetch(self, authenticated_client: AsyncClient, test_db, test_user, blob_store):
        tree = await create_tree(test_db, blob_store, test_user)
        request = await DownloadRequestFactory.create_async(
            test_db, file_item_id=tree["Docs"].id, user_id=test_user.id
        )

        status_response = await authenticated_client.get(f"/api/v1/files/downloads/{request.request_id}")
        fetch = await authenticated_client.get(f"/api/v1/files/downloads/{request.request_id}/file")

        assert status_response.json()["data"]["status"] == "PENDING"
        assert status_response.json()["data"]["download_url"] is None
        assert fetch.status_code == status.HTTP_409_CONFLICT
        assert fetch.json()["error_code"] == "INVALID_STATE"

    @pytest.mark.asyncio
    async def test_failed_status_message(self, authenticated_client: AsyncClient, test_db, test_user, blob_store):
        tree = await create_tree(test_db, blob_store, test_user)
        request = await DownloadRequestFactory.create_async(
            test_db,
            file_item_id=tree["Docs"].id,
            user_id=test_user.id,
            status=DownloadStatus.FAILED,
            error_message="disk full",
        )

        response = await authenticated_client.get(f"/api/v1/files/downloads/{request.request_id}")

        assert response.json()["message"] == "Download failed: disk full"

    @pytest.mark.asyncio
    async def test_ready_but_archive_missing(self, authenticated_client: AsyncClient, test_db, test_user, blob_store):
        tree = await create_tree(test_db, blob_store, test_user)
        request = await DownloadRequestFactory.create_async(
            test_db,
            file_item_id=tree["Docs"].id,
            user_id=test_user.id,
            status=DownloadStatus.READY,
            download_path="zips/gone.zip",
        )

        response = await authenticated_client.get(f"/api/v1/files/downloads/{request.request_id}/file")

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json()["error_code"] == "INTEGRITY_FAULT"

    @pytest.mark.asyncio
    async def test_other_users_request(
        self, client: AsyncClient, auth_headers, test_db, test_user, test_user_2, blob_store
    ):
        tree = await create_tree(test_db, blob_store, test_user)
        request = await DownloadRequestFactory.create_async(
            test_db, file_item_id=tree["Docs"].id, user_id=test_user.id
        )

        response = await client.get(
            f"/api/v1/files/downloads/{request.request_id}", headers=auth_headers(test_user_2)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.asyncio
    async def test_unknown_request(self, authenticated_client: AsyncClient):
        response = await authenticated_client.get("/api/v1/files/downloads/does-not-exist")

        assert response.status_code == status.HTTP_404_NOT_FOUND
