from __future__ import annotations

import pytest
from fastapi import status
from httpx import AsyncClient

from conftest import ALICE_TOKEN, STORAGE_API_KEY, StorageServiceStub, bearer

pytestmark = pytest.mark.asyncio


async def test_upload_token_requires_authentication(
    client: AsyncClient,
    storage_service: StorageServiceStub,
) -> None:
    response = await client.post(
        "/api/uploads/token",
        json={"filename": "cat.png", "contentType": "image/png", "size": 10},
    )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert storage_service.upload_requests == []


async def test_upload_token_returns_presigned_target(
    client: AsyncClient,
    storage_service: StorageServiceStub,
) -> None:
    response = await client.post(
        "/api/uploads/token",
        json={"filename": "cat.png", "contentType": "image/png", "size": 2048},
        headers=bearer(ALICE_TOKEN),
    )

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["objectKey"] == "uploads/0001/cat.png"
    assert body["uploadTarget"].startswith("https://bucket.storage.test/")
    assert storage_service.api_keys == [STORAGE_API_KEY]


@pytest.mark.parametrize(
    "body",
    [
        {"contentType": "image/png", "size": 10},
        {"filename": "cat.png", "contentType": "image/png", "size": 0},
        {"filename": "cat.png", "contentType": "image/png", "size": "big"},
    ],
)
async def test_upload_token_validates_request(
    client: AsyncClient,
    storage_service: StorageServiceStub,
    body: dict,
) -> None:
    response = await client.post("/api/uploads/token", json=body, headers=bearer(ALICE_TOKEN))

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert storage_service.upload_requests == []


async def test_upload_token_storage_outage_is_service_unavailable(
    client: AsyncClient,
    storage_service: StorageServiceStub,
) -> None:
    storage_service.fail_everything = True

    response = await client.post(
        "/api/uploads/token",
        json={"filename": "cat.png", "contentType": "image/png", "size": 10},
        headers=bearer(ALICE_TOKEN),
    )

    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert response.json()["code"] == "storage_unavailable"


@pytest.mark.parametrize("field", ["objectKey", "objectId"])
async def test_complete_upload_returns_public_url(client: AsyncClient, field: str) -> None:
    response = await client.post(
        "/api/uploads/complete",
        json={field: "uploads/0001/cat.png"},
        headers=bearer(ALICE_TOKEN),
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "objectKey": "uploads/0001/cat.png",
        "url": "https://cdn.storage.test/uploads/0001/cat.png",
    }


async def test_complete_upload_requires_key(client: AsyncClient) -> None:
    response = await client.post("/api/uploads/complete", json={}, headers=bearer(ALICE_TOKEN))

    assert response.status_code == status.HTTP_400_BAD_REQUEST


async def test_complete_upload_of_missing_object(
    client: AsyncClient,
    storage_service: StorageServiceStub,
) -> None:
    storage_service.incomplete_keys.add("uploads/0009/ghost.png")

    response = await client.post(
        "/api/uploads/complete",
        json={"objectKey": "uploads/0009/ghost.png"},
        headers=bearer(ALICE_TOKEN),
    )

    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert response.json()["code"] == "upload_incomplete"
