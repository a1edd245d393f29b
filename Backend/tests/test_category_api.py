"""
Category API tests.

Run with: pytest Backend/tests/test_category_api.py -v
"""

import uuid

import pytest
from httpx import AsyncClient

from conftest import CUSTOMER_HEADERS, OTHER_ORG_HEADERS, STAFF_HEADERS


async def create_category(client: AsyncClient, name: str, **fields) -> dict:
    response = await client.post("/api/category", json={"name": name, **fields}, headers=STAFF_HEADERS)
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture
async def three_categories(client: AsyncClient) -> list[dict]:
    return [
        await create_category(client, "T-Shirts"),
        await create_category(client, "Dress Shirts"),
        await create_category(client, "Jeans"),
    ]


# ============================================================================
# LIST
# ============================================================================

@pytest.mark.asyncio
async def test_list_empty(client: AsyncClient):
    response = await client.get("/api/category")

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "data": [],
        "meta": {"page": 1, "pageSize": 10, "total": 0, "totalPages": 0},
    }


@pytest.mark.asyncio
async def test_second_page_of_size_one(client: AsyncClient, three_categories):
    response = await client.get("/api/category", params={"page": 2, "pageSize": 1})

    assert response.status_code == 200
    body = response.json()
    assert [c["name"] for c in body["data"]] == ["Dress Shirts"]
    assert body["meta"] == {"page": 2, "pageSize": 1, "total": 3, "totalPages": 3}


@pytest.mark.asyncio
async def test_page_past_the_end(client: AsyncClient, three_categories):
    response = await client.get("/api/category", params={"page": 4, "pageSize": 2})

    body = response.json()
    assert body["data"] == []
    assert body["meta"] == {"page": 4, "pageSize": 2, "total": 3, "totalPages": 2}


@pytest.mark.asyncio
async def test_huge_page_is_past_the_end(client: AsyncClient, three_categories):
    response = await client.get("/api/category", params={"page": str(10**20), "pageSize": 1})

    assert response.status_code == 200
    body = response.json()
    assert body["data"] == []
    assert body["meta"] == {"page": 10**20, "pageSize": 1, "total": 3, "totalPages": 3}


@pytest.mark.asyncio
async def test_oversized_page_size_is_a_bad_request(client: AsyncClient):
    response = await client.get("/api/category", params={"pageSize": str(10**20)})

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid pagination"


@pytest.mark.asyncio
async def test_repeated_get_yields_identical_meta(client: AsyncClient, three_categories):
    first = await client.get("/api/category", params={"pageSize": 2})
    second = await client.get("/api/category", params={"pageSize": 2})

    assert first.json()["meta"] == second.json()["meta"]


@pytest.mark.asyncio
async def test_search_is_case_insensitive_substring(client: AsyncClient, three_categories):
    response = await client.get("/api/category", params={"query": "SHIRT"})

    assert sorted(c["name"] for c in response.json()["data"]) == ["Dress Shirts", "T-Shirts"]
    assert response.json()["meta"]["total"] == 2


@pytest.mark.asyncio
async def test_search_accepts_q(client: AsyncClient, three_categories):
    response = await client.get("/api/category", params={"q": "jea"})

    assert [c["name"] for c in response.json()["data"]] == ["Jeans"]


@pytest.mark.asyncio
async def test_empty_search_matches_everything(client: AsyncClient, three_categories):
    response = await client.get("/api/category", params={"query": ""})

    assert response.json()["meta"]["total"] == 3


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(client: AsyncClient, three_categories):
    response = await client.get("/api/category", params={"q": "%"})

    assert response.json()["data"] == []


@pytest.mark.asyncio
async def test_negative_page_size_is_a_bad_request(client: AsyncClient):
    response = await client.get("/api/category", params={"pageSize": -1})

    assert response.status_code == 400
    assert response.json()["success"] is False


# ============================================================================
# CREATE
# ============================================================================

@pytest.mark.asyncio
async def test_create_derives_slug_and_defaults(client: AsyncClient):
    category = await create_category(client, "Cotton T-Shirts!", description="Soft tees", sortOrder=2)

    assert category["slug"] == "cotton-t-shirts"
    assert category["isActive"] is True
    assert category["sortOrder"] == 2
    assert category["description"] == "Soft tees"
    assert category["parent"] is None
    uuid.UUID(category["id"])


@pytest.mark.asyncio
async def test_create_ignores_client_slug(client: AsyncClient):
    category = await create_category(client, "Hoodies", slug="something-else")

    assert category["slug"] == "hoodies"


@pytest.mark.asyncio
@pytest.mark.parametrize("headers", [{}, CUSTOMER_HEADERS, OTHER_ORG_HEADERS, {"Authorization": "Bearer forged"}])
async def test_create_requires_staff(client: AsyncClient, headers):
    response = await client.post("/api/category", json={"name": "Socks"}, headers=headers)

    assert response.status_code == 401
    assert response.json() == {
        "success": False,
        "error": "Unauthorized",
        "message": "You are not allowed to perform this action",
    }


@pytest.mark.asyncio
async def test_create_validation_details(client: AsyncClient):
    response = await client.post("/api/category", json={"name": "ab", "sortOrder": "first"}, headers=STAFF_HEADERS)

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Invalid request body"
    assert set(body["details"]) >= {"name", "sortOrder", "availableFields"}
    assert "name (required)" in body["details"]["availableFields"]
    assert "seoTitle (optional)" in body["details"]["availableFields"]


@pytest.mark.asyncio
async def test_create_rejects_malformed_json(client: AsyncClient):
    response = await client.post(
        "/api/category",
        content=b"{not json",
        headers={**STAFF_HEADERS, "Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Request body must be valid JSON"


@pytest.mark.asyncio
async def test_create_rejects_duplicate_slug(client: AsyncClient):
    await create_category(client, "Summer Sale")

    response = await client.post("/api/category", json={"name": "summer   sale"}, headers=STAFF_HEADERS)

    assert response.status_code == 400
    assert response.json()["success"] is False


# ============================================================================
# READ / UPDATE / DELETE
# ============================================================================

@pytest.mark.asyncio
async def test_get_by_id(client: AsyncClient):
    category = await create_category(client, "Jackets")

    response = await client.get(f"/api/category/{category['id']}")

    assert response.status_code == 200
    assert response.json() == {"success": True, "data": category}


@pytest.mark.asyncio
@pytest.mark.parametrize("category_id", [str(uuid.uuid4()), "not-an-id"])
async def test_get_missing_is_404(client: AsyncClient, category_id):
    response = await client.get(f"/api/category/{category_id}")

    assert response.status_code == 404
    assert response.json()["error"] == "Category not found"


@pytest.mark.asyncio
async def test_update_rederives_slug(client: AsyncClient):
    category = await create_category(client, "Jackets")

    response = await client.put(
        f"/api/category/{category['id']}",
        json={"name": "Winter Jackets", "isActive": False},
        headers=STAFF_HEADERS,
    )

    assert response.status_code == 200
    updated = response.json()["data"]
    assert updated["id"] == category["id"]
    assert updated["slug"] == "winter-jackets"
    assert updated["isActive"] is False


@pytest.mark.asyncio
async def test_update_missing_is_404(client: AsyncClient):
    response = await client.put(f"/api/category/{uuid.uuid4()}", json={"name": "Ghost"}, headers=STAFF_HEADERS)

    assert response.status_code == 404
    assert response.json()["error"] == "Category not found"


@pytest.mark.asyncio
async def test_update_requires_staff(client: AsyncClient):
    category = await create_category(client, "Jackets")

    response = await client.put(f"/api/category/{category['id']}", json={"name": "Coats"}, headers=CUSTOMER_HEADERS)

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_delete(client: AsyncClient):
    category = await create_category(client, "Scarves")

    response = await client.delete(f"/api/category/{category['id']}", headers=STAFF_HEADERS)

    assert response.status_code == 200
    assert response.json()["data"]["id"] == category["id"]
    assert (await client.get(f"/api/category/{category['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_delete_requires_staff(client: AsyncClient):
    category = await create_category(client, "Scarves")

    response = await client.delete(f"/api/category/{category['id']}")

    assert response.status_code == 401
    assert (await client.get(f"/api/category/{category['id']}")).status_code == 200
