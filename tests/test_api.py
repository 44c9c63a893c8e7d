import pytest
from fastapi.testclient import TestClient

from inedit_cms.config import content
from inedit_cms.config.content import DOMAINS
from inedit_cms.main import app
from inedit_cms.services.registry import ServiceRegistry, get_registry

ADMIN_TOKEN = "test-admin-token"
ADMIN = {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture(name="api_client")
def client_fixture(file_store, monkeypatch):
    registry = ServiceRegistry(file_store, backends={domain: "file" for domain in DOMAINS})
    monkeypatch.setattr(content, "ADMIN_API_TOKEN", ADMIN_TOKEN)
    app.dependency_overrides[get_registry] = lambda: registry

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


def test_health(api_client: TestClient) -> None:
    response = api_client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_admin_requires_bearer_token(api_client: TestClient) -> None:
    assert api_client.get("/api/admin/menu").status_code == 401
    assert api_client.get("/api/admin/menu", headers={"Authorization": "Bearer nope"}).status_code == 403
    assert api_client.get("/api/admin/menu", headers=ADMIN).status_code == 200


def test_admin_disabled_without_configured_token(api_client: TestClient, monkeypatch) -> None:
    monkeypatch.setattr(content, "ADMIN_API_TOKEN", None)

    assert api_client.get("/api/admin/pages", headers=ADMIN).status_code == 503


def test_beverages_flow(api_client: TestClient) -> None:
    category = api_client.post(
        "/api/admin/beverages",
        json={"type": "category", "slug": "reds", "localized_names": {"en": "Reds", "es": "Tintos"}},
        headers=ADMIN,
    )
    assert category.status_code == 201
    category_id = category.json()["id"]

    item = api_client.post(
        "/api/admin/beverages",
        json={"type": "item", "localized_names": {"es": "Rioja"}, "price": "24", "category_id": category_id},
        headers=ADMIN,
    )
    assert item.status_code == 201

    listed = api_client.get("/api/beverages", params={"locale": "en", "type": "items", "category_id": category_id})
    assert [entry["name"] for entry in listed.json()] == ["Rioja"]

    categories = api_client.get("/api/beverages", params={"locale": "es", "type": "categories"})
    assert [entry["name"] for entry in categories.json()] == ["Tintos"]

    duplicate = api_client.post(
        "/api/admin/beverages",
        json={"type": "category", "slug": "reds", "localized_names": {"en": "Reds"}},
        headers=ADMIN,
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["detail"]["kind"] == "conflict"

    patched = api_client.patch(
        f"/api/admin/beverages/categories/{category_id}",
        json={"localized_names": {"fr": "Rouges"}},
        headers=ADMIN,
    )
    assert patched.status_code == 200

    raw = api_client.get("/api/admin/beverages", headers=ADMIN).json()
    assert raw["categories"][0]["name"] == {"en": "Reds", "es": "Tintos", "fr": "Rouges"}

    deleted = api_client.delete(f"/api/admin/beverages/categories/{category_id}", headers=ADMIN)
    assert deleted.status_code == 204
    again = api_client.delete(f"/api/admin/beverages/categories/{category_id}", headers=ADMIN)
    assert again.status_code == 404

    remaining = api_client.get("/api/beverages", params={"type": "items"}).json()
    assert remaining[0]["category_id"] is None


def test_menu_defaults_to_categories_and_items(api_client: TestClient) -> None:
    response = api_client.get("/api/menu")

    assert response.status_code == 200
    assert response.json() == {"categories": [], "items": []}


def test_invalid_payload_is_unprocessable(api_client: TestClient) -> None:
    response = api_client.post(
        "/api/admin/menu",
        json={"type": "category", "slug": "Not A Slug", "localized_names": {"en": "X"}},
        headers=ADMIN,
    )

    assert response.status_code == 422


def test_pages_endpoints(api_client: TestClient) -> None:
    created = api_client.post(
        "/api/admin/pages",
        json={"slug": "legal", "title": {"en": "Legal notice", "es": "Aviso legal"}},
        headers=ADMIN,
    )
    assert created.status_code == 201

    page = api_client.get("/api/pages/legal", params={"locale": "es"})
    assert page.json()["title"] == "Aviso legal"
    assert api_client.get("/api/pages/nowhere").status_code == 404

    page_id = created.json()["id"]
    assert api_client.delete(f"/api/admin/pages/{page_id}", headers=ADMIN).status_code == 204
    assert api_client.get("/api/pages").json() == []


def test_settings_endpoints(api_client: TestClient) -> None:
    assert api_client.get("/api/settings").status_code == 404

    assert api_client.post("/api/admin/settings/initialize", headers=ADMIN).status_code == 201
    updated = api_client.put("/api/admin/settings", json={"name": {"fr": "Restaurant Inedit"}}, headers=ADMIN)
    assert updated.status_code == 200

    assert api_client.get("/api/settings", params={"locale": "fr"}).json()["name"] == "Restaurant Inedit"


def test_translations_endpoints(api_client: TestClient) -> None:
    response = api_client.put(
        "/api/admin/translations/en",
        json={"translations": {"nav.menu": "Menu"}},
        headers=ADMIN,
    )
    assert response.json() == {"locale": "en", "written": 1}

    assert api_client.get("/api/translations", params={"locale": "de"}).json() == {"nav.menu": "Menu"}
    assert api_client.get("/api/admin/translations/de", headers=ADMIN).json() == {}

    removed = api_client.delete("/api/admin/translations/keys/nav.menu", headers=ADMIN)
    assert removed.json() == {"key": "nav.menu", "removed": 1}


def test_gallery_endpoints(api_client: TestClient) -> None:
    created = api_client.post(
        "/api/admin/gallery",
        json={"title": {"en": "Terrace"}, "image": {"url": "https://cdn.example.com/t.jpg"}},
        headers=ADMIN,
    )
    assert created.status_code == 201

    listed = api_client.get("/api/gallery", params={"locale": "es"}).json()
    assert listed[0]["title"] == "Terrace"

    image_id = created.json()["id"]
    assert api_client.patch(f"/api/admin/gallery/{image_id}", json={"title": {"es": "Terraza"}}, headers=ADMIN).status_code == 200
    assert api_client.get("/api/gallery", params={"locale": "es"}).json()[0]["title"] == "Terraza"
