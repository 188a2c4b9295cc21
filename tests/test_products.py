from decimal import Decimal

from conftest import auth_header, product_payload

from carnival.models.entities import Category


def test_list_is_empty_initially(client):
    response = client.get("/api/products")
    assert response.status_code == 200
    assert response.json() == {"success": True, "products": [], "count": 0}


def test_create_product_returns_relations(client, register, categories):
    token, seller = register(firstName="Marie", lastName="Dubois")
    response = client.post(
        "/api/products",
        json=product_payload(categories["masks"]["id"], sellerId="someone-else"),
        headers=auth_header(token),
    )
    assert response.status_code == 201
    product = response.json()["product"]
    assert product["sellerId"] == seller["id"]
    assert product["isAvailable"] is True
    assert Decimal(product["price"]) == Decimal("120.50")
    assert product["condition"] == "like-new"
    assert product["viewCount"] == 0
    assert product["seller"]["firstName"] == "Marie"
    assert product["seller"]["carnivalGroup"]["name"]
    assert product["category"]["slug"] == "masks"
    assert product["images"] == []


def test_create_requires_authentication(client, categories):
    response = client.post("/api/products", json=product_payload(categories["masks"]["id"]))
    assert response.status_code == 401


def test_create_with_unknown_category_uses_default(client, register, categories):
    token, _ = register()
    response = client.post(
        "/api/products",
        json=product_payload("0b8f3f2e-3c55-4f1c-9a55-0c1f6c9a1d11"),
        headers=auth_header(token),
    )
    assert response.status_code == 201
    # first category by name
    assert response.json()["product"]["category"]["slug"] == "accessories"


def test_create_without_any_category_is_rejected(client, register, db):
    assert db.query(Category).count() == 0
    token, _ = register()
    response = client.post(
        "/api/products",
        json=product_payload("0b8f3f2e-3c55-4f1c-9a55-0c1f6c9a1d11"),
        headers=auth_header(token),
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Please select a valid category"}


def test_create_validation_errors(client, register):
    token, _ = register()
    response = client.post("/api/products", json={"title": "Hat"}, headers=auth_header(token))
    assert response.status_code == 400
    details = response.json()["details"]
    assert {"field": "title", "message": "Product title must be at least 5 characters long"} in details
    assert {"field": "price", "message": "Price is required"} in details


def test_list_only_returns_available_products_newest_first(client, register, categories):
    token, _ = register()
    ids = []
    for title in ("First costume", "Second costume", "Third costume"):
        response = client.post(
            "/api/products",
            json=product_payload(categories["costumes"]["id"], title=title),
            headers=auth_header(token),
        )
        ids.append(response.json()["product"]["id"])
    client.delete(f"/api/products/{ids[1]}", headers=auth_header(token))

    body = client.get("/api/products").json()
    assert body["count"] == 2
    assert [p["id"] for p in body["products"]] == [ids[2], ids[0]]
    assert all(p["isAvailable"] for p in body["products"])


def test_list_filters(client, register, categories):
    token, _ = register()
    client.post(
        "/api/products",
        json=product_payload(categories["masks"]["id"], title="Venetian mask", condition="new"),
        headers=auth_header(token),
    )
    client.post(
        "/api/products",
        json=product_payload(categories["instruments"]["id"], title="Parade drum", condition="fair"),
        headers=auth_header(token),
    )

    def titles(**params):
        return [p["title"] for p in client.get("/api/products", params=params).json()["products"]]

    assert titles(category="masks") == ["Venetian mask"]
    assert titles(condition="fair") == ["Parade drum"]
    assert titles(search="DRUM") == ["Parade drum"]
    assert titles(category="props") == []


def test_invalid_condition_filter(client):
    response = client.get("/api/products", params={"condition": "broken"})
    assert response.status_code == 400
    assert response.json()["details"] == [{"field": "condition", "message": "Please select a valid condition"}]


def test_get_product_counts_views(client, listed_product):
    _, _, product = listed_product
    first = client.get(f"/api/products/{product['id']}").json()["product"]
    second = client.get(f"/api/products/{product['id']}").json()["product"]
    assert first["viewCount"] == 1
    assert second["viewCount"] == 2
    assert second["seller"]["id"] == product["sellerId"]


def test_get_unknown_product(client):
    response = client.get("/api/products/0b8f3f2e-3c55-4f1c-9a55-0c1f6c9a1d11")
    assert response.status_code == 404
    assert response.json() == {"error": "Product not found"}


def test_update_product(client, listed_product, categories):
    token, _, product = listed_product
    response = client.put(
        f"/api/products/{product['id']}",
        json={"price": "99.99", "categoryId": categories["props"]["id"], "color": ""},
        headers=auth_header(token),
    )
    assert response.status_code == 200
    updated = response.json()["product"]
    assert Decimal(updated["price"]) == Decimal("99.99")
    assert updated["category"]["slug"] == "props"
    assert updated["color"] is None
    assert updated["title"] == product["title"]


def test_update_with_unknown_category(client, listed_product):
    token, _, product = listed_product
    response = client.put(
        f"/api/products/{product['id']}",
        json={"categoryId": "0b8f3f2e-3c55-4f1c-9a55-0c1f6c9a1d11"},
        headers=auth_header(token),
    )
    assert response.status_code == 400


def test_only_owner_can_change_product(client, register, listed_product):
    _, _, product = listed_product
    other, _ = register()
    update = client.put(f"/api/products/{product['id']}", json={"price": 1}, headers=auth_header(other))
    delete = client.delete(f"/api/products/{product['id']}", headers=auth_header(other))
    assert update.status_code == 403
    assert delete.status_code == 403


def test_delete_is_soft(client, listed_product):
    token, _, product = listed_product
    response = client.delete(f"/api/products/{product['id']}", headers=auth_header(token))
    assert response.status_code == 200
    still_there = client.get(f"/api/products/{product['id']}").json()["product"]
    assert still_there["isAvailable"] is False


def test_products_by_user(client, register, listed_product):
    _, seller, product = listed_product
    body = client.get(f"/api/products/user/{seller['id']}").json()
    assert [p["id"] for p in body["products"]] == [product["id"]]

    _, nobody = register()
    assert client.get(f"/api/products/user/{nobody['id']}").json()["count"] == 0


def test_upload_images(client, listed_product, settings):
    token, _, product = listed_product
    response = client.post(
        f"/api/products/{product['id']}/images",
        files=[
            ("images", ("Red Mask.png", b"\x89PNG\r\n\x1a\nfake", "image/png")),
            ("images", ("side.jpg", b"\xff\xd8\xfffake", "image/jpeg")),
        ],
        headers=auth_header(token),
    )
    assert response.status_code == 201
    images = response.json()["images"]
    assert [image["isPrimary"] for image in images] == [True, False]
    assert images[0]["filename"].endswith("-red-mask.png")
    assert images[0]["url"] == f"/uploads/{images[0]['filename']}"

    served = client.get(images[0]["url"])
    assert served.status_code == 200
    assert served.content == b"\x89PNG\r\n\x1a\nfake"

    listed = client.get(f"/api/products/{product['id']}").json()["product"]
    assert len(listed["images"]) == 2
    assert listed["images"][0]["isPrimary"] is True


def test_upload_rejects_non_images(client, listed_product):
    token, _, product = listed_product
    response = client.post(
        f"/api/products/{product['id']}/images",
        files=[("images", ("notes.txt", b"hello", "text/plain"))],
        headers=auth_header(token),
    )
    assert response.status_code == 400


def test_upload_rejects_large_images(client, listed_product, settings):
    token, _, product = listed_product
    settings.MAX_UPLOAD_BYTES = 10
    response = client.post(
        f"/api/products/{product['id']}/images",
        files=[("images", ("big.png", b"x" * 11, "image/png"))],
        headers=auth_header(token),
    )
    assert response.status_code == 400
