from carnival.models.entities import User


def test_groups_listed_by_name(client, seeded):
    response = client.get("/api/carnival-groups")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["count"] == 5
    names = [g["name"] for g in body["groups"]]
    assert names == sorted(names)
    assert set(body["groups"][0]) == {"id", "name", "city", "province", "country", "verified"}


def test_group_detail_lists_active_members_only(client, register, db, seeded):
    groups = client.get("/api/carnival-groups").json()["groups"]
    ghent = next(g for g in groups if g["name"] == "Ghent Carnival Society")
    _, active = register(carnivalGroupId=ghent["id"], firstName="Active")
    _, inactive = register(carnivalGroupId=ghent["id"], firstName="Retired")
    db.query(User).filter_by(id=inactive["id"]).update({"is_active": False})
    db.commit()

    response = client.get(f"/api/carnival-groups/{ghent['id']}")
    assert response.status_code == 200
    group = response.json()["group"]
    assert group["city"] == "Ghent"
    assert group["users"] == [{"id": active["id"], "firstName": "Active", "lastName": "Peeters"}]


def test_unknown_group(client):
    response = client.get("/api/carnival-groups/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"error": "Carnival group not found"}


def test_categories_listed_by_name(client, seeded):
    response = client.get("/api/categories")
    assert response.status_code == 200
    categories = response.json()["categories"]
    assert [c["slug"] for c in categories] == [
        "accessories",
        "costumes",
        "decorations",
        "instruments",
        "masks",
        "props",
    ]
    assert categories[0]["emoji"] == "🎩"
