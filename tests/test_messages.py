from conftest import auth_header


def send(client, token, receiver_id, content="Hello from the parade!", **extra):
    payload = {"receiverId": receiver_id, "content": content}
    payload.update(extra)
    return client.post("/api/messages", json=payload, headers=auth_header(token))


def test_send_and_list_messages(client, register, listed_product):
    seller_token, seller, product = listed_product
    buyer_token, buyer = register()

    response = send(client, buyer_token, seller["id"], productId=product["id"])
    assert response.status_code == 201
    message = response.json()["data"]
    assert message["senderId"] == buyer["id"]
    assert message["receiverId"] == seller["id"]
    assert message["productId"] == product["id"]
    assert message["isRead"] is False
    assert message["sender"]["firstName"] == buyer["firstName"]

    send(client, seller_token, buyer["id"], content="Still available!")

    inbox = client.get("/api/messages", headers=auth_header(seller_token)).json()
    assert inbox["count"] == 2
    assert inbox["messages"][0]["content"] == "Still available!"

    unread = client.get("/api/messages", params={"unread": "true"}, headers=auth_header(seller_token)).json()
    assert [m["id"] for m in unread["messages"]] == [message["id"]]


def test_cannot_message_yourself_or_unknown_users(client, register):
    token, user = register()
    assert send(client, token, user["id"]).status_code == 400
    assert send(client, token, "0b8f3f2e-3c55-4f1c-9a55-0c1f6c9a1d11").status_code == 400


def test_message_content_is_required(client, register):
    token, _ = register()
    _, other = register()
    response = send(client, token, other["id"], content="")
    assert response.status_code == 400
    assert response.json()["details"][0]["field"] == "content"


def test_mark_read_by_receiver_only(client, register):
    sender_token, _ = register()
    receiver_token, receiver = register()
    message = send(client, sender_token, receiver["id"]).json()["data"]
    url = f"/api/messages/{message['id']}/read"

    assert client.put(url, headers=auth_header(sender_token)).status_code == 404

    response = client.put(url, headers=auth_header(receiver_token))
    assert response.status_code == 200
    assert response.json()["data"]["isRead"] is True
    unread = client.get("/api/messages", params={"unread": "true"}, headers=auth_header(receiver_token))
    assert unread.json()["count"] == 0
