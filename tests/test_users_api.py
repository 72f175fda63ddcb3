from app.utils.token import TOKEN_URL, decode_access_token


def test_guest_session_issues_usable_token(client):
    guest = client.post("/user/guest").json()

    assert decode_access_token(guest["token"])["user_id"] == guest["user"]["id"]

    me = client.get("/user/me", headers={"Authorization": f"Bearer {guest['token']}"})
    assert me.status_code == 200
    assert me.json()["isGuest"] is True


def test_me_rejects_garbage_token(client):
    response = client.get("/user/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_advertised_token_url_is_served(client):
    schema = client.get("/openapi.json").json()

    flows = schema["components"]["securitySchemes"]["OAuth2PasswordBearer"]["flows"]
    assert flows["password"]["tokenUrl"] == TOKEN_URL
    assert "post" in schema["paths"][TOKEN_URL]
