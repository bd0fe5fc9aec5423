"""
Account endpoints over HTTP: register -> login -> profile -> delete, plus
the verification-code and federated-login routes.
"""

from jose import jwt

from conftest import bearer

REGISTER = {"nombreUsuario": "alice", "correo": "alice@gmail.com", "contrasenya": "Secret12!"}


def _register(client, payload=None):
    resp = client.post("/usuarios/register", json=payload or REGISTER)
    assert resp.status_code == 201, resp.data[:300]
    return resp.get_json()["token"]


def test_register_login_profile_delete(client):
    token = _register(client)

    resp = client.put("/usuarios/login", json={"correo": "Alice@Gmail.com", "contrasenya": "Secret12!"})
    assert resp.status_code == 200
    token = resp.get_json()["token"]

    resp = client.get("/usuarios/profile", headers=bearer(token))
    assert resp.status_code == 200
    profile = resp.get_json()["perfilUsuario"]
    assert profile["nombreUsuario"] == "alice"
    assert profile["presupuesto"]["totalRentings"] == 0

    resp = client.delete("/usuarios/eliminar", headers=bearer(token))
    assert resp.status_code == 200
    assert resp.get_json()["respuesta"] == "User deleted successfully!"

    resp = client.put("/usuarios/login", json={"correo": "alice@gmail.com", "contrasenya": "Secret12!"})
    assert resp.status_code == 403


def test_register_conflict(client):
    _register(client)
    resp = client.post("/usuarios/register", json=REGISTER)
    assert resp.status_code == 409
    assert resp.get_json()["error"] is True


def test_register_rejects_unknown_keys(client):
    resp = client.post("/usuarios/register", json={**REGISTER, "rol": "admin"})
    assert resp.status_code == 400


def test_login_wrong_password(client):
    _register(client)
    resp = client.put("/usuarios/login", json={"correo": "alice@gmail.com", "contrasenya": "Nope1234!"})
    assert resp.status_code == 403
    assert resp.get_json() == {"error": True, "message": "Invalid email or password"}


def test_profile_requires_token(client):
    assert client.get("/usuarios/profile").status_code == 403
    assert client.get("/usuarios/profile", headers=bearer("garbage")).status_code == 403
    assert client.get("/usuarios/profile", headers={"Authorization": "Token abc"}).status_code == 403


def test_verification_then_register(client, app, store):
    app.config["REQUIRE_EMAIL_VERIFICATION"] = True
    resp = client.post("/usuarios/validacion", json={"nombreUsuario": "alice", "correo": "alice@gmail.com"})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["ok"] is True
    assert "codigo" not in body

    assert client.post("/usuarios/register", json=REGISTER).status_code == 400

    code = store.find_one("codes", email="alice@gmail.com")["code"]
    _register(client, {**REGISTER, "codigo": code})


def test_federated_login_route(client, app):
    app.config["AUTH0_CLIENT_SECRET"] = "auth0-secret"
    id_token = jwt.encode({"sub": "auth0|7", "email": "carol@gmail.com", "name": "carol"},
                          "auth0-secret", algorithm="HS256")

    resp = client.post("/usuarios/oauth/auth0", json={"idToken": id_token})
    assert resp.status_code == 200
    token = resp.get_json()["token"]

    profile = client.get("/usuarios/profile", headers=bearer(token)).get_json()["perfilUsuario"]
    assert profile["correo"] == "carol@gmail.com"

    resp = client.post("/usuarios/oauth/auth0", json={"idToken": "not-a-jwt"})
    assert resp.status_code == 403
