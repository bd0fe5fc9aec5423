from flask import Blueprint, g, jsonify, request

from ..services.user_service import UserService
from ..utils.decorators import auth_required
from ..utils.security import decode_identity_token
from ..utils.validators import (
    current_schema,
    validate_federated,
    validate_login,
    validate_register,
    validate_verification,
)

bp = Blueprint("auth", __name__, url_prefix="/usuarios")


@bp.put("/login")
def login():
    email, password = validate_login(request.get_json(silent=True), current_schema())
    return jsonify({"token": UserService.login(email, password)})


@bp.post("/register")
def register():
    data = validate_register(request.get_json(silent=True), current_schema())
    token = UserService.register(data["username"], data["email"], data["password"], data["code"])
    return jsonify({"token": token, "message": "User registered successfully!"}), 201


@bp.post("/validacion")
def request_verification():
    """Email a verification code to a would-be user."""
    username, email = validate_verification(request.get_json(silent=True), current_schema())
    result = UserService.request_verification(username, email)
    return jsonify({
        "ok": True,
        "message": f"A verification code has been sent to {result['email']}.",
    })


@bp.post("/oauth/auth0")
def federated_login():
    id_token = validate_federated(request.get_json(silent=True), current_schema())
    identity = decode_identity_token(id_token)
    return jsonify({"token": UserService.federated_login(identity)})


@bp.get("/profile")
@auth_required
def profile():
    return jsonify({"perfilUsuario": UserService.profile(g.account_id)})


@bp.delete("/eliminar")
@auth_required
def delete_account():
    return jsonify({"respuesta": UserService.delete(g.account_id)})
