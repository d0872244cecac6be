"""
User management - tenant admin accounts.

Creating a user provisions an identity and an admin profile together; see
admin_user_service for the rollback behavior.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from cafeqr_admin.decorators import super_admin_required
from cafeqr_shared.schemas import CreateAdminUserRequest, UpdateAdminUserRequest
from cafeqr_shared.serializers import success_response
from cafeqr_shared.services import admin_user_service
from cafeqr_shared.validation import parse_request

users_bp = Blueprint("system_users", __name__)


@users_bp.get("/users")
@super_admin_required
def list_users(ctx):
    return jsonify(success_response(admin_user_service.list_admin_users())), HTTPStatus.OK


@users_bp.post("/users")
@super_admin_required
def create_user(ctx):
    """
    Body:
        {"email": str, "password": str, "tenant_id": str, "idempotency_key": str?}

    The Idempotency-Key header is accepted in place of the body field.
    """
    payload = parse_request(CreateAdminUserRequest, request.get_json(silent=True))
    user = admin_user_service.create_admin_user(
        payload.email,
        payload.password,
        payload.tenant_id,
        idempotency_key=payload.idempotency_key or request.headers.get("Idempotency-Key"),
    )
    return jsonify(success_response(user, "User berhasil ditambahkan")), HTTPStatus.CREATED


@users_bp.get("/users/<uid>")
@super_admin_required
def get_user(uid: str, ctx):
    return jsonify(success_response(admin_user_service.get_admin_user(uid))), HTTPStatus.OK


@users_bp.patch("/users/<uid>")
@super_admin_required
def update_user(uid: str, ctx):
    payload = parse_request(UpdateAdminUserRequest, request.get_json(silent=True))
    user = admin_user_service.update_admin_user(uid, payload.tenant_id)
    return jsonify(success_response(user, "User berhasil diperbarui")), HTTPStatus.OK


@users_bp.delete("/users/<uid>")
@super_admin_required
def delete_user(uid: str, ctx):
    admin_user_service.delete_admin_user(uid)
    return jsonify(success_response({"uid": uid}, "User berhasil dihapus")), HTTPStatus.OK
