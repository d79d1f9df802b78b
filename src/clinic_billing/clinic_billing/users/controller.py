from __future__ import annotations

from flask import Flask, jsonify, request, session

from ..common.http import current_identity, json_body
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..core.identity import parse_sector
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        data = json_body()
        user = container.auth_service.authenticate(str(data.get("email") or ""), str(data.get("password") or ""))

        session.clear()
        session["user_id"] = user.user_id
        session["name"] = user.name
        session["role"] = user.role.value
        session["sector"] = user.sector.value if user.sector else None

        return jsonify(
            {
                "id": user.user_id,
                "name": user.name,
                "role": user.role.value,
                "sector": session["sector"],
            }
        )

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"message": "Logged out"})

    @app.route("/api/auth/me", methods=["GET"], endpoint="me")
    def me():
        identity = current_identity()
        return jsonify(container.user_service.get_user(identity.user_id).to_dict())

    @app.route("/api/users", methods=["GET"], endpoint="list_users")
    def list_users():
        identity = current_identity()

        role = None
        raw_role = (request.args.get("role") or "").strip()
        if raw_role:
            try:
                role = Role(raw_role)
            except ValueError:
                raise ValidationError(f"Invalid role: {raw_role!r}")

        users = container.user_service.list_users(identity, role=role, sector=parse_sector(request.args.get("sector")))
        return jsonify([u.to_dict() for u in users])

    @app.route("/api/users", methods=["POST"], endpoint="create_user")
    def create_user():
        identity = current_identity()
        data = json_body()
        user_id = container.user_service.create_user(
            identity,
            name=str(data.get("name") or ""),
            email=str(data.get("email") or ""),
            password=str(data.get("password") or ""),
            role=str(data.get("role") or ""),
            sector=data.get("sector"),
            hourly_rate=data.get("hourly_rate"),
        )
        return jsonify(container.user_service.get_user(user_id).to_dict()), 201

    @app.route("/api/users/<int:user_id>/rate", methods=["PUT"], endpoint="set_staff_rate")
    def set_staff_rate(user_id: int):
        identity = current_identity()
        data = json_body()
        container.user_service.set_staff_rate(identity, user_id=user_id, hourly_rate=data.get("hourly_rate"))
        return jsonify(container.user_service.get_user(user_id).to_dict())

    @app.route("/api/users/<int:user_id>", methods=["DELETE"], endpoint="delete_user")
    def delete_user(user_id: int):
        identity = current_identity()
        result = container.user_service.delete_user(identity, user_id=user_id)
        return jsonify(
            {
                "message": "User deleted",
                "attendances_deleted": result.attendances_deleted,
                "supervisions_deleted": result.supervisions_deleted,
                "patients_unassigned": result.patients_unassigned,
            }
        )
