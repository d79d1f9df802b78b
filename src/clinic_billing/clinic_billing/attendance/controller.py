from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import current_identity, json_body, month_args
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/attendances", methods=["GET"], endpoint="list_attendances")
    def list_attendances():
        identity = current_identity()
        month, year = month_args()
        rows = service.list_attendances(identity, month=month, year=year)
        return jsonify([a.to_dict() for a in rows])

    @app.route("/api/attendances", methods=["POST"], endpoint="create_attendance")
    def create_attendance():
        identity = current_identity()
        data = json_body()
        is_substitution = data.get("is_substitution", False)
        if not isinstance(is_substitution, bool):
            raise ValidationError("is_substitution must be true or false")
        att = service.create_attendance(
            identity,
            patient_id=data.get("patient_id"),
            session_date=str(data.get("date") or ""),
            start_time=str(data.get("start_time") or ""),
            end_time=str(data.get("end_time") or ""),
            observations=data.get("observations"),
            is_substitution=is_substitution,
            staff_id=data.get("staff_id"),
        )
        return jsonify(att.to_dict()), 201

    @app.route("/api/attendances/<int:attendance_id>/confirm", methods=["POST"], endpoint="confirm_attendance")
    def confirm_attendance(attendance_id: int):
        att = service.confirm_attendance(current_identity(), attendance_id=attendance_id)
        return jsonify(att.to_dict())

    @app.route("/api/attendances/<int:attendance_id>/approve", methods=["POST"], endpoint="approve_attendance")
    def approve_attendance(attendance_id: int):
        att = service.approve_attendance(current_identity(), attendance_id=attendance_id)
        return jsonify(att.to_dict())

    @app.route("/api/attendances/<int:attendance_id>/launch", methods=["POST"], endpoint="launch_attendance")
    def launch_attendance(attendance_id: int):
        att = service.launch_attendance(current_identity(), attendance_id=attendance_id)
        return jsonify(att.to_dict())

    @app.route("/api/attendances/<int:attendance_id>", methods=["DELETE"], endpoint="delete_attendance")
    def delete_attendance(attendance_id: int):
        service.delete_attendance(current_identity(), attendance_id=attendance_id)
        return jsonify({"message": "Attendance rejected"})
