from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_identity, json_body
from ..container import Container
from .service import GuardianInput

# Fields update_patient accepts from the request body
_EDITABLE_FIELDS = ("name", "sector", "staff_id", "weekly_hours", "hourly_rate")


def register(app: Flask, container: Container) -> None:
    @app.route("/api/patients", methods=["GET"], endpoint="list_patients")
    def list_patients():
        identity = current_identity()
        for_substitution = (request.args.get("for_substitution") or "").lower() in {"1", "true", "yes"}
        patients = container.patient_service.list_patients(identity, for_substitution=for_substitution)
        return jsonify([p.to_dict() for p in patients])

    @app.route("/api/patients", methods=["POST"], endpoint="create_patient")
    def create_patient():
        identity = current_identity()
        data = json_body()

        second = None
        if data.get("guardian_email_2"):
            second = GuardianInput(email=data.get("guardian_email_2"), name=data.get("guardian_name_2"))

        result = container.patient_service.create_patient(
            identity,
            name=str(data.get("name") or ""),
            sector=str(data.get("sector") or ""),
            guardian=GuardianInput(email=data.get("guardian_email"), name=data.get("guardian_name")),
            second_guardian=second,
            staff_id=data.get("staff_id"),
            weekly_hours=data.get("weekly_hours"),
            hourly_rate=data.get("hourly_rate"),
        )
        patient = container.patient_service.get_patient(result.patient_id)
        return jsonify({"patient": patient.to_dict(), "created_guardians": result.created_guardians}), 201

    @app.route("/api/patients/<int:patient_id>", methods=["PUT"], endpoint="update_patient")
    def update_patient(patient_id: int):
        identity = current_identity()
        data = json_body()
        changes = {k: data[k] for k in _EDITABLE_FIELDS if k in data}
        patient = container.patient_service.update_patient(identity, patient_id=patient_id, **changes)
        return jsonify(patient.to_dict())

    @app.route("/api/patients/<int:patient_id>/rate", methods=["PUT"], endpoint="set_patient_rate")
    def set_patient_rate(patient_id: int):
        identity = current_identity()
        data = json_body()
        container.patient_service.set_patient_rate(identity, patient_id=patient_id, hourly_rate=data.get("hourly_rate"))
        return jsonify(container.patient_service.get_patient(patient_id).to_dict())

    @app.route("/api/patients/<int:patient_id>", methods=["DELETE"], endpoint="delete_patient")
    def delete_patient(patient_id: int):
        identity = current_identity()
        result = container.patient_service.delete_patient(identity, patient_id=patient_id)
        return jsonify(
            {
                "message": "Patient deleted",
                "attendances_deleted": result.attendances_deleted,
                "guardians_deleted": result.guardians_deleted,
                "guardians_retained": result.guardians_retained,
            }
        )
