from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import current_identity, json_body, month_args
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.supervision_service

    @app.route("/api/supervisions", methods=["GET"], endpoint="list_supervisions")
    def list_supervisions():
        identity = current_identity()
        month, year = month_args()
        rows = service.list_supervisions(identity, month=month, year=year)
        return jsonify([s.to_dict() for s in rows])

    @app.route("/api/supervisions", methods=["POST"], endpoint="create_supervision")
    def create_supervision():
        identity = current_identity()
        data = json_body()
        sup = service.create_supervision(
            identity,
            staff_id=data.get("staff_id"),
            supervision_date=str(data.get("date") or ""),
            start_time=str(data.get("start_time") or ""),
            end_time=str(data.get("end_time") or ""),
            observations=data.get("observations"),
        )
        return jsonify(sup.to_dict()), 201

    @app.route("/api/supervisions/<int:supervision_id>", methods=["DELETE"], endpoint="delete_supervision")
    def delete_supervision(supervision_id: int):
        service.delete_supervision(current_identity(), supervision_id=supervision_id)
        return jsonify({"message": "Supervision deleted"})

    @app.route("/api/supervisions/rates", methods=["GET"], endpoint="get_supervision_rates")
    def get_supervision_rates():
        return jsonify(service.get_supervision_rates(current_identity()).to_dict())

    @app.route("/api/supervisions/rates", methods=["PUT"], endpoint="save_supervision_rates")
    def save_supervision_rates():
        identity = current_identity()
        data = json_body()
        version = data.pop("version", None)
        rates = service.save_supervision_rates(identity, data, expected_version=version)
        return jsonify(rates.to_dict())
