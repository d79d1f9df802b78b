from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import current_identity, month_args
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.report_service

    @app.route("/api/reports/guardian-billing", methods=["GET"], endpoint="guardian_billing_report")
    def guardian_billing_report():
        identity = current_identity()
        month, year = month_args()
        report = service.guardian_billing_report(identity, month=month, year=year)
        return jsonify(report.to_dict())

    @app.route("/api/reports/staff-payments", methods=["GET"], endpoint="staff_payment_report")
    def staff_payment_report():
        identity = current_identity()
        month, year = month_args()
        report = service.staff_payment_report(identity, month=month, year=year)
        return jsonify(report.to_dict())
