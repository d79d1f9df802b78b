"""Clinic billing package.

Organized by feature modules (users, patients, attendance, supervisions,
payroll) with a thin Flask controller layer over service/repository layers.
"""
