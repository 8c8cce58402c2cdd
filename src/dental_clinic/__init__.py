"""Dental clinic back office.

This package is organized by feature modules (clinics, users, attendance,
payroll, reports, inventory) with a thin Flask controller layer on top of
service and repository layers.
"""
