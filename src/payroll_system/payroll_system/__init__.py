"""Payroll System package.

This package is organized by feature modules (employees, payroll, payslips,
notifications, ...) with a thin Flask controller layer and service/repository
layers wired together in ``container.py``.
"""
