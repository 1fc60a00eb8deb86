"""
Hospital Management System

A FastAPI-based backend for hospital operations: staff authentication with
role-based permissions, patient registration, doctor appointment scheduling
and the dashboard overview.
"""

__version__ = "1.0.0"
