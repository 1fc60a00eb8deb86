"""
Test suite for the Hospital Management System.

API tests run against an in-memory SQLite database; service tests use the
in-memory repositories in ``tests.fakes``.
"""
