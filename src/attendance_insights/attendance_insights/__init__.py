"""Attendance Insights package.

Feature modules (users, attendance, analytics) each follow the same layering:
a thin Flask controller, a service holding the use cases and a repository
Protocol with a MySQL implementation. The ``analytics`` statistics engine is a
set of pure functions over already-fetched records.
"""
