"""Catalog services.

This package contains the building blocks every catalog route is made
of: concurrent read fan-out, form validation, reference population and
display formatting.
"""
