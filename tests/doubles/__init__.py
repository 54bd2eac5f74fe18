"""Test doubles for collaborators of the catalog."""
