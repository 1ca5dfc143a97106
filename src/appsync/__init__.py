"""Reconcile Okta application user and group assignments."""

__version__ = "0.1.0"
