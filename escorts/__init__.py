"""Escort registration app for the emergency department.

This package contains the escort record model and store, the record
service, both API flavours (legacy function views and primary class
views) and the backend routing layer that fronts them.
"""
