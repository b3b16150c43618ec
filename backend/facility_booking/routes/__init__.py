# backend/facility_booking/routes/__init__.py
"""API route modules."""
