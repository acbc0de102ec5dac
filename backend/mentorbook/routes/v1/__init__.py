# backend/mentorbook/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
"""

from . import availability, bookings, feedback, health, offerings, payments, prometheus

__all__ = [
    "availability",
    "bookings",
    "feedback",
    "health",
    "offerings",
    "payments",
    "prometheus",
]
