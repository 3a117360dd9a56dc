"""
HTTP surface of the cubicle booking service.

Routers live under ``cubicle_booking.api.v1``; shared FastAPI
dependencies in ``cubicle_booking.api.deps``.
"""
