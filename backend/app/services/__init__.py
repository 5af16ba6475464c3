"""
Business services.

Each module holds plain functions taking a SQLAlchemy ``Session`` first; they
raise ``app.core.errors`` exceptions and leave HTTP concerns to the routers.
"""
