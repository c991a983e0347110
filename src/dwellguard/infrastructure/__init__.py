"""Infrastructure layer: SQLite storage areas, rule table, browser gateway.

This layer depends on stdlib and third-party libs (SQLAlchemy).
It may use plain domain value types but never services, commands, or output.
"""
