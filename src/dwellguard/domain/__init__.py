"""Domain layer: URL classification, policy, usage keys, and block rules.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
