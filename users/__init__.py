"""
Users module - License holders and administrators.

This module handles:
- User entity and domain logic
- User directory repository (port)
- User infrastructure (Django ORM adapters, admin API keys)
"""
