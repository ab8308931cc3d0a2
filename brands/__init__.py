"""
Brands module - Brand catalog.

This module handles:
- Brand entity and domain logic
- Brand repository (port)
- Brand infrastructure (Django ORM adapters)
"""
