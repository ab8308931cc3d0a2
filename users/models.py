"""
Model registry for the users app.
"""
from users.infrastructure.models import ApiKey, User  # noqa: F401
