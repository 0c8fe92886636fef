from django.db import models


class Role(models.TextChoices):
    """Fixed role set carried in the ``role`` claim of access tokens."""

    SUPERADMIN = "superadmin", "Super admin"
    ADMIN = "admin", "Admin"
    LEAD = "lead", "Lead"
    USER = "user", "User"


ELEVATED_ROLES = frozenset({Role.SUPERADMIN, Role.ADMIN})


def is_elevated(role: str) -> bool:
    return role in ELEVATED_ROLES
