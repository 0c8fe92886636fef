"""
Caller identity resolved from stateless JWT access tokens.

Users live in the identity service. Tokens carry the ``user_id``, ``role``
and ``company_id`` claims; this project never looks users up in a table.
"""
from dataclasses import dataclass

from rest_framework.exceptions import AuthenticationFailed, NotAuthenticated

from .roles import Role, is_elevated


@dataclass(frozen=True)
class Caller:
    id: int
    role: str
    company_id: int

    @property
    def is_elevated(self) -> bool:
        return is_elevated(self.role)


def resolve_caller(request) -> Caller:
    """
    Build the Caller for an authenticated request.

    Unknown roles are treated as ``user``. A token without a ``company_id``
    claim scopes the caller to a personal company keyed by the user id.
    """
    user = request.user
    if not getattr(user, "is_authenticated", False):
        raise NotAuthenticated()

    claims = request.auth if request.auth is not None else {}
    role = claims.get("role") or Role.USER
    if role not in Role.values:
        role = Role.USER

    try:
        user_id = int(user.id)
        company_id = int(claims.get("company_id") or user_id)
    except (TypeError, ValueError):
        raise AuthenticationFailed("Token carries an invalid user or company identifier")

    return Caller(id=user_id, role=str(role), company_id=company_id)
