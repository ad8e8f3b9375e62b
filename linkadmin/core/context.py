"""
Admin Context
=============

The acting admin, resolved once per request and handed to page
controllers explicitly instead of being looked up globally.
"""

from dataclasses import dataclass
from typing import Optional

from .models import Role


@dataclass(frozen=True)
class AdminContext:
    admin_id: str
    email: str = ''
    role: Role = Role.ADMIN
    api_token: Optional[str] = None

    @classmethod
    def from_session(cls, session):
        """Build the context from the Flask session, or None when nobody is signed in"""
        admin_id = session.get('admin_id')
        if not admin_id:
            return None
        try:
            role = Role(session.get('admin_role') or Role.ADMIN.value)
        except ValueError:
            return None
        if role == Role.USER:
            return None
        return cls(
            admin_id=str(admin_id),
            email=session.get('admin_email') or '',
            role=role,
            api_token=session.get('api_token'),
        )

    @property
    def is_superadmin(self):
        return self.role == Role.SUPERADMIN

    @property
    def can_edit_role(self):
        """Only super admins may pick a role; plain admins manage USER accounts"""
        return self.is_superadmin

    @property
    def assignable_roles(self):
        if self.is_superadmin:
            return [Role.USER, Role.ADMIN]
        return [Role.USER]
