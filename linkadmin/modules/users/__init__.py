"""
Users Module
============

Admin screen for user accounts: searchable list, create/edit form,
delete with confirmation and a drill-down of each user's linktrees.
"""

from flask import Blueprint

users_bp = Blueprint(
    'users',
    __name__,
    url_prefix='/admin/users',
    template_folder='templates'
)

from . import routes

__all__ = ['users_bp']
