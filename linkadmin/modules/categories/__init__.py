"""
Link Categories Module
======================

Admin screen for the categories users file their links under.
Icons are either an emoji or an uploaded image; a category still used by
links cannot be deleted.
"""

from flask import Blueprint

categories_bp = Blueprint(
    'categories',
    __name__,
    url_prefix='/admin/categories',
    template_folder='templates'
)

from . import routes

__all__ = ['categories_bp']
