"""
Articles Module
===============

Admin screen for blog articles. The list is paginated and filtered by the
API; the editor keeps unsaved changes as a local draft.
"""

from flask import Blueprint

articles_bp = Blueprint(
    'articles',
    __name__,
    url_prefix='/admin/articles',
    template_folder='templates'
)

from . import routes

__all__ = ['articles_bp']
