"""
Article Categories Module
=========================

Admin screen for the categories articles are published under.
"""

from flask import Blueprint

article_categories_bp = Blueprint(
    'article_categories',
    __name__,
    url_prefix='/admin/article-categories',
    template_folder='templates'
)

from . import routes

__all__ = ['article_categories_bp']
