"""
LinkAdmin Modules
=================

One Flask blueprint per admin screen.
"""

__all__ = ['users', 'categories', 'article_categories', 'articles']
