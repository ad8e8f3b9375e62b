"""
LinkAdmin - Admin Front End for a Link-in-Bio Service
=====================================================

Flask blueprints for managing users, link categories, article categories
and articles through the service's REST API:
- Searchable, sortable, paginated list screens
- Create/edit forms with local validation
- Drill-down views and resumable article drafts

Usage:
    from linkadmin import LinkAdmin

    LinkAdmin(app)
"""

__version__ = '0.1.0'

from .framework import LinkAdmin

__all__ = ['LinkAdmin']
