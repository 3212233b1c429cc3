# Services package init
"""
Jotter Backend — Services Layer
=================================

What:  Business logic between routes (HTTP) and the database (persistence).

Service Inventory:
    - NoteService: validation, CRUD, and full-text search over notes
"""
