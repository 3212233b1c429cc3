# Routes package init
"""
Jotter Backend — API Routes Package
=====================================

Route Inventory:
    - notes.py:   GET/POST /notes, GET/PUT/DELETE /notes/{id}
    - health.py:  GET /health

Routes handle HTTP concerns only (request parsing, status codes, envelopes);
validation and store access live in jotter.services.
"""
