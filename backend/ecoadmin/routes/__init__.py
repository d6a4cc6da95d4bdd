# Routes package init
"""
EcoAdmin Backend: API Routes Package
=====================================

Route Inventory:
    - locations.py:      location submission, review and listings
    - join_requests.py:  join requests against approved locations
    - profiles.py:       applicant profile submission and review
    - admin.py:          admin key check, email-intent stub
    - health.py:         GET /api/health

Routes stay thin: read the request, call a service, wrap the result in the
JSON envelope. Errors are formatted by the handlers in main.py.
"""
