"""
EcoAdmin Backend: Application Package
======================================

Submission and review backend: the public submits locations (or applicant
profiles) with a photo; admins approve or reject each one exactly once;
anyone may apply to join an approved location.

Architecture:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, JSON envelope
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← validation, review workflow
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database / Image store (I/O)      │  ← async sessions, blob files
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
