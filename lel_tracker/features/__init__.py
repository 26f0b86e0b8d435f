"""
Feature modules for LEL Tracker.

Each feature is a self-contained module with:
- models.py - Dataclasses for derived results
- schemas.py - Pydantic schemas for feed input
- service.py - Business logic
- calculator.py / classifier.py / parser.py - Calculation logic (optional)
"""
