"""Shared code for the food safety audit service.

- Enums (enums.py) - Answer values, custom answer types and audit status
- Schemas (schemas.py) - Template items, audit items and photo results
- Scoring (scoring.py) - Per-option scores and group aggregation
- Validation (validation.py) - Answer validation and finalization checks
- Utility functions (utils.py) - Image helpers, hashing and timezone
"""
