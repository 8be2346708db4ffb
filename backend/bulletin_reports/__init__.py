"""
Bulletin Reports

Report generation and pagination engine for the e-bulletin admin console:
period resolution in the reporting timezone, request shaping for the
aggregation service, and paginated PDF export.
"""

__version__ = "1.0.0"
