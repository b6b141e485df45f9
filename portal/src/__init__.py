"""FastAPI service for the exam invigilator registration portal.

This package provides REST API endpoints for candidate signup and
applications, admin review of submissions, exam window configuration
and generation of the candidate document bundle as PDF.
"""

__version__ = "1.0.0"
