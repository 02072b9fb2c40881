"""Media scanning gateway for Matrix content repositories.

The package fetches remote (optionally end-to-end encrypted) media, runs it
through an external scanner command and serves verdicts or the file itself.
"""

from .scan.report_service import ReportService

__all__ = ["ReportService"]
