"""
Utility helpers used by the import tool.

This subpackage exposes the error types, structured event reports and the
import map CSV generator.  The stateful helpers (category mapping, identity
resolution, uploads) live in their own modules.
"""

from .errors import EVENTS, GPlusImportError, report_error, report_ok
from .redirects import generate_import_map_csv

__all__ = ["EVENTS", "GPlusImportError", "report_error", "report_ok", "generate_import_map_csv"]
