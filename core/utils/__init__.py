"""
Shared helpers for imports, exports, date ranges and error handling.
"""
