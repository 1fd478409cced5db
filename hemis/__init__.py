"""
HEMIS i18n - translation service with a versioned two-level cache
"""
__version__ = "2.0.0"
