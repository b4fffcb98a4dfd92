"""
Service functions for building and rendering contact emails.

This package contains the email dispatcher and the template loader.
"""

__all__ = ['email', 'templates']
