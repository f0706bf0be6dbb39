"""
Adapters for external services.

This module contains adapters for:
- Google Docs (template placeholder substitution)
- Google Drive (template copy, PDF export, upload and sharing)
"""

from .google_workspace import GoogleWorkspaceClient

__all__ = ['GoogleWorkspaceClient']
