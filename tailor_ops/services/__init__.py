"""
Service layer modules.

This module contains service implementations for:
- Document storage (Supabase or local JSON files)
- Customer and measurement management
- Invoice generation through Google Docs / Drive
- The FastAPI application exposing the shop API
"""
