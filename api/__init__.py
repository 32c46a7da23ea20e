"""
FastAPI control surface for the economic calendar watch.

This module provides:
- Manual digest and poll triggers (including a dry-run poll)
- Scheduler status and a read-only cache view
- API key-based authentication and trigger rate limiting
"""
