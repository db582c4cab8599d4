"""
HTTP boundary for the hobbit quiz admin backend.

Design intent:
- Expose thin endpoints for listing, patching and deleting event rows.
- Keep authentication, store access and notifications in their own modules.
- Return a small ``{"error": ...}`` body for every failure.
"""
