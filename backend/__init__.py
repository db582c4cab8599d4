"""
Hobbit quiz admin backend package.

Design intent:
- Serve the operator API over the quiz event table.
- Keep config, auth, store and notification concerns in separate modules.
"""
