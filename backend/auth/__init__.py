"""
Operator authentication for the admin API.

Design intent:
- Accept either basic auth as the reserved admin user or a shared token header.
- Fail closed when no admin secret is configured.
"""
