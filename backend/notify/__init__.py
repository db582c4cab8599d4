"""
Outbound change notifications for the admin API.

Design intent:
- Post one JSON payload per mutation to the configured workflow webhook.
- Never let webhook latency or failure reach the client-visible response.
"""
