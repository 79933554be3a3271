"""
Services layer - Business logic goes here.
Keep services focused on specific domains (alerts, sightings, accounts, evidence).

DESIGN PRINCIPLE:
- Services contain business logic, NOT routes
- Persistence, auth, storage and real-time delivery are Firebase calls,
  never reimplemented here
- Authorization and evidence checks are service-level decisions, so they
  hold even when a request bypasses the form layer
"""
