"""v1 router package — all /api/v1/* endpoints live here.

Files:
  evidence.py      — Evidence upload and view URLs
  requests.py      — Request lifecycle, evidence links, approval, audit trail
  templates.py     — Evidence policy templates
  dependencies.py  — Object store / job queue providers (overridable in tests)

Rule: Routers only handle HTTP (request parsing, response shaping).
      All business logic delegates to app/services/.
"""
