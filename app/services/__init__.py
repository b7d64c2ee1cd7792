"""Services package — all business logic lives here, never in routers.

Files:
  evidence.py        — Evidence ingestion (classify → store → record → enqueue) and view URLs
  evidence_links.py  — Request ↔ evidence links, listing, freshness checks
  approval.py        — Approval guard (attempted → guards → CAS transition → succeeded) and rejection
  audit.py           — Append-only audit trail + event names
  requests.py        — Request creation (policy resolution) and submission
  templates.py       — Evidence policy templates
  conversion.py      — CONVERT_PENDING → READY step executed by the worker

Rule: routers call services, services call repositories, repositories call the DB.
      No SQLAlchemy queries in routers. No FastAPI imports in services.
"""
