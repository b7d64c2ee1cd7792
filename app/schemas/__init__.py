"""Pydantic schemas package.

Folder intent:
  common.py    — CamelModel base + HealthResponse (all schemas inherit CamelModel)
  request.py   — Request / template DTOs and the approval result
  evidence.py  — Upload results, request ↔ evidence links, view URLs
  audit.py     — Audit trail entries
"""
