"""Jobs package — background work.

Files:
  queue.py       — JobQueue protocol + CeleryJobQueue publisher (used by uploads)
  celery_app.py  — Celery application configured from settings
  worker.py      — Task implementations (files.convert_to_pdf)

Rule: the web process only publishes by job name; it never imports worker.py.
"""
