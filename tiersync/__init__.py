"""
SWAT Tier Assessment Taxonomy Sync — Production Package
=======================================================
Hexagonal (Ports & Adapters) architecture.

Layer map
─────────────────────────────────────────────────────
  config/       Tuneable settings & the canonical questionnaire template
  domain/       Pure business objects (models, exceptions) — no I/O
  ports/        Abstract interfaces (Python Protocols)
  adapters/     Concrete implementations of each Port (Postgres)
  services/     Reconciliation, tiering & verification; depends only on Ports
  interfaces/   Delivery layer: CLI
  tests/        Full test suite: unit / integration / e2e

Changing the questionnaire:
  1. Edit config/template.py (bump TEMPLATE_VERSION)
  2. Run `tiersync all` (or batch/category runs) against the store
  3. Done — every run is idempotent, re-run as often as needed
"""
__version__ = "1.0.0"
