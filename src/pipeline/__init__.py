"""
Pipeline Package
================
Orchestration around the analytics engine.

Modules:
  report_pipeline  - gather inputs, run the engine, narrate with fallback
  fallback_builder - deterministic insight / recommendation text
  daily_insights   - rule-based check-in insights for today's entries
"""
