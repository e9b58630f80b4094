"""
Services Layer

Engine logic that:
- Accepts domain inputs (IDs, sessions, participant lists)
- Returns typed domain outputs (models, dataclasses, dicts)
- Does NOT depend on HTTP request/response objects
- Does NOT commit, except through the orchestrator's transaction boundary
"""
