"""
Services layer - Business logic goes here.

DESIGN PRINCIPLE:
- Services contain business logic, NOT routes
- Trust rules (engine, admission, ledger) are pure and do no I/O
- The trust store is the only module that talks to the record store
- Notifications run after commits and never raise
"""
