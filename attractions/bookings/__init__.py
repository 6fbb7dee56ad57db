"""
Booking Module

- schemas.py: validated, immutable booking request
- orchestrator.py: the create-transaction step sequence
- ledger.py: wallet transaction entries
- hydration.py: batch reprocessing of stored transactions
- router.py: create, cancel and hydrate endpoints
"""
