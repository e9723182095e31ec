"""
Pytest suite for the order lifecycle backend.

Test categories:
- Unit tests: transition table, delivery-window text, auth helpers
- Service tests: order / notification / statistics services on in-memory SQLite
- Integration tests: HTTP flows through the FastAPI app
"""
