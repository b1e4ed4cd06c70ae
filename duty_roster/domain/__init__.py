"""Domain layer (pure logic).

- Keep duty eligibility, rotation and formatting rules here.
- Avoid I/O: no DB sessions, no HTTP/FastAPI, no Redis, no SMS.
- Prefer deterministic functions (time/random passed in as arguments if needed).
"""
