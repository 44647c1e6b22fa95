"""Core terminal primitives (line log, command dispatcher, game input handler).

Everything here is a pure function of (state, line) -> Outcome and is kept free
of FastAPI and Redis concerns so it can be reused by API routes and tests.
"""
