"""
StationPlay Test Suite

Test Categories:
- unit/: Fast, isolated tests of schedule logic and engine operations
- integration/: HTTP API tests against an in-memory database
- fixtures/: Shared test data factories
"""
