"""
Tests Module: Unit and Integration Tests

Test Coverage:
    - Core types, error taxonomy and configuration
    - Key/value storage (in-memory and Redis with a fake client)
    - Session state and per-session locking
    - Hybrid memory, retrieval scoring and context budgeting
    - Tool parsing, execution and built-in tools
    - Circuit breaker and error handling
    - Metrics, telemetry and structured logging
    - Prompt assembly and the end-to-end orchestrator
"""
