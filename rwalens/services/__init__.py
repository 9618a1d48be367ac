"""
Application services.

- resilience: circuit breaker
- llm_gateway: completion client for the analysis model
- orchestrator: one analysis run, persisted atomically
- worker: background queue for submission-triggered runs
- seed: demo data
"""
