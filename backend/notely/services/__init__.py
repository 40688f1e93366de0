# Services package init
"""
Notely Backend - Services Layer
================================

Service Inventory:
    - NoteService: note CRUD over an async SQLAlchemy session
    - WindowStore (abstract): counter store for the distributed limiter
      ├── RedisWindowStore: shared Redis counters (production)
      └── InMemoryWindowStore: single-process counters (tests, local dev)
    - DistributedRateLimiter: per-client fixed window over a WindowStore
    - LocalRateLimiter: process-wide fixed window over `limits` storage
"""
