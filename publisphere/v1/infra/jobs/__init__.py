"""
Durable job queue for deferred, retryable side effects.

This package provides:
- A SQL-backed job store with conditional (compare-and-swap) transitions
- An exhaustive dispatcher from job type to handler
- Handlers for publishing, notifications, generation and embeddings
- A poller with bounded batches, per-job timeouts, exponential backoff
  and recovery of stale running jobs
"""
