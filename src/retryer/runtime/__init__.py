"""Runtime - Retry execution, cancellation, and logging.

Contains: retry, concurrency, observability.
"""
