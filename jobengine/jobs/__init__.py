"""Job bodies run by the scheduler.

Each body is a zero-argument coroutine callable. Drain-style jobs return their
``DrainSummary`` so callers (and tests) can inspect the counters; the
scheduler itself only looks at whether the body raised.
"""
