"""Recurring background-job engine.

Named jobs fire on cron-style cadences, each run is wrapped for timing and
failure isolation, and maintenance / dispatch jobs share a bounded-batch
drain loop.
"""
