"""Invocation telemetry.

The shim emits exactly one record per wrapped run to a local collector and
never waits longer than the configured per-phase timeout. Nothing here
buffers, retries or persists records.
"""
