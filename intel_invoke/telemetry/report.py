"""One-way invocation report. Best effort, never raises.

A failure anywhere in encode/connect/send/receive is logged at DEBUG and
dropped; it must not change the shim's exit code. Added latency is bounded
by ShimConfig.timeout per phase.
"""
from __future__ import annotations

import logging

from intel_invoke.config import ShimConfig
from intel_invoke.errors import ReportTransportError
from intel_invoke.models import InvocationRecord
from intel_invoke.telemetry.transport import open_channel
from intel_invoke.telemetry.wire import encode_record

logger = logging.getLogger(__name__)


def report(record: InvocationRecord, config: ShimConfig) -> bool:
    """Send record to the collector. Returns True if it was handed off."""
    try:
        envelope = encode_record(record)
    except ValueError as e:
        logger.debug("Invocation report not encodable: %s", e)
        return False

    try:
        with open_channel(config) as channel:
            channel.send(envelope)
            read = channel.try_receive(config.receive_capacity)
            logger.debug("Invocation report sent via %s (%d bytes, %d bytes back)",
                         channel.kind.value, len(envelope), read)
    except ReportTransportError as e:
        logger.debug("Invocation report via %s failed at %s: %s",
                     config.transport.value, e.phase, e.cause)
        return False
    return True
