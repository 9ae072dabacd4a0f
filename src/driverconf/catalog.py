"""Well-known client options.

Applications are free to declare their own ``Option`` values; nothing in the
engine requires an option to come from this catalog.
"""

from __future__ import annotations

from driverconf.options import Option, OptionKind


class DefaultOption:
    """Namespace of built-in options, grouped by dotted prefix."""

    REQUEST_TIMEOUT = Option("basic.request.timeout", OptionKind.DURATION)
    REQUEST_CONSISTENCY = Option("basic.request.consistency", OptionKind.STRING)
    REQUEST_SERIAL_CONSISTENCY = Option(
        "basic.request.serial-consistency", OptionKind.STRING
    )
    REQUEST_PAGE_SIZE = Option("basic.request.page-size", OptionKind.INT)
    REQUEST_DEFAULT_IDEMPOTENCE = Option(
        "basic.request.default-idempotence", OptionKind.BOOLEAN
    )
    REQUEST_TRACING = Option("advanced.request.trace.enabled", OptionKind.BOOLEAN)

    CONTACT_POINTS = Option("basic.contact-points", OptionKind.STRING_LIST)
    SESSION_NAME = Option("basic.session-name", OptionKind.STRING)
    LOAD_BALANCING_LOCAL_DATACENTER = Option(
        "basic.load-balancing-policy.local-datacenter", OptionKind.STRING
    )

    CONNECTION_POOL_LOCAL_SIZE = Option(
        "advanced.connection.pool.local.size", OptionKind.INT
    )
    CONNECTION_CONNECT_TIMEOUT = Option(
        "advanced.connection.connect-timeout", OptionKind.DURATION
    )
    HEARTBEAT_INTERVAL = Option("advanced.heartbeat.interval", OptionKind.DURATION)
    PROTOCOL_MAX_FRAME_LENGTH = Option(
        "advanced.protocol.max-frame-length", OptionKind.BYTES
    )
    RECONNECTION_BASE_DELAY = Option(
        "advanced.reconnection-policy.base-delay", OptionKind.DURATION
    )
    SPECULATIVE_EXECUTION_DELAYS = Option(
        "advanced.speculative-execution-policy.delays", OptionKind.DURATION_LIST
    )

    AUTH_PROVIDER_CREDENTIALS = Option(
        "advanced.auth-provider.credentials", OptionKind.STRING_MAP
    )

    @classmethod
    def all(cls) -> tuple[Option, ...]:
        """Every option declared here, sorted by path."""
        found = (v for v in vars(cls).values() if isinstance(v, Option))
        return tuple(sorted(found, key=lambda o: o.path))
