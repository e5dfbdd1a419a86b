"""Port interfaces for outbound adapters.

The core depends only on these protocols, not on a concrete transport.
"""

from typing import Protocol, runtime_checkable

from awp_exporter.core.models import Observation


@runtime_checkable
class MirrorPort(Protocol):
    """Port for replicating a decoded report to a secondary collector.

    Implementations must return immediately and must never raise: delivery
    happens in the background and failures end at the logging sink.
    Example: HttpMirrorDispatcher.
    """

    def dispatch(self, observation: Observation) -> None:
        """Schedule best-effort delivery of an observation."""
        ...
