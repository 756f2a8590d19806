"""
Protocol definition for notification sinks.

Defines the interface the feed synchronizer relies on to deliver messages.
"""

from typing import Protocol, runtime_checkable

from rss_relay.webhook import WebhookMessage


@runtime_checkable
class Notifier(Protocol):
    """
    Protocol defining the interface for notification sinks.

    The synchronizer only needs to post one message to one destination
    and learn whether it was accepted, so tests can substitute any object
    with these methods.
    """

    async def send(self, hook_url: str, message: WebhookMessage) -> bool:
        """
        Deliver a message to one destination.

        Parameters
        ----------
        hook_url : str
            Destination endpoint.
        message : WebhookMessage
            Rendered message.

        Returns
        -------
        bool
            True if the destination accepted the message.
        """
        ...

    async def close(self) -> None:
        """Release any resources held by the sink."""
        ...
