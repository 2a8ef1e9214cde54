"""Fire-and-forget share notifications."""

import asyncio
import logging

from app.services.email_service import EmailService, email_service

logger = logging.getLogger(__name__)


class ShareNotifier:
    """Sends share emails off the request path.

    ``notify`` schedules the SMTP round-trip on a worker thread and returns
    immediately; failures are logged and never reach the caller.
    """

    def __init__(self, mailer: EmailService | None = None):
        self.mailer = mailer or email_service
        self._pending: set[asyncio.Task] = set()

    def notify(self, recipient_email: str, actor_email: str, item_name: str, level: str) -> None:
        try:
            task = asyncio.get_running_loop().create_task(
                self._send(recipient_email, actor_email, item_name, level)
            )
        except RuntimeError:
            logger.warning("No running event loop, share notification to %s dropped", recipient_email)
            return
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _send(self, recipient_email: str, actor_email: str, item_name: str, level: str) -> None:
        try:
            sent = await asyncio.to_thread(
                self.mailer.send_share_notification, recipient_email, actor_email, item_name, level
            )
        except Exception:
            logger.exception("Share notification to %s failed", recipient_email)
            return
        if not sent:
            logger.info("Share notification to %s was not delivered", recipient_email)

    async def wait_idle(self) -> None:
        """Await outstanding notifications (shutdown and tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


share_notifier = ShareNotifier()
