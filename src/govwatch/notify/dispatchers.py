"""Notification dispatchers.

This module provides:
- `LogDispatcher`: one summary line per notification, optionally the full body
- `EmailDispatcher`: one SMTP message per recipient, sent from a worker thread
- `CompositeDispatcher`: runs several dispatchers and merges their failures
"""

from __future__ import annotations

import asyncio
import logging
import smtplib
import ssl
from collections.abc import Sequence
from email.message import EmailMessage

from govwatch.core.config import SmtpConfig
from govwatch.core.errors import ConfigError, DispatchError
from govwatch.core.interfaces import IDispatcher
from govwatch.core.models import Notification

log = logging.getLogger(__name__)


class LogDispatcher:
    """Logs a summary line per notification, optionally with the full email body."""

    def __init__(self, *, log_emails: bool = False) -> None:
        self._log_emails = log_emails

    async def dispatch(self, notification: Notification) -> None:
        log.info(
            "governance notification: ballot=%s ballot_id=%d block_number=%d contract=%s",
            notification.event.ballot_type.name,
            notification.event.ballot_id,
            notification.block_number,
            notification.contract_type.value,
        )
        if self._log_emails:
            log.info("governance notification\n%s", notification.email_text())


class EmailDispatcher:
    """Sends each notification to every recipient over SMTP with STARTTLS.

    The TLS context is built eagerly so a host without TLS support fails at
    startup with a `ConfigError` rather than on the first notification.
    """

    def __init__(
        self,
        smtp: SmtpConfig,
        recipients: Sequence[str],
        *,
        subject: str = "POA Network Governance Notification",
    ) -> None:
        self._smtp = smtp
        self._recipients = tuple(recipients)
        self._subject = subject
        try:
            self._tls = ssl.create_default_context()
        except ssl.SSLError as e:
            raise ConfigError(f"could not build a TLS context for SMTP: {e}") from e
        if not self._recipients:
            log.warning("email notifications are enabled, but there are no email recipients")

    def build_message(self, recipient: str, notification: Notification) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self._smtp.outgoing_address
        msg["To"] = recipient
        msg["Subject"] = self._subject
        msg.set_content(notification.email_text())
        return msg

    def _send_all(self, notification: Notification) -> list[tuple[str, str]]:
        failures: list[tuple[str, str]] = []
        delivered: set[str] = set()
        cfg = self._smtp
        try:
            with smtplib.SMTP(cfg.host, cfg.port, timeout=cfg.timeout_s) as server:
                server.starttls(context=self._tls)
                server.login(cfg.username, cfg.password)
                for recipient in self._recipients:
                    try:
                        server.send_message(self.build_message(recipient, notification))
                    except (smtplib.SMTPException, ValueError) as e:
                        log.warning("failed to send email to %s: %s", recipient, e)
                        failures.append((recipient, str(e)))
                    else:
                        delivered.add(recipient)
                        log.info("email sent to %s", recipient)
        except (smtplib.SMTPException, OSError) as e:
            log.warning("SMTP session with %s:%d failed: %s", cfg.host, cfg.port, e)
            failed = {r for r, _ in failures}
            failures.extend(
                (r, str(e)) for r in self._recipients if r not in delivered and r not in failed
            )
        return failures

    async def dispatch(self, notification: Notification) -> None:
        if not self._recipients:
            return
        failures = await asyncio.to_thread(self._send_all, notification)
        if failures:
            who = ", ".join(r for r, _ in failures)
            raise DispatchError(f"email failed for {len(failures)} recipient(s): {who}")


class CompositeDispatcher:
    """Runs every dispatcher in order; collects failures into one DispatchError."""

    def __init__(self, dispatchers: Sequence[IDispatcher]) -> None:
        self._dispatchers = tuple(dispatchers)

    async def dispatch(self, notification: Notification) -> None:
        errors: list[str] = []
        for d in self._dispatchers:
            try:
                await d.dispatch(notification)
            except DispatchError as e:
                errors.append(str(e))
        if errors:
            raise DispatchError("; ".join(errors))
