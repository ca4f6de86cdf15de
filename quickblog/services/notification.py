"""
Newsletter fanout.

A publish or update event is broadcast to every active subscriber in batches.
Inside a batch each recipient is sent to concurrently and independently; one
recipient failing never stops the others. Nothing in here raises to the
caller: every outcome, including an unconfigured email client, is reported as
a ``FanoutSummary``.

Routers never await the fanout. They call ``schedule_blog_notification`` which
queues a background task and returns at once.
"""

import asyncio
import logging
from enum import Enum
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

from fastapi import BackgroundTasks
from pydantic import BaseModel
from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from quickblog.core.config import settings
from quickblog.models.blog import Blog
from quickblog.models.subscriber import Subscriber
from quickblog.services.email import EmailClient, blog_update_email, new_blog_email, welcome_email

logger = logging.getLogger(__name__)

NOT_CONFIGURED_REASON = "Email service not configured"

MessageBuilder = Callable[[str], Tuple[str, str]]


class FanoutEvent(str, Enum):
    NEW_BLOG = "new_blog"
    BLOG_UPDATE = "blog_update"


class FanoutSummary(BaseModel):
    success: bool
    targeted: int = 0
    sent: int = 0
    failed: int = 0
    reason: Optional[str] = None


def batched(items: Sequence[str], size: int) -> Iterator[Sequence[str]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


class NotificationFanout:
    def __init__(self, email_client: EmailClient, batch_size: int = None, batch_delay: float = None):
        self.email_client = email_client
        self.batch_size = max(1, batch_size or settings.NOTIFICATION_BATCH_SIZE)
        self.batch_delay = settings.NOTIFICATION_BATCH_DELAY_SECONDS if batch_delay is None else batch_delay

    async def notify_new_blog(self, blog: Blog, recipients: Sequence[str]) -> FanoutSummary:
        return await self.broadcast(recipients, lambda to: new_blog_email(blog, to), label=f"new blog #{blog.id}")

    async def notify_blog_update(self, blog: Blog, recipients: Sequence[str]) -> FanoutSummary:
        return await self.broadcast(recipients, lambda to: blog_update_email(blog, to), label=f"blog update #{blog.id}")

    async def broadcast(self, recipients: Sequence[str], build_message: MessageBuilder, label: str = "broadcast") -> FanoutSummary:
        if not self.email_client.configured:
            logger.info("Email service not configured - skipping %s notification", label)
            return FanoutSummary(success=False, reason=NOT_CONFIGURED_REASON)

        recipients = list(recipients)
        if not recipients:
            logger.info("No active subscribers for %s notification", label)
            return FanoutSummary(success=True)

        logger.info("Sending %s notification to %d subscribers", label, len(recipients))
        sent = failed = 0
        batches = list(batched(recipients, self.batch_size))
        for index, batch in enumerate(batches):
            results = await asyncio.gather(
                *(self._deliver(recipient, build_message) for recipient in batch),
                return_exceptions=True,
            )
            for recipient, result in zip(batch, results):
                if isinstance(result, BaseException):
                    failed += 1
                    logger.warning("Failed to send %s notification to %s: %s", label, recipient, result)
                else:
                    sent += 1
            if index < len(batches) - 1 and self.batch_delay > 0:
                await asyncio.sleep(self.batch_delay)

        logger.info("%s notification: %d sent, %d failed", label.capitalize(), sent, failed)
        return FanoutSummary(success=True, targeted=len(recipients), sent=sent, failed=failed)

    async def _deliver(self, recipient: str, build_message: MessageBuilder) -> None:
        subject, html = build_message(recipient)
        await asyncio.to_thread(self.email_client.send, recipient, subject, html)


def active_subscriber_emails(session: Session) -> List[str]:
    return list(session.exec(
        select(Subscriber.email).where(Subscriber.is_active == True).order_by(Subscriber.id)
    ).all())


async def run_blog_notification(engine: Engine, email_client: EmailClient, blog_id: int, event: FanoutEvent) -> FanoutSummary:
    """Background job: load the blog and its audience, then fan out."""
    if not email_client.configured:
        logger.info("Email service not configured - skipping %s notification for blog #%s", event.value, blog_id)
        return FanoutSummary(success=False, reason=NOT_CONFIGURED_REASON)

    fanout = NotificationFanout(email_client)
    try:
        with Session(engine) as session:
            blog = session.get(Blog, blog_id)
            if not blog or not blog.is_published:
                logger.info("Blog #%s is gone or unpublished - skipping %s notification", blog_id, event.value)
                return FanoutSummary(success=True, reason="Blog not published")
            recipients = active_subscriber_emails(session)

        if event == FanoutEvent.BLOG_UPDATE:
            return await fanout.notify_blog_update(blog, recipients)
        return await fanout.notify_new_blog(blog, recipients)
    except Exception as e:
        logger.exception("Error sending %s notification for blog #%s", event.value, blog_id)
        return FanoutSummary(success=False, reason=str(e))


def schedule_blog_notification(
    background_tasks: BackgroundTasks,
    engine: Engine,
    email_client: EmailClient,
    blog_id: int,
    event: FanoutEvent,
) -> None:
    background_tasks.add_task(run_blog_notification, engine, email_client, blog_id, event)


async def send_welcome_email(email_client: EmailClient, recipient: str) -> FanoutSummary:
    if not email_client.configured:
        logger.info("Email service not configured - skipping welcome email")
        return FanoutSummary(success=False, reason=NOT_CONFIGURED_REASON)
    try:
        subject, html = welcome_email(recipient)
        await asyncio.to_thread(email_client.send, recipient, subject, html)
    except Exception as e:
        logger.error("Error sending welcome email to %s: %s", recipient, e)
        return FanoutSummary(success=False, targeted=1, failed=1, reason=str(e))
    logger.info("Welcome email sent to %s", recipient)
    return FanoutSummary(success=True, targeted=1, sent=1)


def schedule_welcome_email(background_tasks: BackgroundTasks, email_client: EmailClient, recipient: str) -> None:
    background_tasks.add_task(send_welcome_email, email_client, recipient)
