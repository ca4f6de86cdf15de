import logging
import re
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from quickblog.core.errors import NotFoundError, ValidationError
from quickblog.models.subscriber import Subscriber

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")


def normalize_email(email: Optional[str]) -> str:
    email = (email or "").strip().lower()
    if not email:
        raise ValidationError("Email is required")
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Please enter a valid email address")
    return email


class SubscriberService:
    def __init__(self, session: Session):
        self.session = session

    def get_by_email(self, email: str) -> Optional[Subscriber]:
        return self.session.exec(select(Subscriber).where(Subscriber.email == email)).first()

    def subscribe(self, email: str) -> Tuple[Subscriber, bool]:
        """Subscribe or reactivate. Returns ``(subscriber, created)``."""
        email = normalize_email(email)
        subscriber = self.get_by_email(email)

        if subscriber:
            if subscriber.is_active:
                raise ValidationError("This email is already subscribed to our newsletter!")
            subscriber.is_active = True
            subscriber.subscribed_at = datetime.utcnow()
            subscriber.updated_at = datetime.utcnow()
            self.session.add(subscriber)
            self.session.commit()
            self.session.refresh(subscriber)
            logger.info("Subscriber #%s reactivated", subscriber.id)
            return subscriber, False

        subscriber = Subscriber(email=email)
        self.session.add(subscriber)
        try:
            self.session.commit()
        except IntegrityError:
            # Lost a race with a concurrent subscribe for the same address
            self.session.rollback()
            raise ValidationError("This email is already subscribed")
        self.session.refresh(subscriber)
        logger.info("Subscriber #%s created", subscriber.id)
        return subscriber, True

    def unsubscribe(self, email: str) -> Subscriber:
        subscriber = self.get_by_email(normalize_email(email))
        if not subscriber:
            raise NotFoundError("Email not found in our subscriber list")
        subscriber.is_active = False
        subscriber.updated_at = datetime.utcnow()
        self.session.add(subscriber)
        self.session.commit()
        self.session.refresh(subscriber)
        return subscriber

    def list_subscribers(self, active: Optional[bool] = None) -> List[Subscriber]:
        query = select(Subscriber)
        if active is not None:
            query = query.where(Subscriber.is_active == active)
        return list(self.session.exec(query.order_by(Subscriber.subscribed_at.desc(), Subscriber.id.desc())).all())

    def delete(self, subscriber_id: int) -> None:
        subscriber = self.session.get(Subscriber, subscriber_id)
        if not subscriber:
            raise NotFoundError("Subscriber not found")
        self.session.delete(subscriber)
        self.session.commit()
