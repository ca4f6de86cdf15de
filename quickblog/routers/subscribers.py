from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Response
from sqlmodel import Session

from quickblog.db.session import get_session
from quickblog.routers.auth import CurrentAdmin, require_editor
from quickblog.schemas import IdRequest, SubscribeRequest
from quickblog.services.email import EmailClient, get_email_client
from quickblog.services.notification import schedule_welcome_email
from quickblog.services.subscriber import SubscriberService

router = APIRouter()


def get_subscriber_service(session: Session = Depends(get_session)) -> SubscriberService:
    return SubscriberService(session)


@router.post("/subscribe")
def subscribe(
    data: SubscribeRequest,
    response: Response,
    background_tasks: BackgroundTasks,
    service: SubscriberService = Depends(get_subscriber_service),
    email_client: EmailClient = Depends(get_email_client)
):
    subscriber, created = service.subscribe(data.email)
    schedule_welcome_email(background_tasks, email_client, subscriber.email)
    if created:
        response.status_code = 201
        return {"success": True, "message": "Successfully subscribed to our newsletter! Thank you for joining us."}
    return {"success": True, "message": "Welcome back! You have been resubscribed to our newsletter."}

@router.post("/unsubscribe")
def unsubscribe(data: SubscribeRequest, service: SubscriberService = Depends(get_subscriber_service)):
    service.unsubscribe(data.email)
    return {"success": True, "message": "Successfully unsubscribed. Sorry to see you go!"}

@router.get("/all")
def get_subscribers(
    active: Optional[bool] = None,
    admin: CurrentAdmin = Depends(require_editor),
    service: SubscriberService = Depends(get_subscriber_service)
):
    subscribers = service.list_subscribers(active)
    return {"success": True, "count": len(subscribers), "subscribers": subscribers}

@router.post("/delete")
def delete_subscriber(
    data: IdRequest,
    admin: CurrentAdmin = Depends(require_editor),
    service: SubscriberService = Depends(get_subscriber_service)
):
    service.delete(data.id)
    return {"success": True, "message": "Subscriber deleted successfully"}
