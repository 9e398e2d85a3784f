"""
Pub/Sub push ingress.

Deliveries are acknowledged before any work starts so that a slow or failing
job never triggers redelivery. Only a structurally unreadable envelope is
rejected; an unreadable or unrecognised payload is acknowledged and dropped.
"""

import json

from fastapi import APIRouter, BackgroundTasks, HTTPException, Request
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from ..core import get_logger, set_message_id
from ..models.events import PushEnvelope, RestitchDirective, classify_event, decode_message_data
from ..services.orchestration import JobOrchestrator, RestitchOrchestrator, get_pipeline_services

logger = get_logger(__name__, component="pubsub_routes")

router = APIRouter(tags=["pubsub"])

ACK = "Ack"


def _bad_request(reason: str) -> HTTPException:
    logger.error(f"Rejected push delivery: {reason}")
    return HTTPException(status_code=400, detail=f"Bad Request: {reason}")


@router.post("/", response_class=PlainTextResponse)
async def receive_push(request: Request, background_tasks: BackgroundTasks):
    """Receive one push delivery and schedule the matching run."""
    body = await request.body()
    if not body:
        raise _bad_request("no Pub/Sub message received")
    try:
        payload = json.loads(body)
    except ValueError:
        raise _bad_request("no Pub/Sub message received")
    if not isinstance(payload, dict) or not isinstance(payload.get("message"), dict):
        raise _bad_request("invalid Pub/Sub message format")
    try:
        envelope = PushEnvelope.model_validate(payload)
    except ValidationError:
        raise _bad_request("invalid Pub/Sub message format")

    set_message_id(envelope.message.message_id)

    try:
        data = decode_message_data(envelope.message)
    except ValueError as exc:
        logger.warning("Acknowledging undecodable message", extra={"error": str(exc)})
        return ACK

    event = classify_event(data)
    if event is None:
        logger.info("Ignoring unrecognised event", extra={"event_type": data.get("type")})
        return ACK

    services = get_pipeline_services()
    if isinstance(event, RestitchDirective):
        logger.info("Restitch scheduled", extra={"video_id": event.video_id})
        background_tasks.add_task(RestitchOrchestrator(services).restitch, event.video_id)
    else:
        logger.info("Job scheduled", extra={"object": event.name, "bucket": event.bucket})
        background_tasks.add_task(JobOrchestrator(services).run_job, event)
    return ACK
