"""
API routes for the intake chat backend.
Provides endpoints for:
- Health checks
- Doctor directory
- Chat sessions and messages
- Appointments
- Admin dashboard data
"""

import json
import logging
from datetime import datetime, timezone

from aiohttp import web
from pydantic import ValidationError

from ..models import (
    AppointmentCreate,
    ChatSessionCreate,
    MessageSender,
    SessionStatus,
)
from ..utils import parse_calendar_date

logger = logging.getLogger(__name__)


def create_app(
    store,
    conversation_service,
    admin_password: str,
    allowed_origin: str = "*",
) -> web.Application:
    """
    Create the aiohttp application with routes.

    Args:
        store: MemoryStore instance
        conversation_service: ConversationService instance
        admin_password: Password for admin endpoints
        allowed_origin: Origin used in CORS headers when the request has none

    Returns:
        Configured aiohttp Application
    """
    app = web.Application(middlewares=[cors_middleware])

    # Store services in app
    app["store"] = store
    app["conversation"] = conversation_service
    app["admin_password"] = admin_password
    app["allowed_origin"] = allowed_origin

    # Store lifecycle
    app.on_startup.append(_seed_store)
    app.on_cleanup.append(_close_store)

    # Add routes
    app.router.add_get("/health", health_check)

    app.router.add_get("/api/doctors", list_doctors)
    app.router.add_get("/api/doctors/location/{location}", list_doctors_by_location)

    app.router.add_post("/api/chat/session", create_chat_session)
    app.router.add_get("/api/chat/session/{session_id}", get_chat_session)
    app.router.add_get("/api/chat/session/{session_id}/messages", list_chat_messages)
    app.router.add_post("/api/chat/session/{session_id}/message", post_chat_message)

    app.router.add_post("/api/appointments", create_appointment)
    app.router.add_get("/api/appointments", list_appointments)
    app.router.add_patch("/api/appointments/{appointment_id}/status", update_appointment_status)
    app.router.add_get("/api/appointments/date/{date}", list_appointments_by_date)

    app.router.add_post("/api/admin/auth", admin_auth)
    app.router.add_get("/api/admin/stats", get_admin_stats)
    app.router.add_get("/api/admin/calendar", get_admin_calendar)

    return app


async def _seed_store(app: web.Application) -> None:
    await app["store"].seed()


async def _close_store(app: web.Application) -> None:
    await app["store"].close()


@web.middleware
async def cors_middleware(request: web.Request, handler):
    """Handle CORS for frontend requests."""
    # Handle preflight
    if request.method == "OPTIONS":
        response = web.Response()
    else:
        try:
            response = await handler(request)
        except web.HTTPException as e:
            response = e

    # Add CORS headers
    origin = request.headers.get("Origin", request.app["allowed_origin"])
    response.headers["Access-Control-Allow-Origin"] = origin
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, PATCH, OPTIONS"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type, Authorization, X-Admin-Password"
    response.headers["Access-Control-Allow-Credentials"] = "true"

    return response


class InvalidBody(Exception):
    """Request body is not a JSON object."""


async def _read_json(request: web.Request) -> dict:
    """Parse the request body; an empty body reads as {}."""
    body = await request.text()
    if not body.strip():
        return {}
    try:
        data = json.loads(body)
    except ValueError:
        raise InvalidBody("Request body must be valid JSON")
    if not isinstance(data, dict):
        raise InvalidBody("Request body must be a JSON object")
    return data


def _error(message: str, status: int, errors=None) -> web.Response:
    payload = {"message": message}
    if errors is not None:
        payload["errors"] = errors
    return web.json_response(payload, status=status)


def _validation_errors(e: ValidationError) -> list:
    return e.errors(include_url=False, include_context=False)


async def health_check(request: web.Request) -> web.Response:
    """Health check endpoint."""
    return web.json_response({
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "intake-agent",
    })


# ==================== Doctors ====================

async def list_doctors(request: web.Request) -> web.Response:
    """Get all doctors."""
    store = request.app["store"]
    try:
        doctors = await store.get_doctors()
        return web.json_response([d.to_api_dict() for d in doctors])
    except Exception:
        logger.exception("Error fetching doctors")
        return _error("Failed to fetch doctors", 500)


async def list_doctors_by_location(request: web.Request) -> web.Response:
    """Get doctors whose location contains the path text."""
    location = request.match_info["location"]
    store = request.app["store"]
    try:
        doctors = await store.get_doctors_by_location(location)
        return web.json_response([d.to_api_dict() for d in doctors])
    except Exception:
        logger.exception("Error fetching doctors by location")
        return _error("Failed to fetch doctors by location", 500)


# ==================== Chat ====================

async def create_chat_session(request: web.Request) -> web.Response:
    """
    Open a chat session.

    Request body (all optional):
    {
        "patientName": "...",
        "location": "...",
        "urgency": "emergency" | "urgent" | "routine",
        "status": "active"
    }
    """
    store = request.app["store"]
    try:
        data = ChatSessionCreate.model_validate(await _read_json(request))
    except InvalidBody as e:
        return _error(str(e), 400)
    except ValidationError as e:
        return _error("Invalid data", 400, _validation_errors(e))

    try:
        session = await store.create_chat_session(data)
        return web.json_response(session.to_api_dict())
    except Exception:
        logger.exception("Error creating chat session")
        return _error("Failed to create chat session", 500)


async def get_chat_session(request: web.Request) -> web.Response:
    """Get a chat session with its intake progress."""
    session_id = request.match_info["session_id"]
    store = request.app["store"]
    try:
        session = await store.get_chat_session(session_id)
    except Exception:
        logger.exception("Error fetching chat session")
        return _error("Failed to fetch chat session", 500)

    if session is None:
        return _error("Chat session not found", 404)
    return web.json_response(session.to_display_dict())


async def list_chat_messages(request: web.Request) -> web.Response:
    """Get a session's messages, oldest first."""
    session_id = request.match_info["session_id"]
    store = request.app["store"]
    try:
        messages = await store.get_chat_messages(session_id)
        return web.json_response([m.to_api_dict() for m in messages])
    except Exception:
        logger.exception("Error fetching messages")
        return _error("Failed to fetch messages", 500)


async def post_chat_message(request: web.Request) -> web.Response:
    """
    Post a user message and get the assistant's reply.

    Request body:
    {
        "content": "I would like to schedule an appointment"
    }

    Response:
    {
        "userMessage": {...},
        "assistantMessage": {...},
        "nextStep": "location" | null,
        "extractedInfo": {...} | null
    }
    """
    session_id = request.match_info["session_id"]
    store = request.app["store"]
    conversation = request.app["conversation"]

    try:
        data = await _read_json(request)
    except InvalidBody as e:
        return _error(str(e), 400)

    content = data.get("content")
    if not isinstance(content, str) or not content.strip():
        return _error("Message content is required", 400)

    try:
        async with store.session_lock(session_id):
            # Saved first so it survives a failed reply
            user_message = await store.create_chat_message(session_id, content, MessageSender.USER)

            messages = await store.get_chat_messages(session_id)
            history = [m.to_history_entry() for m in messages if m.id != user_message.id]

            session = await store.get_chat_session(session_id)
            current_step = session.status if session and session.status else None

            reply = await conversation.process_user_message(
                content,
                history,
                current_step,
                doctors=await store.get_doctors(),
            )

            assistant_message = await store.create_chat_message(
                session_id, reply.message, MessageSender.ASSISTANT
            )

            if reply.extracted_info is not None and session is not None:
                updates = reply.extracted_info.session_updates()
                if reply.next_step:
                    updates["status"] = reply.next_step
                if updates:
                    await store.update_chat_session(session_id, updates)

        return web.json_response({
            "userMessage": user_message.to_api_dict(),
            "assistantMessage": assistant_message.to_api_dict(),
            "nextStep": reply.next_step,
            "extractedInfo": reply.extracted_info_dict,
        })
    except Exception:
        logger.exception("Chat message error")
        return _error("Failed to process message", 500)


# ==================== Appointments ====================

async def create_appointment(request: web.Request) -> web.Response:
    """
    Create an appointment, optionally completing the chat session behind it.

    Request body:
    {
        "patientName": "Jane Doe",
        "location": "New York, NY",
        "urgency": "urgent",
        "appointmentDate": "2025-03-10T14:00:00Z",
        "sessionId": "optional-chat-session-id"
    }
    """
    store = request.app["store"]
    try:
        data = AppointmentCreate.model_validate(await _read_json(request))
    except InvalidBody as e:
        return _error(str(e), 400)
    except ValidationError as e:
        return _error("Invalid appointment data", 400, _validation_errors(e))

    try:
        appointment = await store.create_appointment(data)

        if data.session_id:
            async with store.session_lock(data.session_id):
                await store.update_chat_session(data.session_id, {
                    "status": SessionStatus.COMPLETED.value,
                    "appointment_id": appointment.id,
                })

        return web.json_response(appointment.to_api_dict())
    except Exception:
        logger.exception("Error creating appointment")
        return _error("Failed to create appointment", 500)


async def list_appointments(request: web.Request) -> web.Response:
    """Get all appointments."""
    store = request.app["store"]
    try:
        appointments = await store.get_appointments()
        return web.json_response([a.to_api_dict() for a in appointments])
    except Exception:
        logger.exception("Error fetching appointments")
        return _error("Failed to fetch appointments", 500)


async def update_appointment_status(request: web.Request) -> web.Response:
    """
    Update an appointment's status.

    Request body:
    {
        "status": "confirmed"
    }
    """
    appointment_id = request.match_info["appointment_id"]
    store = request.app["store"]

    try:
        data = await _read_json(request)
    except InvalidBody as e:
        return _error(str(e), 400)

    status = data.get("status")
    if not isinstance(status, str) or not status:
        return _error("Status is required", 400)

    try:
        appointment = await store.update_appointment_status(appointment_id, status)
    except Exception:
        logger.exception("Error updating appointment status")
        return _error("Failed to update appointment status", 500)

    if appointment is None:
        return _error("Appointment not found", 404)
    return web.json_response(appointment.to_api_dict())


async def list_appointments_by_date(request: web.Request) -> web.Response:
    """Get appointments on one calendar day."""
    day = parse_calendar_date(request.match_info["date"])
    if day is None:
        return _error("Invalid date format", 400)

    store = request.app["store"]
    try:
        appointments = await store.get_appointments_by_date(day)
        return web.json_response([a.to_api_dict() for a in appointments])
    except Exception:
        logger.exception("Error fetching appointments by date")
        return _error("Failed to fetch appointments by date", 500)


# ==================== Admin ====================

async def admin_auth(request: web.Request) -> web.Response:
    """
    Authenticate admin user.

    Request body:
    {
        "password": "admin-password"
    }
    """
    try:
        data = await _read_json(request)
    except InvalidBody as e:
        return _error(str(e), 400)

    if data.get("password") == request.app["admin_password"]:
        return web.json_response({"authenticated": True})
    return web.json_response({"authenticated": False}, status=401)


def _check_admin_auth(request: web.Request) -> bool:
    """Check if request has valid admin authentication."""
    password = request.headers.get("X-Admin-Password")
    return password == request.app["admin_password"]


async def get_admin_stats(request: web.Request) -> web.Response:
    """Get admin dashboard statistics."""
    if not _check_admin_auth(request):
        return _error("Unauthorized", 401)

    store = request.app["store"]
    try:
        stats = await store.get_stats()
        stats["timestamp"] = datetime.now(timezone.utc).isoformat()
        return web.json_response(stats)
    except Exception:
        logger.exception("Error fetching stats")
        return _error("Failed to fetch stats", 500)


async def get_admin_calendar(request: web.Request) -> web.Response:
    """
    Get a month of appointments grouped by day.

    Query params:
    - year: Calendar year (default current)
    - month: 1-12 (default current)
    """
    if not _check_admin_auth(request):
        return _error("Unauthorized", 401)

    today = datetime.now(timezone.utc)
    try:
        year = int(request.query.get("year", today.year))
        month = int(request.query.get("month", today.month))
    except ValueError:
        return _error("Year and month must be integers", 400)
    if not 1 <= month <= 12:
        return _error("Month must be between 1 and 12", 400)

    store = request.app["store"]
    try:
        days = await store.get_calendar(year, month)
        return web.json_response({"year": year, "month": month, "days": days})
    except Exception:
        logger.exception("Error fetching calendar")
        return _error("Failed to fetch calendar", 500)
