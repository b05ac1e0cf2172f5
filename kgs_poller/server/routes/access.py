"""
MODULE OVERVIEW:
The emulated access endpoint: one URL, POST to talk, GET to listen.

WHAT IS HAPPENING HERE:
A LOGIN POST opens a mailbox and hands back a session cookie, which the client
sends with every later request. The reply to LOGIN itself is just "200"; the
actual verdict (LOGIN_SUCCESS or LOGIN_FAILED_*) is queued and travels back
through the next GET, exactly like the real service.
"""
from fastapi import APIRouter, Body, Cookie, HTTPException, Request, Response

from kgs_poller.server.mailbox import MailboxRegistry

SESSION_COOKIE = "KGS_SESSION"

router = APIRouter()

def get_registry(request: Request) -> MailboxRegistry:
    return request.app.state.registry

@router.post("/api/access")
async def post_access(
    request: Request,
    response: Response,
    message: dict = Body(...),
    session_id: str | None = Cookie(None, alias=SESSION_COOKIE),
):
    registry = get_registry(request)
    message_type = message.get("type")
    if not isinstance(message_type, str):
        raise HTTPException(status_code=400, detail="Message has no type")

    if message_type == "LOGIN":
        # A fresh LOGIN replaces whatever login this client was holding
        registry.close(session_id)
        new_id = registry.open(message.get("name", "guest"))
        response.set_cookie(SESSION_COOKIE, new_id)
        if message.get("password"):
            registry.post(new_id, {"type": "LOGIN_SUCCESS", "you": {"name": message.get("name", "guest")}})
        else:
            registry.post(new_id, {"type": "LOGIN_FAILED_BAD_PASSWORD"})
        return {}

    if registry.get(session_id) is None:
        raise HTTPException(status_code=401, detail="Not logged in")

    # LOGOUT is acknowledged as itself; anything else is echoed back
    registry.post(session_id, message)
    return {}

@router.get("/api/access")
async def get_access(
    request: Request,
    session_id: str | None = Cookie(None, alias=SESSION_COOKIE),
):
    registry = get_registry(request)
    if registry.get(session_id) is None:
        raise HTTPException(status_code=401, detail="Not logged in")

    messages = await registry.collect(session_id, request.app.state.poll_timeout_s)
    return {"messages": messages}
