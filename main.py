import os
import json
import logging
import secrets
from typing import List, Optional, Dict, Any

from fastapi import FastAPI, HTTPException, Body, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, ValidationError
from starlette.datastructures import UploadFile as StarletteUploadFile

import database
from config import Config
from database import now_iso, new_id
from schemas import (
    ChatEntry,
    HiddenState,
    Reply,
    Room as RoomSchema,
    RoomCreated,
    Roommate as RoommateSchema,
    StringFields,
)
from uploads import UploadError, configure as configure_uploads, forward_uploads


logging.basicConfig(level=Config.LOG_LEVEL, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

configure_uploads(Config)


app = FastAPI(title="Find Near Room API")

if Config.CORS_ORIGINS.strip() == "*":
    allowed_origins = ["*"]
else:
    allowed_origins = [o.strip() for o in Config.CORS_ORIGINS.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ----------------------- Helpers -----------------------

def store() -> database.JsonStore:
    return database.db


def parse_image_links(raw: Any) -> List[str]:
    """Decode the optional pre-resolved ``imageLinks``: a JSON list or a JSON-encoded string of one."""
    if not raw:
        return []
    links = raw
    if isinstance(raw, str):
        try:
            links = json.loads(raw)
        except ValueError:
            return []
    if not isinstance(links, list):
        return []
    return [str(link) for link in links]


def room_at(index: int) -> Dict[str, Any]:
    room = store().resolve_by_filtered_index("room", index)
    if room is None:
        raise HTTPException(status_code=404, detail="Invalid room index")
    return room


@app.exception_handler(UploadError)
async def upload_error_handler(request: Request, exc: UploadError):
    logger.error("Image upload failed on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=502, content={"success": False, "error": "Image upload failed"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"success": False, "error": "Server error"})


# ----------------------- Root & Health -----------------------

@app.get("/")
def read_root():
    return {"message": "Find Near Room backend is live."}


@app.get("/test")
def test_storage():
    response = {
        "backend": "✅ Running",
        "storage": "❌ Not Available",
    }
    try:
        response.update(store().stats())
        response["storage"] = "✅ Readable"
    except Exception as e:
        response["storage"] = f"⚠️  Error: {str(e)[:80]}"
    return response


# ----------------------- Rooms -----------------------

class RoomPayload(StringFields):
    name: str = ""
    phone: str = ""
    email: str = ""
    room_type: str = ""
    gender: str = ""
    facilities: str = ""
    deposit: str = ""
    available_from: str = ""
    location: str = ""
    map_link: str = ""
    rent_by_person: str = ""
    imageLinks: Any = None


async def read_room_request(request: Request):
    """Return the room fields and uploaded photos of a form or JSON request."""
    content_type = request.headers.get("content-type", "").lower()
    if content_type.startswith("application/json"):
        try:
            data = await request.json()
        except ValueError:
            raise HTTPException(status_code=400, detail="Malformed JSON body")
        if not isinstance(data, dict):
            raise HTTPException(status_code=422, detail="Expected a JSON object")
        return data, []

    if content_type and not content_type.startswith(
        ("multipart/form-data", "application/x-www-form-urlencoded")
    ):
        raise HTTPException(status_code=415, detail=f"Unsupported content type: {content_type}")

    form = await request.form()
    data = {
        k: v for k, v in form.items() if k in RoomPayload.model_fields and isinstance(v, str)
    }
    photos = [f for f in form.getlist("photos") if isinstance(f, StarletteUploadFile) and f.filename]
    return data, photos


@app.post("/post-room", response_model=RoomCreated)
async def post_room(request: Request):
    data, photos = await read_room_request(request)
    try:
        payload = RoomPayload.model_validate(data)
    except ValidationError as e:
        raise RequestValidationError(e.errors())

    if len(photos) > Config.MAX_PHOTOS:
        raise HTTPException(status_code=400, detail=f"At most {Config.MAX_PHOTOS} photos allowed")

    links = parse_image_links(payload.imageLinks)
    uploaded = await run_in_threadpool(
        forward_uploads, photos, Config.TMP_UPLOAD_DIR, Config.CLOUDINARY_FOLDER
    )
    links.extend(uploaded)

    room = RoomSchema(
        id=new_id(),
        imageLinks=links,
        timestamp=now_iso(),
        **payload.model_dump(exclude={"imageLinks"}),
    ).model_dump()
    await run_in_threadpool(store().append_post, room)
    return RoomCreated(links=links, id=room["id"])


@app.get("/room-posts")
def list_rooms():
    return store().filter_visible("room")


# ----------------------- Roommates -----------------------

class RoommatePayload(StringFields):
    name: str = ""
    gender: str = ""
    phone: str = ""
    email: str = ""
    message: str = ""


@app.post("/roommate-post")
def create_roommate_post(payload: RoommatePayload):
    post = RoommateSchema(id=new_id(), timestamp=now_iso(), **payload.model_dump()).model_dump()
    store().append_post(post)
    return {"success": True, "id": post["id"]}


@app.get("/roommate-posts")
def list_roommates():
    return store().filter_visible("roommate")


class ReplyPayload(StringFields):
    postId: str
    senderName: str = ""
    senderEmail: str = ""
    replyMessage: str = ""


@app.post("/roommate-reply")
def reply_to_roommate(payload: ReplyPayload):
    reply = Reply(timestamp=now_iso(), **payload.model_dump(exclude={"postId"})).model_dump()
    if store().append_reply(payload.postId, reply, post_type="roommate") is None:
        raise HTTPException(status_code=404, detail="Post not found.")
    return {"success": True}


@app.delete("/roommate-delete/{post_id}")
def delete_roommate(post_id: str):
    return {"success": store().remove_by_id(post_id)}


class MessagePayload(StringFields):
    message: str = ""


@app.patch("/roommate-post/{post_id}")
def edit_roommate_message(post_id: str, payload: MessagePayload):
    updated = store().update_by_id(post_id, {"message": payload.message, "updatedAt": now_iso()})
    if updated is None:
        raise HTTPException(status_code=404, detail="Post not found")
    return {"success": True}


class HidePayload(BaseModel):
    hidden: Optional[bool] = False


@app.patch("/roommate-hide/{post_id}", response_model=HiddenState)
def hide_roommate(post_id: str, payload: HidePayload):
    updated = store().update_by_id(post_id, {"hidden": bool(payload.hidden)}, post_type="roommate")
    if updated is None:
        raise HTTPException(status_code=404, detail="Roommate post not found")
    return HiddenState(hidden=updated["hidden"])


@app.patch("/roommate-edit/{post_id}")
def edit_roommate(post_id: str, updated: Dict[str, Any] = Body(...)):
    result = store().update_by_id(post_id, {**updated, "updatedAt": now_iso()}, post_type="roommate")
    if result is None:
        raise HTTPException(status_code=404, detail="Roommate post not found")
    return {"success": True}


# ----------------------- Private chat -----------------------

class PrivateReplyPayload(StringFields):
    postId: str
    senderName: str = ""
    senderEmail: str = ""
    message: str = ""


@app.post("/private-reply")
def private_reply(payload: PrivateReplyPayload):
    entry = ChatEntry(timestamp=now_iso(), **payload.model_dump(exclude={"postId"})).model_dump()
    store().append_chat_entry(payload.postId, entry)
    return {"success": True}


@app.get("/private-reply/{post_id}")
def chat_history(post_id: str):
    return store().chat_history(post_id)


# ----------------------- Admin -----------------------

class AdminLoginPayload(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


def credentials_match(username: Optional[str], password: Optional[str]) -> bool:
    if not Config.ADMIN_USERNAME or not Config.ADMIN_PASSWORD:
        logger.error("Admin credentials are not configured; rejecting login")
        return False
    user_ok = secrets.compare_digest((username or "").encode(), Config.ADMIN_USERNAME.encode())
    pass_ok = secrets.compare_digest((password or "").encode(), Config.ADMIN_PASSWORD.encode())
    return user_ok and pass_ok


@app.post("/admin-login")
def admin_login(payload: AdminLoginPayload):
    if not credentials_match(payload.username, payload.password):
        logger.warning("Rejected admin login for %r", payload.username)
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return {"success": True, "message": "Login successful"}


@app.get("/admin-data")
def admin_rooms():
    return store().filter_by_type("room")


@app.delete("/delete-room/{index}")
def delete_room(index: int):
    room = room_at(index)
    if not store().remove_by_id(room["id"]):
        raise HTTPException(status_code=404, detail="Room not found")
    return {"success": True}


@app.patch("/edit-room/{index}")
def edit_room(index: int, updated: Dict[str, Any] = Body(...)):
    room = room_at(index)
    result = store().update_by_id(room["id"], {**updated, "updatedAt": now_iso()}, post_type="room")
    if result is None:
        raise HTTPException(status_code=404, detail="Room post not found")
    return {"success": True, "message": "Room updated"}


@app.patch("/room-hide/{index}", response_model=HiddenState)
def hide_room(index: int, payload: HidePayload):
    room = room_at(index)
    result = store().update_by_id(room["id"], {"hidden": bool(payload.hidden)}, post_type="room")
    if result is None:
        raise HTTPException(status_code=404, detail="Room not found")
    return HiddenState(hidden=result["hidden"])


# Mounted last so API routes take precedence
if os.path.isdir(Config.PUBLIC_DIR):
    app.mount("/", StaticFiles(directory=Config.PUBLIC_DIR), name="public")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=Config.PORT)
