import asyncio
import json
import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from finstart.config import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])
security = HTTPBearer()

# Voice websocket sessions currently open (in-memory, per process)
active_sessions: Dict[str, Dict[str, Any]] = {}
active_sessions_lock = asyncio.Lock()


class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class TokenVerifyResponse(BaseModel):
    valid: bool
    message: str


class ConfigUpdateRequest(BaseModel):
    config: Dict[str, Any]


class LiveSession(BaseModel):
    session_id: str
    start_time: str
    duration_seconds: int
    current_step: Optional[str]
    utterance_count: int
    last_intent: Optional[str]
    last_transcript: Optional[str]


async def register_session(session_id: str):
    async with active_sessions_lock:
        active_sessions[session_id] = {
            "start_time": datetime.now(timezone.utc).isoformat(),
            "current_step": None,
            "utterances": [],
        }


async def update_session(session_id: str, **fields):
    """Merge fields into a live session. 'utterance' entries are appended."""
    async with active_sessions_lock:
        session = active_sessions.get(session_id)
        if session is None:
            return
        utterance = fields.pop("utterance", None)
        if utterance is not None:
            session["utterances"].append(utterance)
        session.update(fields)


async def unregister_session(session_id: str):
    async with active_sessions_lock:
        active_sessions.pop(session_id, None)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    """Create a JWT access token"""
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.JWT_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "iat": now})
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def verify_token(credentials: HTTPAuthorizationCredentials = Depends(security)) -> dict:
    """Verify JWT token and return payload"""
    invalid = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid authentication credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(credentials.credentials, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise invalid
    if payload.get("sub") is None:
        raise invalid
    return payload


@router.post("/login", response_model=LoginResponse)
async def admin_login(credentials: LoginRequest):
    """Authenticate admin user and return JWT token"""
    if (credentials.username == settings.ADMIN_USERNAME and
            credentials.password == settings.ADMIN_PASSWORD):
        access_token = create_access_token(
            data={"sub": credentials.username, "role": "admin"},
            expires_delta=timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
        )
        return LoginResponse(access_token=access_token)

    logger.warning("Failed admin login for %r", credentials.username)
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Incorrect username or password",
        headers={"WWW-Authenticate": "Bearer"},
    )


@router.post("/verify", response_model=TokenVerifyResponse)
async def verify_admin_token(payload: dict = Depends(verify_token)):
    """Verify if the provided JWT token is valid"""
    return TokenVerifyResponse(
        valid=True,
        message=f"Token valid for user: {payload.get('sub')}"
    )


@router.get("/config")
async def get_configuration(payload: dict = Depends(verify_token)):
    """Get the prompt configuration currently in effect"""
    return settings.PROMPTS


@router.put("/config")
async def update_configuration(
    request: ConfigUpdateRequest,
    payload: dict = Depends(verify_token)
):
    """Write the prompts file and reload it"""
    config_path = settings.PROMPTS_FILE
    backup_path = config_path + ".backup"

    def backup_and_update():
        if os.path.exists(config_path):
            with open(config_path, 'r') as f:
                backup_data = f.read()
            with open(backup_path, 'w') as f:
                f.write(backup_data)

        with open(config_path, 'w') as f:
            json.dump(request.config, f, indent=2)

    def restore_backup():
        if os.path.exists(backup_path):
            with open(backup_path, 'r') as f:
                backup_data = f.read()
            with open(config_path, 'w') as f:
                f.write(backup_data)

    try:
        await asyncio.to_thread(backup_and_update)
        await asyncio.to_thread(settings.reload_prompts)
    except OSError as e:
        logger.error("Prompt config update failed: %s", e)
        await asyncio.to_thread(restore_backup)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error updating configuration: {str(e)}"
        )

    logger.info("Prompt configuration updated by %s", payload.get('sub'))
    return {
        "success": True,
        "message": "Configuration updated successfully",
        "updated_by": payload.get('sub'),
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@router.get("/sessions/live", response_model=List[LiveSession])
async def get_live_sessions(payload: dict = Depends(verify_token)):
    """List voice sessions currently connected"""
    current_time = datetime.now(timezone.utc)

    async with active_sessions_lock:
        snapshot = {sid: dict(data, utterances=list(data["utterances"])) for sid, data in active_sessions.items()}

    live = []
    for session_id, data in snapshot.items():
        start_time = datetime.fromisoformat(data['start_time'])
        utterances = data["utterances"]
        latest = utterances[-1] if utterances else {}
        live.append(LiveSession(
            session_id=session_id,
            start_time=data['start_time'],
            duration_seconds=int((current_time - start_time).total_seconds()),
            current_step=data.get('current_step'),
            utterance_count=len(utterances),
            last_intent=latest.get("intent"),
            last_transcript=latest.get("transcript"),
        ))

    return live
