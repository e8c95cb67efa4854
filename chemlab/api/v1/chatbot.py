"""Chatbot REST API routes - V1."""

import time
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query

from ...models.chat import (
    CacheClearResponse,
    ChatHistoryItem,
    ChatHistoryResponse,
    ChatMessageRequest,
    ChatMessageResponse,
    ContextClearResponse,
    PerformanceResponse,
    QuickActionsResponse,
    SuggestedAction,
    UsageStatItem,
    UsageStatsResponse,
)
from ...db.repositories import AuditLogRepository
from ...services import ConversationStateStore, LabDataService
from ...services.chatbot import (
    ChatbotService,
    classify_query_type,
    generate_suggested_actions,
    get_quick_actions,
)
from ...utils.logger import get_app_logger
from ...utils.validation import ValidationError, validate_user_role

router = APIRouter(prefix="/api/v1/chatbot", tags=["Chatbot"])

logger = get_app_logger()

# Services (set by main.py)
chatbot_service: ChatbotService = None
lab_data: LabDataService = None
state_store: ConversationStateStore = None
audit_repo: AuditLogRepository = None

STAFF_ROLES = ("admin", "technician")


def get_chatbot_service() -> ChatbotService:
    """Dependency to get the chatbot service."""
    if chatbot_service is None:
        raise HTTPException(status_code=500, detail="Chatbot service not initialized")
    return chatbot_service


def get_lab_data() -> LabDataService:
    """Dependency to get the lab data service."""
    if lab_data is None:
        raise HTTPException(status_code=500, detail="Lab data service not initialized")
    return lab_data


def get_state_store() -> ConversationStateStore:
    """Dependency to get the conversation state store."""
    if state_store is None:
        raise HTTPException(status_code=500, detail="Conversation store not initialized")
    return state_store


def get_audit_repo() -> AuditLogRepository:
    """Dependency to get the audit log repository."""
    if audit_repo is None:
        raise HTTPException(status_code=500, detail="Audit log not initialized")
    return audit_repo


def _role_or_400(role: Optional[str]) -> str:
    try:
        return validate_user_role(role)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)


def _require_role(role: Optional[str], allowed, action: str) -> str:
    normalized = _role_or_400(role)
    if normalized not in allowed:
        logger.warning(f"[SECURITY] Role {normalized} denied: {action}")
        raise HTTPException(status_code=403, detail=f"Insufficient permissions to {action}")
    return normalized


@router.post("/message", response_model=ChatMessageResponse)
async def send_message(
    request: ChatMessageRequest,
    service: ChatbotService = Depends(get_chatbot_service)
):
    """Process a chat message and return the assistant's reply."""
    start = time.monotonic()
    reply = service.process_message(request.message, request.user_id, request.user_role)

    role = request.user_role.strip().lower() if isinstance(request.user_role, str) else "borrower"
    suggestions = [SuggestedAction(**action) for action in generate_suggested_actions(reply, role)]

    return ChatMessageResponse(
        success=True,
        response=reply,
        detected_query_type=classify_query_type(request.message),
        suggested_actions=suggestions,
        processing_time_ms=round((time.monotonic() - start) * 1000, 2),
        timestamp=datetime.now()
    )


@router.get("/quick-actions/{role}", response_model=QuickActionsResponse)
async def quick_actions(role: str):
    """Default quick actions for a role."""
    normalized = _role_or_400(role)
    return QuickActionsResponse(
        role=normalized,
        actions=[SuggestedAction(**action) for action in get_quick_actions(normalized)]
    )


@router.get("/history", response_model=ChatHistoryResponse)
async def chat_history(
    user_id: int = Query(..., gt=0, description="User ID"),
    limit: int = Query(20, ge=1, le=100, description="Maximum entries"),
    query_type: Optional[str] = Query(None, description="Filter by query type"),
    repo: AuditLogRepository = Depends(get_audit_repo)
):
    """Recent chat queries of a user."""
    entries = repo.list_by_user(user_id, limit, query_type)
    return ChatHistoryResponse(
        user_id=user_id,
        history=[
            ChatHistoryItem(
                id=entry.id,
                query_text=entry.query_text,
                response_text=entry.response_text,
                query_type=entry.query_type,
                created_at=entry.created_at
            )
            for entry in entries
        ],
        total=len(entries)
    )


@router.delete("/context/{user_id}", response_model=ContextClearResponse)
async def clear_context(
    user_id: int,
    requester_id: int = Query(..., gt=0, description="User making the request"),
    requester_role: str = Query(..., description="Role of the user making the request"),
    store: ConversationStateStore = Depends(get_state_store)
):
    """Reset conversation context. Users may clear their own; staff may clear anyone's."""
    role = _role_or_400(requester_role)
    if requester_id != user_id and role not in STAFF_ROLES:
        logger.warning(f"[SECURITY] User {requester_id} tried to clear context of user {user_id}")
        raise HTTPException(status_code=403, detail="You can only clear your own conversation context")

    if not store.clear_user_context(user_id):
        raise HTTPException(status_code=500, detail="Failed to clear conversation context")

    return ContextClearResponse(success=True, user_id=user_id)


@router.get("/usage-stats", response_model=UsageStatsResponse)
async def usage_stats(
    requester_role: str = Query(..., description="Role of the user making the request"),
    user_id: Optional[int] = Query(None, gt=0, description="Restrict to one user"),
    days: int = Query(7, ge=1, le=365, description="Window size in days"),
    repo: AuditLogRepository = Depends(get_audit_repo)
):
    """Query counts per query type (staff only)."""
    _require_role(requester_role, STAFF_ROLES, "view usage statistics")
    rows = repo.stats_by_type(days, user_id)
    stats = [UsageStatItem(**row) for row in rows]
    return UsageStatsResponse(
        days=days,
        user_id=user_id,
        stats=stats,
        total_queries=sum(item.count for item in stats)
    )


@router.get("/performance", response_model=PerformanceResponse)
async def performance(
    requester_role: str = Query(..., description="Role of the user making the request"),
    data: LabDataService = Depends(get_lab_data)
):
    """Cache statistics and database health (staff only)."""
    _require_role(requester_role, STAFF_ROLES, "view performance data")
    return PerformanceResponse(**data.health_check())


@router.post("/cache/clear", response_model=CacheClearResponse)
async def clear_cache(
    requester_role: str = Query(..., description="Role of the user making the request"),
    data: LabDataService = Depends(get_lab_data)
):
    """Empty every query cache (admin only)."""
    _require_role(requester_role, ("admin",), "clear caches")
    data.clear_all_caches()
    return CacheClearResponse(success=True, message="All caches cleared")
