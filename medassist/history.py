import logging
from typing import Dict, List, Optional

from django.conf import settings
from django.db.models import Count, OuterRef, Subquery

from healthdecode.exceptions import NotFound, ValidationError

from .models import ChatMessage, ChatSession

logger = logging.getLogger(__name__)

LAST_MESSAGE_PREVIEW_LENGTH = 100
SESSION_TYPES = {value for value, _ in ChatSession.TYPE_CHOICES}


def _check_type(session_type: Optional[str]) -> Optional[str]:
    if session_type in (None, ''):
        return None
    if session_type not in SESSION_TYPES:
        raise ValidationError("type must be 'report' or 'medication'")
    return session_type


def preview(content: Optional[str]) -> str:
    if not content:
        return "No messages"
    if len(content) > LAST_MESSAGE_PREVIEW_LENGTH:
        return content[:LAST_MESSAGE_PREVIEW_LENGTH] + "..."
    return content


def list_sessions(user, session_type: Optional[str] = None) -> List[Dict]:
    """Active sessions for the owner, most recently updated first, with a message count and preview."""
    session_type = _check_type(session_type)
    last_message = ChatMessage.objects.filter(session=OuterRef('pk')).order_by('-timestamp', '-id')

    sessions = ChatSession.objects.filter(user=user)
    if session_type:
        sessions = sessions.filter(type=session_type)
    sessions = (
        sessions
        .annotate(
            message_count=Count('messages'),
            last_message=Subquery(last_message.values('content')[:1]),
        )
        .order_by('-updated_at', '-id')[:settings.HISTORY_PAGE_SIZE]
    )

    return [
        {
            "session_id": session.session_id,
            "title": session.title,
            "type": session.type,
            "message_count": session.message_count,
            "last_message": preview(session.last_message),
            "created_at": session.created_at.isoformat(),
            "updated_at": session.updated_at.isoformat(),
        }
        for session in sessions
    ]


def get_session(user, session_id: str) -> Dict:
    session = ChatSession.objects.filter(user=user, session_id=session_id).first()
    if session is None:
        raise NotFound("Chat session not found")
    return {
        "session_id": session.session_id,
        "title": session.title,
        "type": session.type,
        "created_at": session.created_at.isoformat(),
        "updated_at": session.updated_at.isoformat(),
        "messages": [message.to_dict() for message in session.messages.all()],
    }


def delete_session(user, session_id: str) -> None:
    updated = ChatSession.objects.filter(user=user, session_id=session_id).deactivate()
    if not updated:
        raise NotFound("Chat session not found or access denied")
    logger.info(f"HISTORY: session {session_id} deactivated for user {user.pk}")


def clear_sessions(user, session_type: str) -> int:
    if not _check_type(session_type):
        raise ValidationError("type is required to clear history")
    count = ChatSession.objects.filter(user=user, type=session_type).deactivate()
    logger.info(f"HISTORY: cleared {count} session(s) for user {user.pk}, type: {session_type}")
    return count
