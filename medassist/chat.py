"""
Chat session orchestration.

A session is looked up (or created) per owner and caller-supplied session id,
the new user message is added to the stored history, and the whole history is
replayed to the generative client behind one system prompt. Report sessions
get the owner's latest completed report inlined into that system prompt for
the current call only. The user message and the reply are persisted together.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from dataclasses import dataclass
from typing import Dict, List, Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from healthdecode.exceptions import AIServiceError, AuthError, ValidationError

from .models import ChatMessage, ChatSession, MedicalReport
from .prompts import (FALLBACK_RESPONSE, MEDICATION_PROMPT, REPORT_CONTEXT_TEMPLATE, SYSTEM_PROMPT,
                      TITLE_PROMPT)

logger = logging.getLogger(__name__)

SESSION_TYPES = (ChatSession.TYPE_REPORT, ChatSession.TYPE_MEDICATION)
DEFAULT_TITLES = {
    ChatSession.TYPE_REPORT: 'Medical Report Analysis',
    ChatSession.TYPE_MEDICATION: 'Medication Information Check',
}
MAX_TITLE_LENGTH = 50
MIN_TITLE_LENGTH = 3
DEGENERATE_TITLE_WORDS = ('title', 'analysis')
MAX_SESSION_ID_LENGTH = 100
SESSION_UNAVAILABLE = "This session id is not available. Please start a new conversation."


@dataclass
class SendResult:
    session: ChatSession
    message: ChatMessage
    degraded: bool
    usage: Optional[Dict[str, int]] = None


def infer_session_type(session_id: str, declared_type: Optional[str] = None) -> str:
    if declared_type:
        return declared_type
    if 'medication' in session_id:
        logger.warning(f"CHAT: session type for '{session_id}' inferred from its id; callers should send a type")
        return ChatSession.TYPE_MEDICATION
    return ChatSession.TYPE_REPORT


def clean_title(raw: Optional[str]) -> Optional[str]:
    """Returns a usable title from a generated one, or None if it is degenerate."""
    if not raw:
        return None
    lines = [line.strip() for line in raw.strip().splitlines() if line.strip()]
    if not lines:
        return None
    title = lines[0].strip(' "\'*#').rstrip('.!')[:MAX_TITLE_LENGTH].strip()
    lowered = title.lower()
    if len(title) < MIN_TITLE_LENGTH or any(word in lowered for word in DEGENERATE_TITLE_WORDS):
        return None
    return title


def build_report_context(user) -> Optional[str]:
    report = (
        MedicalReport.objects
        .filter(user=user, analysis_status=MedicalReport.STATUS_COMPLETED)
        .order_by('-uploaded_at', '-id')
        .first()
    )
    if report is None:
        return None
    return REPORT_CONTEXT_TEMPLATE.format(
        file_name=report.original_name,
        report_type=report.get_report_type_display(),
        extracted_text=report.extracted_text,
        summary=(report.ai_analysis or {}).get('summary', ''),
    )


class ChatSessionManager:
    def __init__(self, client, timeout: Optional[int] = None):
        self.client = client
        self.timeout = timeout or settings.AI_TIMEOUT_SECONDS

    def _complete(self, messages: List[Dict[str, str]]):
        """Runs the completion under an overall deadline, raising AIServiceError on expiry."""
        executor = ThreadPoolExecutor(max_workers=1)
        future = executor.submit(self.client.complete, messages)
        try:
            return future.result(timeout=self.timeout)
        except FuturesTimeout as e:
            logger.error(f"CHAT: AI completion timed out after {self.timeout}s")
            raise AIServiceError("The AI service timed out. Please try again.") from e
        except AIServiceError:
            raise
        except Exception as e:
            logger.exception(f"CHAT: AI completion failed: {e}")
            raise AIServiceError() from e
        finally:
            executor.shutdown(wait=False)

    def generate_title(self, message: str, session_type: str) -> str:
        default = DEFAULT_TITLES[session_type]
        try:
            response = self._complete([{"role": "user", "content": TITLE_PROMPT.format(message=message)}])
        except AIServiceError:
            logger.info("CHAT: title generation failed, using default title")
            return default
        return clean_title(response.content) or default

    def _validate(self, user, session_id, message, declared_type):
        if user is None or not getattr(user, 'is_authenticated', False):
            raise AuthError()
        session_id = (session_id or '').strip() if isinstance(session_id, str) else ''
        message = (message or '').strip() if isinstance(message, str) else ''
        if not message or not session_id:
            raise ValidationError("Message and sessionId are required")
        if len(session_id) > MAX_SESSION_ID_LENGTH:
            raise ValidationError(f"sessionId must be at most {MAX_SESSION_ID_LENGTH} characters")
        if len(message) > settings.CHAT_MAX_MESSAGE_LENGTH:
            raise ValidationError(f"Message must be at most {settings.CHAT_MAX_MESSAGE_LENGTH} characters")
        if declared_type is not None and declared_type not in SESSION_TYPES:
            raise ValidationError("type must be 'report' or 'medication'")
        return session_id, message

    def _find_or_build_session(self, user, session_id, message, declared_type):
        session = ChatSession.objects.filter(user=user, session_id=session_id).first()
        if session is not None:
            logger.debug(f"CHAT: found existing session {session_id} ({session.type})")
            return session, False

        # Deleted sessions and other owners' ids are reported the same way
        if ChatSession.all_objects.filter(session_id=session_id).exists():
            raise ValidationError(SESSION_UNAVAILABLE)

        session_type = infer_session_type(session_id, declared_type)
        session = ChatSession(
            user=user,
            session_id=session_id,
            type=session_type,
            title=self.generate_title(message, session_type),
        )
        logger.info(f"CHAT: creating session {session_id}, type: {session_type}")
        return session, True

    def build_system_prompt(self, user, session_type: str) -> str:
        if session_type == ChatSession.TYPE_REPORT:
            context = build_report_context(user)
            if context:
                return f"{SYSTEM_PROMPT}\n\n{context}"
            return SYSTEM_PROMPT
        return f"{SYSTEM_PROMPT}\n\n{MEDICATION_PROMPT}"

    def send(self, user, session_id, message, declared_type=None) -> SendResult:
        session_id, message = self._validate(user, session_id, message, declared_type)
        session, is_new = self._find_or_build_session(user, session_id, message, declared_type)

        history = [] if is_new else list(session.messages.all())
        user_message = ChatMessage(role='user', content=message, timestamp=timezone.now())
        history.append(user_message)

        prompt_messages = [{"role": "system", "content": self.build_system_prompt(user, session.type)}]
        prompt_messages.extend({"role": m.role, "content": m.content} for m in history)

        degraded = False
        usage = None
        try:
            response = self._complete(prompt_messages)
            if not response.content or not response.content.strip():
                raise AIServiceError("The AI service returned an empty reply.")
            assistant_message = ChatMessage(
                role='assistant',
                content=response.content,
                timestamp=timezone.now(),
                metadata={"model": response.model, "usage": response.usage_metadata()},
            )
            usage = response.usage
        except AIServiceError as e:
            logger.warning(f"CHAT: using fallback reply for session {session_id}: {e.message}")
            degraded = True
            assistant_message = ChatMessage(
                role='assistant',
                content=FALLBACK_RESPONSE,
                timestamp=timezone.now(),
                metadata={"error": True},
            )

        try:
            with transaction.atomic():
                if is_new:
                    session.save()
                else:
                    session.save(update_fields=['updated_at'])
                user_message.session = session
                assistant_message.session = session
                ChatMessage.objects.bulk_create([user_message, assistant_message])
        except IntegrityError:
            # Another request created the same session id first
            raise ValidationError(SESSION_UNAVAILABLE)

        logger.info(f"CHAT: saved session {session.session_id}, type: {session.type}, degraded: {degraded}")
        return SendResult(session=session, message=assistant_message, degraded=degraded, usage=usage)
