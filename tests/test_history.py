from datetime import timedelta

import pytest
from django.utils import timezone

from healthdecode.exceptions import NotFound, ValidationError
from medassist.history import clear_sessions, delete_session, get_session, list_sessions, preview
from medassist.models import ChatMessage, ChatSession


def make_session(user, session_id, session_type='report', messages=(), age_minutes=0):
    session = ChatSession.objects.create(user=user, session_id=session_id, type=session_type,
                                         title=f"Chat {session_id}")
    for role, content in messages:
        ChatMessage.objects.create(session=session, role=role, content=content)
    ChatSession.all_objects.filter(pk=session.pk).update(
        updated_at=timezone.now() - timedelta(minutes=age_minutes))
    return session


def test_preview():
    assert preview(None) == "No messages"
    assert preview("short") == "short"
    assert preview("x" * 120) == "x" * 100 + "..."


def test_list_is_filtered_by_type_and_owner(user, other_user):
    make_session(user, 'r-1', 'report')
    make_session(user, 'm-1', 'medication')
    make_session(other_user, 'r-2', 'report')

    assert [s["session_id"] for s in list_sessions(user, 'report')] == ['r-1']
    assert [s["session_id"] for s in list_sessions(user, 'medication')] == ['m-1']
    assert {s["session_id"] for s in list_sessions(user)} == {'r-1', 'm-1'}


def test_list_orders_by_last_update_with_counts_and_preview(user):
    make_session(user, 'older', messages=[('user', 'first'), ('assistant', 'a' * 150)], age_minutes=30)
    make_session(user, 'newer', messages=[('user', 'hello'), ('assistant', 'hi there')], age_minutes=5)
    make_session(user, 'empty', age_minutes=60)

    sessions = list_sessions(user, 'report')

    assert [s["session_id"] for s in sessions] == ['newer', 'older', 'empty']
    assert sessions[0]["message_count"] == 2
    assert sessions[0]["last_message"] == 'hi there'
    assert sessions[1]["last_message"] == 'a' * 100 + '...'
    assert sessions[2]["message_count"] == 0
    assert sessions[2]["last_message"] == 'No messages'


def test_get_session_returns_messages_in_order(user):
    make_session(user, 'r-3', messages=[('user', 'question'), ('assistant', 'answer')])

    session = get_session(user, 'r-3')

    assert [m["content"] for m in session["messages"]] == ['question', 'answer']


def test_get_session_is_owner_scoped(user, other_user):
    make_session(other_user, 'theirs')
    with pytest.raises(NotFound):
        get_session(user, 'theirs')


def test_delete_is_soft_and_hides_session(user):
    make_session(user, 'r-4', messages=[('user', 'question'), ('assistant', 'answer')])

    delete_session(user, 'r-4')

    with pytest.raises(NotFound):
        get_session(user, 'r-4')
    assert list_sessions(user) == []
    stored = ChatSession.all_objects.get(session_id='r-4')
    assert stored.is_active is False
    assert stored.messages.count() == 2


def test_delete_twice_or_foreign_is_not_found(user, other_user):
    make_session(user, 'r-5')
    make_session(other_user, 'r-6')
    delete_session(user, 'r-5')

    with pytest.raises(NotFound):
        delete_session(user, 'r-5')
    with pytest.raises(NotFound):
        delete_session(user, 'r-6')
    assert ChatSession.objects.get(session_id='r-6').is_active is True


def test_clear_only_touches_requested_type(user, other_user):
    make_session(user, 'r-7', 'report')
    make_session(user, 'r-8', 'report')
    make_session(user, 'm-2', 'medication')
    make_session(other_user, 'r-9', 'report')

    assert clear_sessions(user, 'report') == 2
    assert [s["session_id"] for s in list_sessions(user)] == ['m-2']
    assert ChatSession.objects.filter(session_id='r-9').exists()


def test_unknown_type_is_rejected(user):
    with pytest.raises(ValidationError):
        list_sessions(user, 'diary')
    with pytest.raises(ValidationError):
        clear_sessions(user, 'diary')


def test_history_api(auth_client, user):
    make_session(user, 'r-10', 'report', messages=[('user', 'question')])
    make_session(user, 'm-3', 'medication')

    listing = auth_client.get('/api/ai/history?type=medication')
    assert listing.status_code == 200
    assert [s["session_id"] for s in listing.json()["sessions"]] == ['m-3']

    assert auth_client.delete('/api/ai/history/m-3').status_code == 200
    assert auth_client.delete('/api/ai/history/m-3').status_code == 404

    cleared = auth_client.delete('/api/ai/history?type=report')
    assert cleared.json()["cleared"] == 1
    assert auth_client.get('/api/ai/history').json()["sessions"] == []


def test_history_api_rejects_unknown_type(auth_client):
    response = auth_client.get('/api/ai/history?type=diary')
    assert response.status_code == 400
    assert response.json()["status"] == "error"


def test_clear_requires_type(user):
    make_session(user, 'r-11')
    with pytest.raises(ValidationError):
        clear_sessions(user, None)
    assert ChatSession.objects.filter(session_id='r-11').exists()
