import pytest
from fastapi import HTTPException

from prep_backend.models.interview_session import InterviewSession
from prep_backend.models.question import Question
from prep_backend.routes.session_routes import (
    CreateSessionRequest,
    create_session,
    delete_session,
    get_session,
    list_my_sessions,
    sort_questions,
)


def _create_request(**overrides) -> CreateSessionRequest:
    payload = {
        'role': 'Frontend Developer',
        'experience': '2',
        'topicsToFocus': 'React, CSS',
        'description': 'Prep for onsite',
        'questions': [
            {'question': 'What is a hook?', 'answer': 'A function.'},
            {'question': 'What is the box model?', 'answer': 'Layout rules.'},
        ],
    }
    payload.update(overrides)
    return CreateSessionRequest.model_validate(payload)


def test_create_session_request_coerces_numeric_experience() -> None:
    request = _create_request(experience=4)

    assert request.experience == '4'


def test_create_session_persists_session_and_questions(db, make_user) -> None:
    user = make_user()

    envelope = create_session(_create_request(), current_user=user, db=db)

    assert envelope.success is True
    assert envelope.session.user_id == user.id
    assert envelope.session.topics_to_focus == 'React, CSS'
    assert [q.question for q in envelope.session.questions] == ['What is a hook?', 'What is the box model?']
    assert db.query(Question).filter(Question.session_id == envelope.session.id).count() == 2


def test_create_session_serializes_camel_case(db, make_user) -> None:
    user = make_user()

    payload = create_session(_create_request(), current_user=user, db=db).model_dump(by_alias=True)

    assert payload['session']['topicsToFocus'] == 'React, CSS'
    assert payload['session']['questions'][0]['isPinned'] is False


@pytest.mark.parametrize(
    'overrides',
    [
        {'role': None},
        {'experience': ''},
        {'topicsToFocus': None},
        {'questions': 'not-a-list'},
        {'questions': None},
    ],
)
def test_create_session_rejects_missing_fields(db, make_user, overrides: dict) -> None:
    user = make_user()

    with pytest.raises(HTTPException) as exception_info:
        create_session(_create_request(**overrides), current_user=user, db=db)

    assert exception_info.value.status_code == 400
    assert db.query(InterviewSession).count() == 0


def test_create_session_accepts_empty_question_list(db, make_user) -> None:
    user = make_user()

    envelope = create_session(_create_request(questions=[]), current_user=user, db=db)

    assert envelope.session.questions == []


def test_list_my_sessions_returns_empty_list_for_new_user(db, make_user) -> None:
    user = make_user()

    assert list_my_sessions(current_user=user, db=db) == []


def test_list_my_sessions_returns_only_owned_sessions_newest_first(db, make_user, make_session) -> None:
    owner = make_user(email='owner@example.com')
    other = make_user(email='other@example.com')
    first = make_session(owner, [('Q1', 'A1')])
    second = make_session(owner)
    make_session(other)

    sessions = list_my_sessions(current_user=owner, db=db)

    assert [s.id for s in sessions] == [second.id, first.id]
    assert [q.question for q in sessions[1].questions] == ['Q1']


def test_get_session_returns_pinned_first_then_newest(db, make_user, make_session) -> None:
    owner = make_user()
    interview_session = make_session(owner, [('Q1', 'A1'), ('Q2', 'A2'), ('Q3', 'A3')])
    pinned = interview_session.questions[0]
    pinned.is_pinned = True
    db.commit()

    envelope = get_session(interview_session.id, current_user=owner, db=db)

    assert [q.question for q in envelope.session.questions] == ['Q1', 'Q3', 'Q2']


def test_get_session_returns_not_found_when_missing(db, make_user) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_session(999, current_user=make_user(), db=db)

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'Session not found'


def test_get_session_rejects_non_owner(db, make_user, make_session) -> None:
    owner = make_user(email='owner@example.com')
    intruder = make_user(email='intruder@example.com')
    interview_session = make_session(owner, [('Q1', 'A1')])

    with pytest.raises(HTTPException) as exception_info:
        get_session(interview_session.id, current_user=intruder, db=db)

    assert exception_info.value.status_code == 403
    assert exception_info.value.detail == 'Access denied'


def test_delete_session_removes_session_and_questions(db, make_user, make_session) -> None:
    owner = make_user()
    interview_session = make_session(owner, [('Q1', 'A1'), ('Q2', 'A2')])
    session_id = interview_session.id
    question_ids = [q.id for q in interview_session.questions]

    response = delete_session(session_id, current_user=owner, db=db)

    assert response.message == 'Session deleted successfully'
    assert db.get(InterviewSession, session_id) is None
    assert db.query(Question).filter(Question.id.in_(question_ids)).all() == []


def test_delete_session_rejects_non_owner(db, make_user, make_session) -> None:
    owner = make_user(email='owner@example.com')
    intruder = make_user(email='intruder@example.com')
    interview_session = make_session(owner, [('Q1', 'A1')])

    with pytest.raises(HTTPException) as exception_info:
        delete_session(interview_session.id, current_user=intruder, db=db)

    assert exception_info.value.status_code == 403
    assert db.get(InterviewSession, interview_session.id) is not None


def test_delete_session_returns_not_found_when_missing(db, make_user) -> None:
    with pytest.raises(HTTPException) as exception_info:
        delete_session(999, current_user=make_user(), db=db)

    assert exception_info.value.status_code == 404


def test_sort_questions_breaks_timestamp_ties_by_id() -> None:
    older = Question(id=1, question='old', is_pinned=False)
    newer = Question(id=2, question='new', is_pinned=False)
    pinned = Question(id=3, question='pinned', is_pinned=True)

    ordered = sort_questions([older, pinned, newer])

    assert [q.question for q in ordered] == ['pinned', 'new', 'old']


@pytest.mark.parametrize('bad_item', [{'question': 'Q1', 'answer': {'text': 'A1'}}, {'question': 7, 'answer': 'A1'}, 'Q1'])
def test_create_session_rejects_malformed_question_items(db, make_user, bad_item) -> None:
    user = make_user()

    with pytest.raises(HTTPException) as exception_info:
        create_session(_create_request(questions=[bad_item]), current_user=user, db=db)

    assert exception_info.value.status_code == 400
    assert db.query(InterviewSession).count() == 0
    assert db.query(Question).count() == 0


def test_create_session_reports_which_question_field_is_invalid(db, make_user) -> None:
    user = make_user()

    with pytest.raises(HTTPException) as exception_info:
        create_session(
            _create_request(questions=[{'question': 'Q1', 'answer': ['A1']}]),
            current_user=user,
            db=db,
        )

    detail = exception_info.value.detail
    assert detail['message'] == 'Each question must be an object with question and answer'
    assert [error['field'] for error in detail['error']] == ['answer']
