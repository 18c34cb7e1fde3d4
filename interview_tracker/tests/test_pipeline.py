"""Stage pipeline behaviour exercised directly against the service layer."""
from datetime import date

import pytest
from sqlalchemy.exc import IntegrityError

from interview_tracker import crud, models, pipeline
from interview_tracker.errors import InvalidState, NotFound, ValidationError


APPLICATION = {"company_name": "Acme", "job_title": "Engineer", "application_date": date(2026, 9, 1)}


def _application(db, user):
    return crud.create_application(db, user.id, dict(APPLICATION))


def _manual(names):
    return crud.ManualSeed([(n, None) for n in names])


def _with_stages(db, user, names):
    return crud.create_application(db, user.id, dict(APPLICATION), _manual(names))


def _assert_pointer_is_local(db, app):
    db.refresh(app)
    if app.current_stage_id is not None:
        stage = db.get(models.Stage, app.current_stage_id)
        assert stage is not None
        assert stage.application_id == app.id


def test_first_added_stage_becomes_current(db_session, user):
    app = _application(db_session, user)
    assert app.current_stage_id is None

    stage = pipeline.add_stage(db_session, app, "Phone Screen")
    assert stage.stage_order == 1
    db_session.refresh(app)
    assert app.current_stage_id == stage.id

    second = pipeline.add_stage(db_session, app, "Onsite")
    assert second.stage_order == 2
    db_session.refresh(app)
    # an existing pointer is left alone
    assert app.current_stage_id == stage.id


def test_add_stage_appends_after_highest_order(db_session, user):
    app = _application(db_session, user)
    pipeline.add_stage(db_session, app, "Late", stage_order=5)
    nxt = pipeline.add_stage(db_session, app, "Later")
    assert nxt.stage_order == 6


def test_add_stage_with_taken_order_conflicts_and_keeps_pointer(db_session, user):
    app = _with_stages(db_session, user, ["Screen"])
    before = app.current_stage_id
    with pytest.raises(IntegrityError):
        pipeline.add_stage(db_session, app, "Duplicate", stage_order=1)
    db_session.refresh(app)
    assert app.current_stage_id == before
    assert len(pipeline.list_stages(db_session, app)) == 1


def test_move_to_next_does_not_require_completion(db_session, user):
    app = _with_stages(db_session, user, ["Screen", "Onsite"])
    first, second = pipeline.list_stages(db_session, app)
    assert app.current_stage_id == first.id

    moved = pipeline.move_to_next(db_session, app)
    assert moved.id == second.id
    assert moved.stage_order > first.stage_order
    _assert_pointer_is_local(db_session, app)


def test_move_to_next_skips_completed_stages(db_session, user):
    app = _with_stages(db_session, user, ["Screen", "Take-home", "Onsite", "Offer call"])
    screen, take_home, onsite, _ = pipeline.list_stages(db_session, app)
    pipeline.complete_stage(db_session, take_home, result="pass")

    moved = pipeline.move_to_next(db_session, app)
    assert moved.id == onsite.id
    assert moved.is_completed is False


def test_move_to_next_is_exhausted_at_last_incomplete_stage(db_session, user):
    app = _with_stages(db_session, user, ["Screen", "Onsite"])
    _, onsite = pipeline.list_stages(db_session, app)
    pipeline.move_to_next(db_session, app)

    with pytest.raises(InvalidState, match="No more stages"):
        pipeline.move_to_next(db_session, app)
    db_session.refresh(app)
    assert app.current_stage_id == onsite.id


def test_move_to_next_fails_when_remaining_stages_are_completed(db_session, user):
    app = _with_stages(db_session, user, ["Screen", "Onsite"])
    screen, onsite = pipeline.list_stages(db_session, app)
    pipeline.complete_stage(db_session, screen)
    pipeline.complete_stage(db_session, onsite)

    with pytest.raises(InvalidState):
        pipeline.move_to_next(db_session, app)
    db_session.refresh(app)
    assert app.current_stage_id == screen.id


def test_move_to_next_without_pipeline(db_session, user):
    app = _application(db_session, user)
    with pytest.raises(InvalidState, match="no stages defined"):
        pipeline.move_to_next(db_session, app)


def test_complete_stage_sets_flags_and_keeps_pointer(db_session, user):
    app = _with_stages(db_session, user, ["Screen", "Onsite"])
    screen, _ = pipeline.list_stages(db_session, app)

    done = pipeline.complete_stage(db_session, screen, result="fail", feedback_notes="Too junior")
    assert done.is_completed is True
    assert done.completed_at is not None
    assert done.result == "fail"
    assert done.feedback_notes == "Too junior"
    assert done.status == "completed"
    db_session.refresh(app)
    assert app.current_stage_id == screen.id


def test_complete_stage_twice_overwrites(db_session, user):
    app = _with_stages(db_session, user, ["Screen"])
    (screen,) = pipeline.list_stages(db_session, app)

    first = pipeline.complete_stage(db_session, screen, result="fail", feedback_notes="first pass")
    first_at = first.completed_at
    second = pipeline.complete_stage(db_session, screen, result="pass", feedback_notes="second look")
    assert second.is_completed is True
    assert second.result == "pass"
    assert second.feedback_notes == "second look"
    assert second.completed_at >= first_at


def test_complete_stage_keeps_notes_unless_given(db_session, user):
    app = _with_stages(db_session, user, ["Screen"])
    (screen,) = pipeline.list_stages(db_session, app)
    pipeline.update_stage(db_session, screen, {"feedback_notes": "Friendly recruiter"})

    done = pipeline.complete_stage(db_session, screen)
    assert done.result == "pass"
    assert done.feedback_notes == "Friendly recruiter"


def test_completed_stage_may_keep_pending_result(db_session, user):
    app = _with_stages(db_session, user, ["Screen"])
    (screen,) = pipeline.list_stages(db_session, app)
    done = pipeline.complete_stage(db_session, screen, result="pending")
    assert done.is_completed is True
    assert done.result == "pending"
    assert done.completed_at is not None


def test_delete_current_stage_reassigns_lowest_remaining_id(db_session, user):
    app = _application(db_session, user)
    # ids ascend in creation order; orders deliberately do not
    x = pipeline.add_stage(db_session, app, "X", stage_order=2)
    y = pipeline.add_stage(db_session, app, "Y", stage_order=3)
    pipeline.add_stage(db_session, app, "Z", stage_order=1)
    db_session.refresh(app)
    assert app.current_stage_id == x.id

    pipeline.delete_stage(db_session, x)
    db_session.refresh(app)
    assert app.current_stage_id == y.id
    _assert_pointer_is_local(db_session, app)


def test_delete_non_current_stage_keeps_pointer(db_session, user):
    app = _with_stages(db_session, user, ["Screen", "Onsite"])
    screen, onsite = pipeline.list_stages(db_session, app)
    pipeline.delete_stage(db_session, onsite)
    db_session.refresh(app)
    assert app.current_stage_id == screen.id


def test_delete_last_stage_clears_pointer(db_session, user):
    app = _with_stages(db_session, user, ["Only"])
    (only,) = pipeline.list_stages(db_session, app)
    pipeline.delete_stage(db_session, only)
    db_session.refresh(app)
    assert app.current_stage_id is None
    assert pipeline.list_stages(db_session, app) == []


def test_update_stage_leaves_completion_and_pointer_alone(db_session, user):
    app = _with_stages(db_session, user, ["Screen", "Onsite"])
    screen, onsite = pipeline.list_stages(db_session, app)

    updated = pipeline.update_stage(
        db_session, onsite, {"stage_name": "Virtual Onsite", "stage_order": 7, "result": "pass"}
    )
    assert updated.stage_name == "Virtual Onsite"
    assert updated.stage_order == 7
    assert updated.result == "pass"
    assert updated.is_completed is False
    assert updated.completed_at is None
    db_session.refresh(app)
    assert app.current_stage_id == screen.id


def test_pointer_never_crosses_applications(db_session, user):
    a = _with_stages(db_session, user, ["A1", "A2"])
    b = _with_stages(db_session, user, ["B1", "B2", "B3"])

    pipeline.move_to_next(db_session, a)
    b1, b2, _ = pipeline.list_stages(db_session, b)
    pipeline.delete_stage(db_session, b1)
    pipeline.move_to_next(db_session, b)

    for app in (a, b):
        _assert_pointer_is_local(db_session, app)


def test_get_owned_stage_is_scoped_to_owner(db_session, user):
    app = _with_stages(db_session, user, ["Screen"])
    (screen,) = pipeline.list_stages(db_session, app)
    stranger = crud.create_user(db_session, "Stranger", "stranger@example.com", "secret123")

    assert pipeline.get_owned_stage(db_session, user.id, screen.id).id == screen.id
    with pytest.raises(NotFound):
        pipeline.get_owned_stage(db_session, stranger.id, screen.id)
    with pytest.raises(NotFound):
        pipeline.get_owned_stage(db_session, user.id, 123456)


def test_template_seed_copies_stages_in_order(db_session, user, templates):
    tpl = next(t for t in templates if t.name == "Software Engineering")
    app = crud.create_application(db_session, user.id, dict(APPLICATION), crud.TemplateSeed(tpl.id))
    stages = pipeline.list_stages(db_session, app)
    assert [s.stage_name for s in stages] == [ts.stage_name for ts in tpl.stages]
    assert [s.stage_order for s in stages] == [1, 2, 3, 4, 5]
    assert app.current_stage_id == stages[0].id
    # template rows are copied, not moved
    assert len(crud.get_template(db_session, tpl.id).stages) == 5


def test_service_rejects_blank_names_and_unknown_results(db_session, user):
    app = _application(db_session, user)
    with pytest.raises(ValidationError):
        pipeline.add_stage(db_session, app, "   ")
    with pytest.raises(ValidationError):
        pipeline.add_stage(db_session, app, "Screen", result="maybe")
    with pytest.raises(ValidationError):
        crud.create_application(db_session, user.id, dict(APPLICATION), _manual(["Screen", ""]))

    stage = pipeline.add_stage(db_session, app, "Screen")
    with pytest.raises(ValidationError):
        pipeline.complete_stage(db_session, stage, result="maybe")
    with pytest.raises(ValidationError):
        pipeline.update_stage(db_session, stage, {"result": "maybe"})
    assert pipeline.list_stages(db_session, app)[0].result == "pending"
