import uuid

import pytest

from gritwit.auth import AuthUser, ServerError, UserRole, set_user_id
from gritwit.models import Exercise
from gritwit.services import (
    change_user_role,
    create_exercise,
    delete_exercise,
    filter_exercises,
    is_coach,
    list_all_users,
    list_exercises,
    role_action,
    update_exercise,
)
from gritwit.store import Store


@pytest.fixture
def store():
    with Store(":memory:") as db:
        yield db


def _session_for(store, role):
    user_id = store.create_user(
        f"{role} user", email=f"{role}@example.com", role=role
    )
    session = {}
    set_user_id(session, user_id)
    return session, user_id


def test_list_exercises_sorted_by_name(store):
    coach, _ = _session_for(store, "coach")
    create_exercise(store, coach, "Squat", "weightlifting")
    create_exercise(store, coach, "Burpee", "conditioning")
    assert [e.name for e in list_exercises(store)] == ["Burpee", "Squat"]


def test_create_exercise_blank_fields_become_none(store):
    coach, _ = _session_for(store, "coach")
    new_id = create_exercise(store, coach, "Row", "cardio", "", "", "")
    [exercise] = list_exercises(store)
    assert exercise.id == new_id
    assert exercise.movement_type is None
    assert exercise.description is None
    assert exercise.demo_video_url is None
    assert exercise.muscle_groups == []


def test_create_exercise_keeps_given_fields(store):
    admin, _ = _session_for(store, "admin")
    create_exercise(store, admin, "Snatch", "weightlifting", "Olympic", "Fast", "clip.mp4")
    [exercise] = list_exercises(store)
    assert (exercise.movement_type, exercise.description, exercise.demo_video_url) == (
        "Olympic",
        "Fast",
        "clip.mp4",
    )


def test_create_exercise_rejects_athlete(store):
    athlete, _ = _session_for(store, "athlete")
    with pytest.raises(ServerError, match="Insufficient permissions"):
        create_exercise(store, athlete, "Row", "cardio")
    assert list_exercises(store) == []


def test_create_exercise_requires_sign_in(store):
    with pytest.raises(ServerError, match="Unauthorized"):
        create_exercise(store, {}, "Row", "cardio")


def test_update_exercise_changes_fields(store):
    coach, _ = _session_for(store, "coach")
    new_id = create_exercise(store, coach, "Row", "cardio", "Machine")
    update_exercise(store, coach, new_id, "Bike", "conditioning", "", "Easy", "")
    [exercise] = list_exercises(store)
    assert exercise.name == "Bike"
    assert exercise.category == "conditioning"
    assert exercise.movement_type is None
    assert exercise.description == "Easy"


def test_update_exercise_rejects_bad_id(store):
    coach, _ = _session_for(store, "coach")
    with pytest.raises(ServerError):
        update_exercise(store, coach, "not-a-uuid", "Bike", "cardio")


def test_delete_exercise(store):
    coach, _ = _session_for(store, "coach")
    new_id = create_exercise(store, coach, "Row", "cardio")
    delete_exercise(store, coach, new_id)
    assert list_exercises(store) == []


def test_delete_exercise_rejects_athlete(store):
    coach, _ = _session_for(store, "coach")
    athlete, _ = _session_for(store, "athlete")
    new_id = create_exercise(store, coach, "Row", "cardio")
    with pytest.raises(ServerError, match="Insufficient permissions"):
        delete_exercise(store, athlete, new_id)
    assert len(list_exercises(store)) == 1


def test_filter_exercises():
    items = [
        Exercise(id="1", name="Row", category="cardio"),
        Exercise(id="2", name="Squat", category="weightlifting"),
        Exercise(id="3", name="Yoga flow", category="yoga"),
    ]
    assert filter_exercises(items, []) == items
    assert [e.id for e in filter_exercises(items, ["cardio", "yoga"])] == ["1", "3"]
    assert filter_exercises(items, ["sports"]) == []


@pytest.mark.parametrize(
    "role, expected",
    [(UserRole.ATHLETE, False), (UserRole.COACH, True), (UserRole.ADMIN, True)],
)
def test_is_coach(role, expected):
    assert is_coach(AuthUser(id="x", display_name="A B", role=role)) is expected


def test_is_coach_anonymous():
    assert is_coach(None) is False


def test_list_all_users_admin_only(store):
    admin, admin_id = _session_for(store, "admin")
    coach, coach_id = _session_for(store, "coach")
    assert [u.id for u in list_all_users(store, admin)] == [admin_id, coach_id]
    with pytest.raises(ServerError, match="Insufficient permissions"):
        list_all_users(store, coach)


def test_change_user_role(store):
    admin, _ = _session_for(store, "admin")
    _, athlete_id = _session_for(store, "athlete")
    change_user_role(store, admin, athlete_id, "coach")
    assert store.get_user_by_id(athlete_id).role is UserRole.COACH


def test_change_user_role_rejects_unknown_role(store):
    admin, _ = _session_for(store, "admin")
    _, athlete_id = _session_for(store, "athlete")
    with pytest.raises(ServerError, match="Invalid role"):
        change_user_role(store, admin, athlete_id, "owner")
    assert store.get_user_by_id(athlete_id).role is UserRole.ATHLETE


def test_change_user_role_rejects_bad_id(store):
    admin, _ = _session_for(store, "admin")
    with pytest.raises(ServerError):
        change_user_role(store, admin, "nope", "coach")


def test_change_user_role_requires_admin(store):
    coach, _ = _session_for(store, "coach")
    with pytest.raises(ServerError, match="Insufficient permissions"):
        change_user_role(store, coach, str(uuid.uuid4()), "coach")


def test_role_action():
    admin = AuthUser(id="a", display_name="Ad Min", role=UserRole.ADMIN)
    coach = AuthUser(id="c", display_name="Co Ach", role=UserRole.COACH)
    athlete = AuthUser(id="t", display_name="Ath Lete", role=UserRole.ATHLETE)
    assert role_action(admin) is None
    demote = role_action(coach)
    assert (demote.label, demote.new_role) == ("Demote", UserRole.ATHLETE)
    promote = role_action(athlete)
    assert (promote.label, promote.new_role) == ("Make Coach", UserRole.COACH)
    assert promote.css_class == "role-btn--promote"