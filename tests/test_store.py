import uuid
from datetime import date, timedelta

import pytest

from gritwit.auth import UserRole
from gritwit.models import ExerciseSetInput
from gritwit.store import RowNotFound, Store, StoreError

TODAY = date(2024, 5, 15)


@pytest.fixture
def store():
    with Store(":memory:", hidden_emails=("hidden@example.com",)) as s:
        yield s


@pytest.fixture
def user_id(store):
    return store.create_user("Ada Lovelace", email="ada@example.com")


def test_user_round_trip(store):
    uid = store.create_user(
        "Grace", email="grace@example.com", avatar_url="/a.png", role=UserRole.COACH, gender="female"
    )
    user = store.get_user_by_id(uid)
    assert user.id == uid
    assert user.display_name == "Grace"
    assert user.avatar_url == "/a.png"
    assert user.role is UserRole.COACH
    assert user.gender == "female"


def test_get_missing_user_raises(store):
    with pytest.raises(RowNotFound):
        store.get_user_by_id(uuid.uuid4())


def test_list_users_in_creation_order(store):
    ids = [store.create_user(name) for name in ("Zed", "Amy", "Max")]
    assert [u.id for u in store.list_users()] == ids


def test_duplicate_email_rejected(store, user_id):
    with pytest.raises(StoreError):
        store.create_user("Other", email="ada@example.com")


def test_update_user_role(store, user_id):
    store.update_user_role(user_id, "admin")
    assert store.get_user_by_id(user_id).role is UserRole.ADMIN
    with pytest.raises(StoreError):
        store.update_user_role(user_id, "overlord")
    assert store.get_user_by_id(user_id).role is UserRole.ADMIN


def test_update_user_profile(store, user_id):
    store.update_user_profile(user_id, "Ada B", email=None, phone="ada-phone", gender="female")
    user = store.get_user_by_id(user_id)
    assert user.display_name == "Ada B"
    assert user.email is None
    assert user.identifier() == "ada-phone"


def test_exercises_listed_by_name(store, user_id):
    for name in ("Snatch", "Burpee", "Deadlift"):
        store.create_exercise(name, "weightlifting", created_by=user_id)
    names = [e.name for e in store.list_exercises()]
    assert names == sorted(names)
    assert store.count_exercises() == len(names)


def test_exercise_update_and_delete(store):
    ex_id = store.create_exercise("Row", "cardio", None, ["back", "legs"], "Erg", None)
    assert store.list_exercises()[0].muscle_groups == ["back", "legs"]
    store.update_exercise(ex_id, "Rowing", "conditioning", "Machine", None, "/v.mp4")
    (ex,) = store.list_exercises()
    assert (ex.name, ex.category, ex.movement_type, ex.description, ex.demo_video_url) == (
        "Rowing", "conditioning", "Machine", None, "/v.mp4"
    )
    store.delete_exercise(ex_id)
    assert store.list_exercises() == []


def test_create_workout_log_bad_date(store, user_id):
    with pytest.raises(StoreError, match="Invalid date"):
        store.create_workout_log(user_id, None, "15/05/2024")
    assert store.count_workouts(user_id) == 0


def test_list_workout_logs_newest_first_with_limit(store, user_id):
    for offset in (3, 0, 1):
        store.create_workout_log(user_id, None, TODAY - timedelta(days=offset), None, True)
    logs = store.list_workout_logs(user_id, 2)
    assert len(logs) == 2
    assert logs[0].workout_date == TODAY.isoformat()
    assert logs[0].workout_date > logs[1].workout_date
    assert logs[0].is_rx is True


def test_list_workouts_by_date(store, user_id):
    first = store.create_workout_log(user_id, None, TODAY, "a")
    second = store.create_workout_log(user_id, None, TODAY, "b")
    store.create_workout_log(user_id, None, TODAY - timedelta(days=1))
    assert [w.id for w in store.list_workouts_by_date(user_id, TODAY)] == [second, first]


def test_streak_counts_consecutive_days(store, user_id):
    days = [TODAY - timedelta(days=n) for n in range(3)]
    for day in days:
        store.create_workout_log(user_id, None, day)
    store.create_workout_log(user_id, None, TODAY - timedelta(days=5))
    assert store.streak_days(user_id, TODAY) == len(days)


def test_streak_zero_without_recent_workout(store, user_id):
    store.create_workout_log(user_id, None, TODAY - timedelta(days=4))
    assert store.streak_days(user_id, TODAY) == 0


def test_leaderboard_hides_listed_emails(store):
    visible = store.create_user("Visible", email="visible@example.com")
    hidden = store.create_user("Hidden", email="hidden@example.com")
    old = store.create_user("Old", email="old@example.com")
    store.create_workout_log(visible, None, TODAY)
    store.create_workout_log(visible, None, TODAY - timedelta(days=1))
    store.create_workout_log(hidden, None, TODAY)
    store.create_workout_log(old, None, TODAY - timedelta(days=10))

    public = store.leaderboard(10, "viewer@example.com", False, TODAY)
    assert [e.display_name for e in public] == ["Visible"]
    assert public[0].workout_count == 2

    admin = store.leaderboard(10, "viewer@example.com", True, TODAY)
    assert [e.display_name for e in admin] == ["Visible", "Hidden"]

    self_view = store.leaderboard(10, "hidden@example.com", False, TODAY)
    assert {e.display_name for e in self_view} == {"Visible", "Hidden"}
    assert len(store.leaderboard(1, "viewer@example.com", True, TODAY)) == 1


def test_custom_workout_round_trip(store, user_id):
    ex_id = store.create_exercise("Squat", "powerlifting")
    sets = [
        ExerciseSetInput(exercise_id=ex_id, set_number=2, reps=5, weight_kg=100.0),
        ExerciseSetInput(exercise_id=ex_id, set_number=1, reps=5, weight_kg=90.0),
    ]
    log_id = store.submit_custom_workout(user_id, TODAY, "heavy", sets)
    (log,) = store.list_workout_logs(user_id, 10)
    assert log.id == log_id and log.is_rx is True and log.notes == "heavy"
    rows = store.list_workout_exercises(log_id)
    assert [r.set_number for r in rows] == [1, 2]
    assert {r.exercise_name for r in rows} == {"Squat"}


def test_custom_workout_bad_exercise_rolls_back(store, user_id):
    sets = [ExerciseSetInput(exercise_id="nope", set_number=1)]
    with pytest.raises(StoreError, match="Invalid exercise_id"):
        store.submit_custom_workout(user_id, TODAY, None, sets)
    assert store.count_workouts(user_id) == 0


def test_update_custom_workout(store, user_id):
    ex_id = store.create_exercise("Press", "weightlifting")
    log_id = store.submit_custom_workout(
        user_id, TODAY, None, [ExerciseSetInput(exercise_id=ex_id, set_number=1)]
    )
    other = store.create_user("Other", email="other@example.com")
    with pytest.raises(RowNotFound):
        store.update_custom_workout(log_id, other, TODAY, "x", [])
    store.update_custom_workout(
        log_id, user_id, TODAY - timedelta(days=1), "edited",
        [ExerciseSetInput(exercise_id=ex_id, set_number=n) for n in (1, 2, 3)],
    )
    (log,) = store.list_workout_logs(user_id, 10)
    assert log.notes == "edited"
    assert log.workout_date == (TODAY - timedelta(days=1)).isoformat()
    assert len(store.list_workout_exercises(log_id)) == 3


def test_delete_workout_log(store, user_id):
    ex_id = store.create_exercise("Pull", "gymnastics")
    log_id = store.submit_custom_workout(
        user_id, TODAY, None, [ExerciseSetInput(exercise_id=ex_id, set_number=1)]
    )
    other = store.create_user("Other", email="other@example.com")
    with pytest.raises(RowNotFound):
        store.delete_workout_log(log_id, other)
    store.delete_workout_log(log_id, user_id)
    assert store.count_workouts(user_id) == 0
    assert store.list_workout_exercises(log_id) == []
    with pytest.raises(RowNotFound):
        store.delete_workout_log(log_id, user_id)


def test_closed_store_raises():
    store = Store(":memory:")
    store.close()
    with pytest.raises(StoreError):
        store.count_exercises()