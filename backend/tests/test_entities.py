"""Tests for client and workout lifecycle."""

import re
from datetime import datetime, timezone

import pytest

from app.core.errors import EmptyUpdateError, NotFoundError, StoreError, TableNotFoundError
from app.models.client import ClientPatch
from app.models.workout import Exercise, WorkoutPatch, WorkoutSet
from app.services.entities import EntityService
from app.services.mapping import CLIENT_HEADERS, WORKOUT_HEADERS
from app.services.store.memory import InMemoryStore

CLIENT_ID_PATTERN = re.compile(
    r"^client-[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$"
)


class FailingStore(InMemoryStore):
    """Store whose reads fail like a dropped connection."""

    async def read_all(self, name):
        raise StoreError("values_get failed for sheet Clients: connection reset")


class TestSetup:
    """Table creation and headers."""

    def test_initialize_creates_tables_with_headers(self, store, service, run):
        assert run(store.read_all("Clients")) == [CLIENT_HEADERS]
        assert run(store.read_all("Workouts")) == [WORKOUT_HEADERS]

    def test_setup_runs_once_per_service(self, store, service, run):
        run(service.get_all_clients())
        run(service.get_all_clients())

        assert store.calls.count(("add_sheet", "Clients")) == 1
        assert store.calls.count(("update_range", "Clients")) == 1

    def test_removed_table_is_set_up_again(self, store, service, run):
        del store.tables["Clients"]

        with pytest.raises(TableNotFoundError):
            run(service.get_all_clients())
        assert run(service.get_all_clients()) == []

    def test_create_after_table_removed_sets_it_up_again(self, store, service, run):
        run(service.create_client(name="Ann"))
        del store.tables["Clients"]

        with pytest.raises(TableNotFoundError):
            run(service.create_client(name="Bob"))
        client = run(service.create_client(name="Cid"))

        assert run(service.get_all_clients()) == [client]
        assert run(store.read_all("Clients"))[0] == CLIENT_HEADERS

    def test_workout_writes_recover_after_table_removed(self, store, service, bench_press, run):
        del store.tables["Workouts"]

        with pytest.raises(TableNotFoundError):
            run(service.delete_workout("workout-missing"))
        workout = run(service.create_workout("client-1", "2024-01-15", [bench_press]))

        assert run(service.get_workouts_by_client_id("client-1")) == [workout]

    def test_missing_workouts_table_during_cascade_keeps_clients_ready(self, store, service, run):
        client = run(service.create_client(name="Ann"))
        del store.tables["Workouts"]

        with pytest.raises(TableNotFoundError):
            run(service.delete_client(client.client_id, cascade=True))

        assert store.calls.count(("add_sheet", "Clients")) == 1
        run(service.delete_client(client.client_id, cascade=True))
        assert run(service.get_all_clients()) == []


class TestClients:
    """Client operations."""

    def test_create_client_defaults(self, service, run):
        client = run(service.create_client(name="Ann"))

        assert CLIENT_ID_PATTERN.match(client.client_id)
        assert client.email == ""
        assert client.phone == ""
        assert client.notes == ""
        assert client.created_at == "2024-01-15T10:00:00.000Z"

    def test_created_at_is_a_past_timestamp(self, store, run):
        service = EntityService(store)

        client = run(service.create_client(name="Ann"))

        created = datetime.fromisoformat(client.created_at.replace("Z", "+00:00"))
        assert created <= datetime.now(timezone.utc)

    def test_created_client_is_listed(self, service, run):
        client = run(service.create_client(name="Ann", email="ann@example.com"))

        assert run(service.get_all_clients()) == [client]
        assert run(service.get_client(client.client_id)) == client

    def test_partial_update_preserves_other_fields(self, service, run):
        client = run(service.create_client(
            name="Ann", email="ann@example.com", phone="5551234567", notes="old"
        ))

        updated = run(service.update_client(client.client_id, ClientPatch(notes="x")))

        stored = run(service.get_client(client.client_id))
        assert updated == stored
        assert stored.notes == "x"
        assert stored.name == "Ann"
        assert stored.email == "ann@example.com"
        assert stored.phone == "5551234567"
        assert stored.created_at == client.created_at

    def test_update_never_changes_id_or_created_at(self, service, run):
        client = run(service.create_client(name="Ann"))

        run(service.update_client(
            client.client_id,
            ClientPatch(name="Anna", client_id="client-hijack", created_at="1999-01-01"),
        ))

        stored = run(service.get_all_clients())[0]
        assert stored.client_id == client.client_id
        assert stored.created_at == client.created_at
        assert stored.name == "Anna"

    def test_update_rewrites_only_the_client_row(self, service, run):
        first = run(service.create_client(name="Ann"))
        second = run(service.create_client(name="Bob"))

        run(service.update_client(second.client_id, ClientPatch(name="Robert")))

        names = [c.name for c in run(service.get_all_clients())]
        assert names == ["Ann", "Robert"]
        assert run(service.get_client(first.client_id)) == first

    def test_update_missing_client_is_not_found(self, service, run):
        run(service.create_client(name="Ann"))

        with pytest.raises(NotFoundError) as exc_info:
            run(service.update_client("nonexistent", ClientPatch(name="X")))

        assert exc_info.value.code == "not_found"
        assert exc_info.value.entity == "Client"

    def test_store_failure_is_not_not_found(self, run):
        service = EntityService(FailingStore())
        run(service.initialize())

        with pytest.raises(StoreError) as exc_info:
            run(service.update_client("nonexistent", ClientPatch(name="X")))

        assert not isinstance(exc_info.value, NotFoundError)
        assert exc_info.value.code == "store_error"

    def test_delete_client(self, service, run):
        client = run(service.create_client(name="Ann"))

        run(service.delete_client(client.client_id))

        assert run(service.get_all_clients()) == []
        with pytest.raises(NotFoundError):
            run(service.delete_client(client.client_id))

    def test_delete_keeps_workouts_without_cascade(self, service, bench_press, run):
        client = run(service.create_client(name="Ann"))
        run(service.create_workout(client.client_id, "2024-01-15", [bench_press]))

        run(service.delete_client(client.client_id))

        assert len(run(service.get_workouts_by_client_id(client.client_id))) == 1

    def test_cascade_delete_removes_workouts(self, service, bench_press, run):
        client = run(service.create_client(name="Ann"))
        other = run(service.create_client(name="Bob"))
        run(service.create_workout(client.client_id, "2024-01-15", [bench_press]))
        run(service.create_workout(other.client_id, "2024-01-15", [bench_press]))
        run(service.create_workout(client.client_id, "2024-01-17", [bench_press]))

        run(service.delete_client(client.client_id, cascade=True))

        assert run(service.get_workouts_by_client_id(client.client_id)) == []
        assert len(run(service.get_workouts_by_client_id(other.client_id))) == 1
        assert [c.name for c in run(service.get_all_clients())] == ["Bob"]

    def test_cascade_delete_without_workouts(self, service, run):
        client = run(service.create_client(name="Ann"))

        run(service.delete_client(client.client_id, cascade=True))

        assert run(service.get_all_clients()) == []


class TestWorkouts:
    """Workout operations."""

    def test_create_workout_stores_one_row_per_set(self, store, service, bench_press, run):
        workout = run(service.create_workout("client-1", "2024-01-15", [bench_press]))

        rows = run(store.read_all("Workouts"))[1:]
        assert len(rows) == 2
        assert [row[4] for row in rows] == ["1", "2"]
        assert [row[7] for row in rows] == ["675", "700"]

        workouts = run(service.get_workouts_by_client_id("client-1"))
        assert workouts == [workout]
        assert [(s.reps, s.weight) for s in workouts[0].exercises[0].sets] == [(5, 135), (5, 140)]

    def test_create_workout_canonicalizes_exercise_names(self, service, run):
        workout = run(service.create_workout(
            "client-1",
            "2024-01-15",
            [Exercise(exercise_name="  bench   PRESS", sets=[WorkoutSet(reps=5, weight=100)])],
        ))

        assert workout.exercises[0].exercise_name == "Bench Press"
        stored = run(service.get_workouts_by_client_id("client-1"))[0]
        assert stored.exercises[0].exercise_name == "Bench Press"

    def test_create_workout_defaults_date_to_today(self, service, bench_press, run):
        workout = run(service.create_workout("client-1", exercises=[bench_press]))

        assert workout.date == "2024-01-15"
        assert workout.workout_id.startswith("workout-")

    def test_workout_without_sets_writes_nothing(self, store, service, run):
        workout = run(service.create_workout("client-1", "2024-01-15", []))

        assert workout.exercises == []
        assert run(store.read_all("Workouts")) == [WORKOUT_HEADERS]

    def test_workouts_filtered_by_client(self, service, bench_press, run):
        run(service.create_workout("client-1", "2024-01-15", [bench_press]))
        run(service.create_workout("client-2", "2024-01-15", [bench_press]))

        assert len(run(service.get_workouts_by_client_id("client-1"))) == 1
        assert run(service.get_workouts_by_client_id("client-3")) == []

    def test_update_grows_set_count_in_place(self, store, service, bench_press, run):
        first = run(service.create_workout("client-1", "2024-01-15", [bench_press]))
        second = run(service.create_workout("client-1", "2024-01-16", [bench_press]))
        sets = [WorkoutSet(reps=5, weight=w) for w in (135, 140, 145, 150)]

        run(service.update_workout(
            first.workout_id,
            WorkoutPatch(exercises=[Exercise(exercise_name="bench press", sets=sets)]),
        ))

        rows = run(store.read_all("Workouts"))[1:]
        assert [row[0] for row in rows] == [first.workout_id] * 4 + [second.workout_id] * 2
        workouts = run(service.get_workouts_by_client_id("client-1"))
        assert [s.weight for s in workouts[0].exercises[0].sets] == [135, 140, 145, 150]
        assert workouts[0].exercises[0].exercise_name == "Bench Press"
        assert workouts[1] == second

    def test_update_shrinks_set_count(self, store, service, bench_press, run):
        workout = run(service.create_workout("client-1", "2024-01-15", [bench_press]))

        run(service.update_workout(
            workout.workout_id,
            WorkoutPatch(exercises=[Exercise("Squat", [WorkoutSet(reps=3, weight=225)])]),
        ))

        rows = run(store.read_all("Workouts"))
        assert len(rows) == 2
        assert rows[1][3] == "Squat"

    def test_bracketed_exercise_name_survives_notes_update(self, service, run):
        workout = run(service.create_workout(
            "client-1",
            "2024-01-15",
            [Exercise(exercise_name="[superset] curl", sets=[WorkoutSet(reps=12, weight=25)])],
            notes="leg day",
        ))

        stored = run(service.get_workouts_by_client_id("client-1"))[0]
        assert stored == workout
        assert stored.exercises[0].exercise_name == "[superset] Curl"

        updated = run(service.update_workout(workout.workout_id, WorkoutPatch(notes="arm day")))

        assert updated.notes == "arm day"
        assert updated.created_at == workout.created_at
        assert updated.exercises == workout.exercises
        assert run(service.get_workouts_by_client_id("client-1")) == [updated]

    def test_update_keeps_unpatched_fields(self, service, bench_press, run):
        workout = run(service.create_workout(
            "client-1", "2024-01-15", [bench_press], notes="Felt strong"
        ))

        updated = run(service.update_workout(
            workout.workout_id,
            WorkoutPatch(date="2024-01-20", workout_id="workout-hijack", created_at="1999"),
        ))

        assert updated.workout_id == workout.workout_id
        assert updated.created_at == workout.created_at
        assert updated.date == "2024-01-20"
        assert updated.notes == "Felt strong"
        assert updated.exercises == workout.exercises
        assert run(service.get_workouts_by_client_id("client-1")) == [updated]

    def test_update_with_no_exercises_is_rejected(self, store, service, bench_press, run):
        workout = run(service.create_workout("client-1", "2024-01-15", [bench_press]))
        before = run(store.read_all("Workouts"))

        with pytest.raises(EmptyUpdateError) as exc_info:
            run(service.update_workout(workout.workout_id, WorkoutPatch(exercises=[])))

        assert exc_info.value.code == "empty_update"
        assert run(store.read_all("Workouts")) == before

    def test_update_missing_workout_is_not_found(self, service, run):
        with pytest.raises(NotFoundError):
            run(service.update_workout("workout-missing", WorkoutPatch(notes="x")))

    def test_delete_workout_removes_all_rows(self, service, bench_press, run):
        keep = run(service.create_workout("client-1", "2024-01-14", [bench_press]))
        drop = run(service.create_workout("client-1", "2024-01-15", [bench_press]))

        run(service.delete_workout(drop.workout_id))

        assert run(service.get_workouts_by_client_id("client-1")) == [keep]
        with pytest.raises(NotFoundError):
            run(service.delete_workout(drop.workout_id))
