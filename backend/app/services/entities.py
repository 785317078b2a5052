"""
Entity Service - client and workout lifecycle on top of the tabular store.

Ids and timestamps are minted here at creation and never change afterwards.
Updates merge a patch over the stored record; workouts are rewritten as a
whole row group so their set count can grow or shrink.
"""
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Callable, Dict, List, Optional, Sequence

from app.core.errors import EmptyUpdateError, TableNotFoundError
from app.core.logging import get_logger
from app.models.client import Client, ClientPatch
from app.models.workout import Exercise, Workout, WorkoutPatch
from app.services.exercise_names import canonicalize_exercise_name
from app.services.mapping import (
    CLIENT_HEADERS,
    CLIENT_ID_COLUMN,
    CLIENTS_SHEET,
    WORKOUT_CLIENT_ID_COLUMN,
    WORKOUT_HEADERS,
    WORKOUT_ID_COLUMN,
    WORKOUTS_SHEET,
    client_to_row,
    row_to_client,
    rows_to_clients,
    rows_to_workouts,
    workout_to_rows,
)
from app.services.mutation import RowMutationEngine
from app.services.store.base import TabularStore

logger = get_logger(__name__)

TABLE_HEADERS: Dict[str, List[str]] = {
    CLIENTS_SHEET: CLIENT_HEADERS,
    WORKOUTS_SHEET: WORKOUT_HEADERS,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def canonical_exercises(exercises: Sequence[Exercise]) -> List[Exercise]:
    """Copy exercises with their names in canonical (storage) form."""
    return [
        Exercise(exercise_name=canonicalize_exercise_name(e.exercise_name), sets=list(e.sets))
        for e in exercises
    ]


class EntityService:
    """
    Client and workout operations.

    The store is injected and owned by the caller, which opens and closes it.
    """

    def __init__(self, store: TabularStore, now: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.engine = RowMutationEngine(store)
        self._now = now or _utcnow
        self._ready: set = set()

    # ========================================
    # Table setup
    # ========================================

    async def initialize(self) -> None:
        """Create both sheets and their header rows if needed."""
        for table in TABLE_HEADERS:
            await self._ensure_table(table)

    async def _ensure_table(self, table: str) -> None:
        if table in self._ready:
            return
        await self.store.ensure_sheet(table)
        await self.store.ensure_headers(table, TABLE_HEADERS[table])
        self._ready.add(table)

    @asynccontextmanager
    async def _using(self, table: str) -> AsyncIterator[None]:
        """
        Set up ``table`` if needed, then run the block against it.

        If the tab turns out to be missing, it is set up again on the next call.
        """
        await self._ensure_table(table)
        try:
            yield
        except TableNotFoundError as e:
            logger.warning("Sheet missing, setup will be redone", sheet=e.table)
            self._ready.discard(e.table)
            raise

    def _timestamp(self) -> str:
        """ISO-8601 UTC with milliseconds, e.g. 2024-01-15T10:00:00.000Z."""
        return self._now().isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def _today(self) -> str:
        return self._now().date().isoformat()

    # ========================================
    # Clients
    # ========================================

    async def create_client(
        self,
        name: str,
        email: str = "",
        phone: str = "",
        notes: str = "",
    ) -> Client:
        """Create a client with a new id and timestamp."""
        client = Client(
            client_id=f"client-{uuid.uuid4()}",
            name=name or "",
            email=email or "",
            phone=phone or "",
            notes=notes or "",
            created_at=self._timestamp(),
        )
        async with self._using(CLIENTS_SHEET):
            await self.store.append_rows(CLIENTS_SHEET, [client_to_row(client)])
        logger.info("Client created", client_id=client.client_id)
        return client

    async def get_all_clients(self) -> List[Client]:
        """Read every client."""
        async with self._using(CLIENTS_SHEET):
            rows = await self.store.read_all(CLIENTS_SHEET)
        return rows_to_clients(rows)

    async def get_client(self, client_id: str) -> Client:
        """
        Get one client.

        Raises:
            NotFoundError: If no client has this id
        """
        async with self._using(CLIENTS_SHEET):
            located = await self.engine.locate(
                CLIENTS_SHEET, "Client", client_id, CLIENT_ID_COLUMN, first_only=True
            )
        return row_to_client(located.rows[located.first])

    async def update_client(self, client_id: str, patch: ClientPatch) -> Client:
        """
        Merge ``patch`` into a client and rewrite its row.

        ``clientId`` and ``createdAt`` always keep their stored values.

        Raises:
            NotFoundError: If no client has this id
        """
        async with self._using(CLIENTS_SHEET):
            located = await self.engine.locate(
                CLIENTS_SHEET, "Client", client_id, CLIENT_ID_COLUMN, first_only=True
            )
            existing = row_to_client(located.rows[located.first])
            updated = patch.apply(existing)
            await self.engine.rewrite_row(CLIENTS_SHEET, located.first, client_to_row(updated))
        logger.info("Client updated", client_id=client_id, row_index=located.first)
        return updated

    async def delete_client(self, client_id: str, cascade: bool = False) -> None:
        """
        Delete a client, optionally with all of their workouts.

        Raises:
            NotFoundError: If no client has this id
        """
        async with self._using(CLIENTS_SHEET):
            located = await self.engine.locate(
                CLIENTS_SHEET, "Client", client_id, CLIENT_ID_COLUMN, first_only=True
            )
            if cascade:
                await self._delete_client_workouts(client_id)
            await self.engine.delete(CLIENTS_SHEET, [located.first])
        logger.info("Client deleted", client_id=client_id, cascade=cascade)

    async def _delete_client_workouts(self, client_id: str) -> int:
        """Delete every workout row of a client. No rows is not an error."""
        async with self._using(WORKOUTS_SHEET):
            deleted = await self.engine.delete_matching(
                WORKOUTS_SHEET, WORKOUT_CLIENT_ID_COLUMN, client_id
            )
        if deleted:
            logger.info("Client workouts deleted", client_id=client_id, rows=deleted)
        return deleted

    # ========================================
    # Workouts
    # ========================================

    async def create_workout(
        self,
        client_id: str,
        date: Optional[str] = None,
        exercises: Optional[Sequence[Exercise]] = None,
        notes: str = "",
    ) -> Workout:
        """
        Create a workout and append one row per set.

        ``date`` defaults to today (UTC). A workout without sets is returned
        but writes no rows.
        """
        workout = Workout(
            workout_id=f"workout-{uuid.uuid4()}",
            client_id=client_id,
            date=date or self._today(),
            exercises=canonical_exercises(exercises or []),
            notes=notes or "",
            created_at=self._timestamp(),
        )
        rows = workout_to_rows(workout)
        async with self._using(WORKOUTS_SHEET):
            if rows:
                await self.store.append_rows(WORKOUTS_SHEET, rows)
        logger.info("Workout created", workout_id=workout.workout_id, client_id=client_id, rows=len(rows))
        return workout

    async def get_workouts_by_client_id(self, client_id: str) -> List[Workout]:
        """Read every workout and keep the client's."""
        async with self._using(WORKOUTS_SHEET):
            rows = await self.store.read_all(WORKOUTS_SHEET)
        return [workout for workout in rows_to_workouts(rows) if workout.client_id == client_id]

    async def update_workout(self, workout_id: str, patch: WorkoutPatch) -> Workout:
        """
        Merge ``patch`` into a workout and replace its whole row group.

        Raises:
            NotFoundError: If no row has this workout id
            EmptyUpdateError: If the merged workout has no sets
        """
        async with self._using(WORKOUTS_SHEET):
            located = await self.engine.locate(
                WORKOUTS_SHEET, "Workout", workout_id, WORKOUT_ID_COLUMN
            )

            # Header placeholder so the mapper skips nothing of ours
            existing_workouts = rows_to_workouts([[]] + located.matching_rows())
            existing = existing_workouts[0] if existing_workouts else Workout(
                workout_id=workout_id, client_id="", date=""
            )

            if patch.exercises is not None:
                patch = WorkoutPatch(
                    client_id=patch.client_id,
                    date=patch.date,
                    exercises=canonical_exercises(patch.exercises),
                    notes=patch.notes,
                )
            updated = patch.apply(existing)
            rows = workout_to_rows(updated)
            if not rows:
                raise EmptyUpdateError(workout_id)

            await self.engine.replace_group(WORKOUTS_SHEET, located.indices, rows)
        logger.info(
            "Workout updated",
            workout_id=workout_id,
            old_rows=len(located.indices),
            new_rows=len(rows),
        )
        return updated

    async def delete_workout(self, workout_id: str) -> None:
        """
        Delete all rows of a workout.

        Raises:
            NotFoundError: If no row has this workout id
        """
        async with self._using(WORKOUTS_SHEET):
            located = await self.engine.locate(
                WORKOUTS_SHEET, "Workout", workout_id, WORKOUT_ID_COLUMN
            )
            await self.engine.delete(WORKOUTS_SHEET, located.indices)
        logger.info("Workout deleted", workout_id=workout_id, rows=len(located.indices))
