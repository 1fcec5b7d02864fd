from typing import Any

import psycopg
from psycopg import sql
from psycopg.types.json import Jsonb

from app.database.connection import get_connection
from app.database.exceptions import PersistenceError
from app.database.models import JobStatus, ProofPageUpdate
from app.logging.logger import Log

_URL_COLUMNS = ("c_url", "m_url", "y_url", "k_url", "composite_url")


class ProofPagesRepository:
    """Writes plate results back to the proof_pages table.

    Only populated fields are written, so a missing plate URL never
    overwrites one stored by an earlier successful run.
    """

    def report(self, target_page_id: str, update: ProofPageUpdate) -> None:
        """Apply a partial update to the target page record.

        Raises:
            PersistenceError: if the database write fails.
        """
        assignments = self.build_assignments(update)
        query = sql.SQL("UPDATE proof_pages SET {} WHERE id = %s").format(
            sql.SQL(", ").join(
                sql.SQL("{} = %s").format(sql.Identifier(column)) for column, _ in assignments
            )
        )
        params = [value for _, value in assignments]
        params.append(target_page_id)

        try:
            with get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, params)
                    updated = cur.rowcount
                conn.commit()
        except psycopg.Error as exc:
            raise PersistenceError(
                f"Failed to update proof page {target_page_id}: {exc}"
            ) from exc

        if updated == 0:
            Log.warning(f"Proof page {target_page_id} not found, nothing updated")

    @staticmethod
    def build_assignments(update: ProofPageUpdate) -> list[tuple[str, Any]]:
        """Return (column, value) pairs for the populated fields of *update*."""
        assignments: list[tuple[str, Any]] = [("status", update.status)]
        for column in _URL_COLUMNS:
            value = getattr(update, column)
            if value:
                assignments.append((column, value))
        if update.spot_plates is not None:
            assignments.append(("spot_plates", Jsonb(update.spot_plates)))
        if update.error is not None:
            assignments.append(("error", update.error))
        elif update.status == JobStatus.DONE:
            assignments.append(("error", None))
        return assignments
