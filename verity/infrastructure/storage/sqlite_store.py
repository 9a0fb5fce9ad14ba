"""SQLite implementation of the analysis store."""

import asyncio
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar

from pydantic import TypeAdapter, ValidationError

from ...domain.errors import StoreError
from ...domain.models.analysis import AnalysisResult
from ...domain.models.claim import Claim
from ...domain.models.evidence import Evidence

logger = logging.getLogger(__name__)

T = TypeVar("T")

_EVIDENCE_LIST = TypeAdapter(List[Evidence])

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS analysis_results (
        id TEXT PRIMARY KEY,
        document_hash TEXT NOT NULL,
        overall_score REAL NOT NULL,
        total_claims INTEGER NOT NULL,
        verified_claims INTEGER NOT NULL,
        mixed_claims INTEGER NOT NULL,
        unsupported_claims INTEGER NOT NULL,
        processing_time_ms INTEGER NOT NULL,
        status TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_analysis_hash ON analysis_results(document_hash)",
    """
    CREATE TABLE IF NOT EXISTS claims (
        id TEXT PRIMARY KEY,
        analysis_id TEXT NOT NULL,
        text TEXT NOT NULL,
        type TEXT NOT NULL,
        sentence_index INTEGER NOT NULL,
        status TEXT NOT NULL,
        confidence REAL NOT NULL,
        source_type TEXT,
        evidences TEXT NOT NULL,
        reasoning TEXT,
        created_at TEXT NOT NULL,
        FOREIGN KEY (analysis_id) REFERENCES analysis_results(id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_claims_analysis ON claims(analysis_id)",
)

_ANALYSIS_COLUMNS = (
    "id, document_hash, overall_score, total_claims, verified_claims, mixed_claims, "
    "unsupported_claims, processing_time_ms, status, created_at"
)
_CLAIM_COLUMNS = (
    "id, text, type, sentence_index, status, confidence, source_type, evidences, reasoning, created_at"
)


class SQLiteStore:
    """Analysis store persisted to a SQLite database file.

    Every operation opens its own connection and runs in a worker thread,
    so the event loop never blocks on disk I/O.
    """

    def __init__(self, path: str = "./data/verity.db"):
        """Initialize the store and create the schema.

        Args:
            path: Database file path

        Raises:
            StoreError: If the database cannot be opened or migrated
        """
        self._path = path
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        try:
            with self.get_connection() as conn:
                for statement in SCHEMA:
                    conn.execute(statement)
        except sqlite3.Error as e:
            raise StoreError(f"Failed to initialize database {path}: {e}") from e
        logger.info(f"🗄️ SQLite store ready at {path}")

    @property
    def path(self) -> str:
        return self._path

    @contextmanager
    def get_connection(self):
        """Get a database connection that commits on success."""
        conn = sqlite3.connect(self._path)
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    async def _run(self, operation: Callable[[sqlite3.Connection], T]) -> T:
        def call() -> T:
            with self.get_connection() as conn:
                return operation(conn)

        try:
            return await asyncio.to_thread(call)
        except sqlite3.Error as e:
            raise StoreError(f"Database operation failed: {e}") from e
        except ValidationError as e:
            raise StoreError(f"Stored record is invalid: {e}") from e

    async def get_analysis_by_hash(self, document_hash: str) -> Optional[AnalysisResult]:
        def query(conn: sqlite3.Connection) -> Optional[AnalysisResult]:
            row = conn.execute(
                f"SELECT {_ANALYSIS_COLUMNS} FROM analysis_results "
                "WHERE document_hash = ? ORDER BY created_at DESC LIMIT 1",
                (document_hash,),
            ).fetchone()
            return self._row_to_analysis(row) if row else None

        return await self._run(query)

    async def get_analysis(self, analysis_id: str) -> Optional[AnalysisResult]:
        def query(conn: sqlite3.Connection) -> Optional[AnalysisResult]:
            row = conn.execute(
                f"SELECT {_ANALYSIS_COLUMNS} FROM analysis_results WHERE id = ?",
                (analysis_id,),
            ).fetchone()
            return self._row_to_analysis(row) if row else None

        return await self._run(query)

    async def save_analysis(self, result: AnalysisResult) -> None:
        def insert(conn: sqlite3.Connection) -> None:
            conn.execute(
                f"INSERT INTO analysis_results ({_ANALYSIS_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    result.id,
                    result.document_hash,
                    result.overall_score,
                    result.total_claims,
                    result.verified_claims,
                    result.mixed_claims,
                    result.unsupported_claims,
                    result.processing_time_ms,
                    result.status,
                    result.created_at.isoformat(),
                ),
            )

        await self._run(insert)

    async def save_claims(self, analysis_id: str, claims: List[Claim]) -> None:
        rows = [
            (
                claim.id,
                analysis_id,
                claim.text,
                claim.type.value,
                claim.sentence_index,
                claim.status.value,
                claim.confidence,
                claim.source_type.value if claim.source_type else None,
                _EVIDENCE_LIST.dump_json(claim.evidences).decode("utf-8"),
                claim.reasoning,
                claim.created_at.isoformat(),
            )
            for claim in claims
        ]

        def insert(conn: sqlite3.Connection) -> None:
            conn.executemany(
                "INSERT INTO claims (id, analysis_id, text, type, sentence_index, status, confidence, "
                "source_type, evidences, reasoning, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                rows,
            )

        await self._run(insert)

    async def get_claims_by_analysis(self, analysis_id: str) -> List[Claim]:
        def query(conn: sqlite3.Connection) -> List[Claim]:
            rows = conn.execute(
                f"SELECT {_CLAIM_COLUMNS} FROM claims WHERE analysis_id = ? ORDER BY sentence_index",
                (analysis_id,),
            ).fetchall()
            return [self._row_to_claim(row) for row in rows]

        return await self._run(query)

    async def list_analyses(self, limit: int = 20, offset: int = 0) -> List[AnalysisResult]:
        def query(conn: sqlite3.Connection) -> List[AnalysisResult]:
            rows = conn.execute(
                f"SELECT {_ANALYSIS_COLUMNS} FROM analysis_results ORDER BY created_at DESC LIMIT ? OFFSET ?",
                (limit, offset),
            ).fetchall()
            return [self._row_to_analysis(row) for row in rows]

        return await self._run(query)

    async def close(self) -> None:
        """Nothing to release; connections are per operation."""

    @staticmethod
    def _row_to_analysis(row: sqlite3.Row) -> AnalysisResult:
        return AnalysisResult.model_validate(dict(row))

    @staticmethod
    def _row_to_claim(row: sqlite3.Row) -> Claim:
        data: Dict[str, Any] = dict(row)
        data["evidences"] = _EVIDENCE_LIST.validate_json(data["evidences"] or "[]")
        data["reasoning"] = data["reasoning"] or ""
        return Claim.model_validate(data)
