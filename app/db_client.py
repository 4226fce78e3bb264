"""
Database client for the Poultry Growth Advisor.

Provides SQLAlchemy-based storage for growth stages, processing runs and
expansion opportunities. Writes are last-write-wins upserts keyed by id.
"""

import json
from datetime import date, datetime
from typing import List, Optional, Dict, Any
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import create_engine, text, Engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from growth.config import get_settings
from growth.cuts import Cut, ProcessingRun
from growth.expansion import ExpansionOpportunity
from growth.stages import GrowthStage, Indicator, Recommendation, Stage


SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS growth_stage (
        stage_id VARCHAR(64) PRIMARY KEY,
        level VARCHAR(32) NOT NULL,
        started_at VARCHAR(32) NOT NULL,
        capital_available FLOAT NOT NULL,
        last_evaluated_at VARCHAR(32) NOT NULL,
        indicators TEXT NOT NULL,
        recommendations TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS processing_run (
        run_id VARCHAR(64) PRIMARY KEY,
        processed_at VARCHAR(32) NOT NULL,
        total_weight_g FLOAT NOT NULL,
        total_cost FLOAT NOT NULL,
        lot_number VARCHAR(64),
        processed_by VARCHAR(128),
        processing_minutes FLOAT,
        cuts TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS expansion_opportunity (
        opportunity_id VARCHAR(64) PRIMARY KEY,
        status VARCHAR(32) NOT NULL,
        created_at VARCHAR(32) NOT NULL,
        payload TEXT NOT NULL
    )
    """,
]


def _as_datetime(value: Any) -> datetime:
    """Promote dates to midnight datetimes so range bounds compare as ISO strings."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    raise ValueError(f"Expected date or datetime, got {type(value).__name__}")


def _iso(value: Any) -> str:
    # Fixed precision keeps stored timestamps lexically ordered
    return _as_datetime(value).isoformat(timespec="microseconds")


class GrowthDB:
    """
    Growth store database client.

    Provides connection management and save/find helpers for growth records.
    """

    def __init__(self, dsn: Optional[str] = None):
        """
        Initialize database client and create tables if missing.

        Args:
            dsn: Database connection string. If None, uses settings from config.
        """
        if dsn is None:
            settings = get_settings()
            dsn = settings.database_url

        url = make_url(dsn)
        if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
            # In-memory SQLite lives inside one connection; share it
            self.engine: Engine = create_engine(
                dsn, echo=False, poolclass=StaticPool,
                connect_args={"check_same_thread": False}
            )
        else:
            self.engine = create_engine(dsn, echo=False)
        self.SessionLocal = sessionmaker(bind=self.engine)

        self.init_schema()
        logger.debug(f"Initialized GrowthDB with engine: {self.engine.url}")

    @contextmanager
    def session(self):
        """Context manager for database sessions."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def init_schema(self) -> None:
        """Create growth tables if they do not exist."""
        try:
            with self.engine.connect() as conn:
                for statement in SCHEMA:
                    conn.execute(text(statement))
                conn.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to create growth schema: {e}")
            raise

    # ── Growth stages ─────────────────────────────────────────────

    def save_stage(self, stage: GrowthStage) -> GrowthStage:
        """
        Insert or replace a growth stage.

        Args:
            stage: Stage to persist

        Returns:
            GrowthStage: The same stage
        """
        params = {
            'stage_id': stage.id,
            'level': stage.level.value,
            'started_at': _iso(stage.started_at),
            'capital_available': stage.capital_available,
            'last_evaluated_at': _iso(stage.last_evaluated_at),
            'indicators': json.dumps([i.to_dict() for i in stage.indicators]),
            'recommendations': json.dumps([r.to_dict() for r in stage.recommendations]),
        }

        try:
            with self.session() as session:
                session.execute(text("""
                    INSERT INTO growth_stage (stage_id, level, started_at, capital_available,
                                              last_evaluated_at, indicators, recommendations)
                    VALUES (:stage_id, :level, :started_at, :capital_available,
                            :last_evaluated_at, :indicators, :recommendations)
                    ON CONFLICT (stage_id) DO UPDATE SET
                        level = excluded.level,
                        started_at = excluded.started_at,
                        capital_available = excluded.capital_available,
                        last_evaluated_at = excluded.last_evaluated_at,
                        indicators = excluded.indicators,
                        recommendations = excluded.recommendations
                """), params)

            logger.debug(f"Saved stage {stage.id} at {stage.level.value}")
            return stage

        except SQLAlchemyError as e:
            logger.error(f"Failed to save stage {stage.id}: {e}")
            raise

    def _query_stages(self, where: str = "", params: Optional[Dict[str, Any]] = None,
                      limit: Optional[int] = None) -> List[GrowthStage]:
        query = f"""
            SELECT stage_id, level, started_at, capital_available,
                   last_evaluated_at, indicators, recommendations
            FROM growth_stage
            {where}
            ORDER BY started_at DESC, stage_id DESC
        """
        if limit:
            query += f" LIMIT {int(limit)}"

        try:
            with self.engine.connect() as conn:
                rows = conn.execute(text(query), params or {}).fetchall()
        except SQLAlchemyError as e:
            logger.error(f"Failed to query growth stages: {e}")
            raise

        return [
            GrowthStage(
                id=row[0],
                level=Stage(row[1]),
                started_at=datetime.fromisoformat(row[2]),
                capital_available=row[3],
                last_evaluated_at=datetime.fromisoformat(row[4]),
                indicators=[Indicator.from_dict(i) for i in json.loads(row[5])],
                recommendations=[Recommendation.from_dict(r) for r in json.loads(row[6])],
            )
            for row in rows
        ]

    def find_stage(self, stage_id: str) -> Optional[GrowthStage]:
        stages = self._query_stages("WHERE stage_id = :stage_id", {'stage_id': stage_id})
        return stages[0] if stages else None

    def current_stage(self) -> Optional[GrowthStage]:
        """Return the stage with the most recent start, or None."""
        stages = self._query_stages(limit=1)
        return stages[0] if stages else None

    def stages_by_level(self, level: Stage) -> List[GrowthStage]:
        return self._query_stages("WHERE level = :level", {'level': level.value})

    def stage_history(self) -> List[GrowthStage]:
        """All stages, newest first."""
        return self._query_stages()

    # ── Processing runs ───────────────────────────────────────────

    def save_run(self, run: ProcessingRun) -> ProcessingRun:
        """
        Insert or replace a processing run.

        Args:
            run: Processing run to persist

        Returns:
            ProcessingRun: The same run
        """
        params = {
            'run_id': run.id,
            'processed_at': _iso(run.processed_at),
            'total_weight_g': run.total_weight_g,
            'total_cost': run.total_cost,
            'lot_number': run.lot_number,
            'processed_by': run.processed_by,
            'processing_minutes': run.processing_minutes,
            'cuts': json.dumps([cut.to_dict() for cut in run.cuts]),
        }

        try:
            with self.session() as session:
                session.execute(text("""
                    INSERT INTO processing_run (run_id, processed_at, total_weight_g, total_cost,
                                                lot_number, processed_by, processing_minutes, cuts)
                    VALUES (:run_id, :processed_at, :total_weight_g, :total_cost,
                            :lot_number, :processed_by, :processing_minutes, :cuts)
                    ON CONFLICT (run_id) DO UPDATE SET
                        processed_at = excluded.processed_at,
                        total_weight_g = excluded.total_weight_g,
                        total_cost = excluded.total_cost,
                        lot_number = excluded.lot_number,
                        processed_by = excluded.processed_by,
                        processing_minutes = excluded.processing_minutes,
                        cuts = excluded.cuts
                """), params)

            logger.debug(f"Saved processing run {run.id} ({len(run.cuts)} cuts)")
            return run

        except SQLAlchemyError as e:
            logger.error(f"Failed to save processing run {run.id}: {e}")
            raise

    def _query_runs(self, where: str = "", params: Optional[Dict[str, Any]] = None) -> List[ProcessingRun]:
        query = f"""
            SELECT run_id, processed_at, total_weight_g, total_cost,
                   lot_number, processed_by, processing_minutes, cuts
            FROM processing_run
            {where}
            ORDER BY processed_at, run_id
        """

        try:
            with self.engine.connect() as conn:
                rows = conn.execute(text(query), params or {}).fetchall()
        except SQLAlchemyError as e:
            logger.error(f"Failed to query processing runs: {e}")
            raise

        return [
            ProcessingRun(
                id=row[0],
                processed_at=datetime.fromisoformat(row[1]),
                total_weight_g=row[2],
                total_cost=row[3],
                lot_number=row[4],
                processed_by=row[5],
                processing_minutes=row[6],
                cuts=[Cut.from_dict(c) for c in json.loads(row[7])],
            )
            for row in rows
        ]

    def find_run(self, run_id: str) -> Optional[ProcessingRun]:
        runs = self._query_runs("WHERE run_id = :run_id", {'run_id': run_id})
        return runs[0] if runs else None

    def all_runs(self) -> List[ProcessingRun]:
        return self._query_runs()

    def runs_between(self, start: datetime, end: datetime) -> List[ProcessingRun]:
        """
        Processing runs within a time window.

        Args:
            start: Start (inclusive); dates mean midnight
            end: End (inclusive); dates mean midnight

        Returns:
            List[ProcessingRun]: Runs ordered by processing time
        """
        return self._query_runs(
            "WHERE processed_at >= :start AND processed_at <= :end",
            {'start': _iso(start), 'end': _iso(end)}
        )

    def runs_by_lot(self, lot_number: str) -> List[ProcessingRun]:
        return self._query_runs("WHERE lot_number = :lot_number", {'lot_number': lot_number})

    # ── Expansion opportunities ───────────────────────────────────

    def save_opportunity(self, opportunity: ExpansionOpportunity) -> ExpansionOpportunity:
        params = {
            'opportunity_id': opportunity.id,
            'status': opportunity.status.value,
            'created_at': _iso(opportunity.created_at),
            'payload': json.dumps(opportunity.to_dict()),
        }

        try:
            with self.session() as session:
                session.execute(text("""
                    INSERT INTO expansion_opportunity (opportunity_id, status, created_at, payload)
                    VALUES (:opportunity_id, :status, :created_at, :payload)
                    ON CONFLICT (opportunity_id) DO UPDATE SET
                        status = excluded.status,
                        created_at = excluded.created_at,
                        payload = excluded.payload
                """), params)

            logger.debug(f"Saved expansion opportunity {opportunity.id}")
            return opportunity

        except SQLAlchemyError as e:
            logger.error(f"Failed to save expansion opportunity {opportunity.id}: {e}")
            raise

    def _query_opportunities(self, where: str = "",
                             params: Optional[Dict[str, Any]] = None) -> List[ExpansionOpportunity]:
        query = f"""
            SELECT payload FROM expansion_opportunity
            {where}
            ORDER BY created_at, opportunity_id
        """

        try:
            with self.engine.connect() as conn:
                rows = conn.execute(text(query), params or {}).fetchall()
        except SQLAlchemyError as e:
            logger.error(f"Failed to query expansion opportunities: {e}")
            raise

        return [ExpansionOpportunity.from_dict(json.loads(row[0])) for row in rows]

    def find_opportunity(self, opportunity_id: str) -> Optional[ExpansionOpportunity]:
        found = self._query_opportunities(
            "WHERE opportunity_id = :opportunity_id", {'opportunity_id': opportunity_id}
        )
        return found[0] if found else None

    def all_opportunities(self) -> List[ExpansionOpportunity]:
        return self._query_opportunities()

    def health_check(self) -> Dict[str, Any]:
        """
        Perform database health check.

        Returns:
            dict: Health check results
        """
        try:
            with self.engine.connect() as conn:
                # Test basic connectivity
                conn.execute(text("SELECT 1")).fetchone()

                stats = conn.execute(text("""
                    SELECT
                        (SELECT COUNT(*) FROM growth_stage) as stage_count,
                        (SELECT COUNT(*) FROM processing_run) as run_count,
                        (SELECT COUNT(*) FROM expansion_opportunity) as opportunity_count
                """)).fetchone()

                return {
                    'status': 'healthy',
                    'database_connected': True,
                    'stage_count': stats[0],
                    'run_count': stats[1],
                    'opportunity_count': stats[2],
                    'timestamp': datetime.now().isoformat()
                }

        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return {
                'status': 'unhealthy',
                'database_connected': False,
                'error': str(e),
                'timestamp': datetime.now().isoformat()
            }
