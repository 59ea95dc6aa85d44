"""Database connection and persistence operations for the pick'em pool."""

import json
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Generator, Optional

from loguru import logger

from pickem.errors import AlreadyResolvedError, GameNotFoundError, PickConflictError
from pickem.models.game import Game, GameResult, GameStatus
from pickem.models.pick import DraftOrder, Pick, SeasonScore

# Default database path
DEFAULT_DB_PATH = Path("data") / "pickem.db"
SCHEMA_PATH = Path(__file__).parent / "schema.sql"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class Database:
    """SQLite database wrapper for games, picks, results and standings.

    One instance may be shared across threads: the connection is opened
    with check_same_thread=False and every cursor or transaction holds
    the instance lock, so a transaction is never interleaved with another
    thread's writes.
    """

    def __init__(self, db_path: Optional[Path | str] = None):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file, or ":memory:".
                Defaults to data/pickem.db
        """
        self.db_path = Path(db_path) if db_path is not None else DEFAULT_DB_PATH
        if str(self.db_path) != ":memory:":
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection: Optional[sqlite3.Connection] = None
        self._transaction_depth = 0
        self._lock = threading.RLock()

    @property
    def connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._connection is None:
            self._connection = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._connection.row_factory = sqlite3.Row
            # Enable foreign keys
            self._connection.execute("PRAGMA foreign_keys = ON")
        return self._connection

    def close(self) -> None:
        """Close database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    @contextmanager
    def cursor(self) -> Generator[sqlite3.Cursor, None, None]:
        """Context manager for database cursor.

        Commits after each use unless an outer transaction() is open.
        """
        with self._lock:
            cur = self.connection.cursor()
            try:
                yield cur
                if self._transaction_depth == 0:
                    self.connection.commit()
            except Exception:
                if self._transaction_depth == 0:
                    self.connection.rollback()
                raise
            finally:
                cur.close()

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        """Group several writes into one commit, rolled back on error."""
        with self._lock:
            self._transaction_depth += 1
            try:
                yield
            except Exception:
                self._transaction_depth -= 1
                if self._transaction_depth == 0:
                    self.connection.rollback()
                raise
            else:
                self._transaction_depth -= 1
                if self._transaction_depth == 0:
                    self.connection.commit()

    def initialize(self) -> None:
        """Initialize database schema from schema.sql."""
        schema_sql = SCHEMA_PATH.read_text()
        with self.cursor() as cur:
            cur.executescript(schema_sql)

    def is_initialized(self) -> bool:
        """Check if database has been initialized with schema."""
        with self.cursor() as cur:
            cur.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name='picks'"
            )
            return cur.fetchone() is not None

    # -------------------------------------------------------------------------
    # Game operations
    # -------------------------------------------------------------------------

    @staticmethod
    def _row_to_game(row: sqlite3.Row) -> Game:
        return Game(
            id=row["game_id"],
            external_id=row["external_id"],
            opponent=row["opponent"],
            start_time=_parse_dt(row["start_time"]),
            is_home=bool(row["is_home"]),
            status=GameStatus(row["status"]),
            team_goals=row["team_goals"],
            opponent_goals=row["opponent_goals"],
            overtime=bool(row["overtime"]),
            shootout=bool(row["shootout"]),
            empty_net_goals=row["empty_net_goals"],
            resolved_at=_parse_dt(row["resolved_at"]),
        )

    def upsert_game(self, game: Game) -> None:
        """Insert a game, or update its schedule fields if not yet resolved.

        Args:
            game: Game to store
        """
        with self.cursor() as cur:
            cur.execute(
                """
                INSERT INTO games (
                    game_id, external_id, opponent, start_time, is_home, status,
                    team_goals, opponent_goals, overtime, shootout, empty_net_goals
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(game_id) DO UPDATE SET
                    external_id = excluded.external_id,
                    opponent = excluded.opponent,
                    start_time = excluded.start_time,
                    is_home = excluded.is_home,
                    status = excluded.status
                WHERE games.resolved_at IS NULL
                """,
                (
                    game.id,
                    game.external_id,
                    game.opponent,
                    _iso(game.start_time),
                    1 if game.is_home else 0,
                    game.status.value,
                    game.team_goals,
                    game.opponent_goals,
                    1 if game.overtime else 0,
                    1 if game.shootout else 0,
                    game.empty_net_goals,
                ),
            )

    def get_game(self, game_id: str) -> Optional[Game]:
        """Get a game by ID."""
        with self.cursor() as cur:
            cur.execute("SELECT * FROM games WHERE game_id = ?", (game_id,))
            row = cur.fetchone()
            return self._row_to_game(row) if row else None

    def list_games(self, status: Optional[GameStatus] = None) -> list[Game]:
        """List games ordered by start time."""
        with self.cursor() as cur:
            if status is not None:
                cur.execute(
                    "SELECT * FROM games WHERE status = ? ORDER BY start_time",
                    (status.value,),
                )
            else:
                cur.execute("SELECT * FROM games ORDER BY start_time")
            return [self._row_to_game(row) for row in cur.fetchall()]

    def update_game_status(self, game_id: str, status: GameStatus) -> None:
        """Change a game's status. Resolved games are frozen."""
        game = self.get_game(game_id)
        if game is None:
            raise GameNotFoundError(f"Game not found: {game_id}")
        if game.is_resolved:
            raise AlreadyResolvedError(f"Game {game_id} is resolved and frozen")
        with self.cursor() as cur:
            cur.execute(
                "UPDATE games SET status = ? WHERE game_id = ?",
                (status.value, game_id),
            )

    def finalize_game(self, game: Game) -> None:
        """Write final figures and the resolution timestamp."""
        with self.cursor() as cur:
            cur.execute(
                """
                UPDATE games SET
                    status = ?, team_goals = ?, opponent_goals = ?, overtime = ?,
                    shootout = ?, empty_net_goals = ?, resolved_at = ?
                WHERE game_id = ?
                """,
                (
                    game.status.value,
                    game.team_goals,
                    game.opponent_goals,
                    1 if game.overtime else 0,
                    1 if game.shootout else 0,
                    game.empty_net_goals,
                    _iso(game.resolved_at),
                    game.id,
                ),
            )

    # -------------------------------------------------------------------------
    # User operations
    # -------------------------------------------------------------------------

    def add_user(self, user_id: str, display_name: str = "") -> None:
        """Register a user in the canonical user set."""
        with self.cursor() as cur:
            cur.execute(
                """
                INSERT INTO users (user_id, display_name) VALUES (?, ?)
                ON CONFLICT(user_id) DO UPDATE SET display_name = excluded.display_name
                """,
                (user_id, display_name),
            )

    def get_user_ids(self) -> list[str]:
        """Get all known user IDs."""
        with self.cursor() as cur:
            cur.execute("SELECT user_id FROM users ORDER BY user_id")
            return [row["user_id"] for row in cur.fetchall()]

    # -------------------------------------------------------------------------
    # Pick operations
    # -------------------------------------------------------------------------

    @staticmethod
    def _row_to_pick(row: sqlite3.Row) -> Pick:
        return Pick(
            id=row["pick_id"],
            user_id=row["user_id"],
            league_id=row["league_id"],
            game_id=row["game_id"],
            player_id=row["player_id"],
            player_name=row["player_name"],
            points_earned=row["points_earned"],
            created_at=_parse_dt(row["created_at"]),
            locked_at=_parse_dt(row["locked_at"]),
        )

    def insert_pick(self, pick: Pick) -> Pick:
        """Insert a pick; the unique constraint makes check-and-insert atomic.

        Raises:
            PickConflictError: If a pick exists for (user, league, game)
        """
        try:
            with self.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO picks (
                        user_id, league_id, game_id, player_id, player_name,
                        points_earned, created_at, locked_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        pick.user_id,
                        pick.league_id,
                        pick.game_id,
                        pick.player_id,
                        pick.player_name,
                        pick.points_earned,
                        _iso(pick.created_at),
                        _iso(pick.locked_at),
                    ),
                )
                pick_id = cur.lastrowid
        except sqlite3.IntegrityError as e:
            if "UNIQUE" in str(e):
                raise PickConflictError(
                    f"Pick already exists for user {pick.user_id} in league "
                    f"{pick.league_id} for game {pick.game_id}"
                ) from e
            raise
        return pick.model_copy(update={"id": pick_id})

    def get_pick(self, pick_id: int) -> Optional[Pick]:
        """Get a pick by ID."""
        with self.cursor() as cur:
            cur.execute("SELECT * FROM picks WHERE pick_id = ?", (pick_id,))
            row = cur.fetchone()
            return self._row_to_pick(row) if row else None

    def find_pick(self, user_id: str, league_id: str, game_id: str) -> Optional[Pick]:
        """Get the pick for a (user, league, game) triple."""
        with self.cursor() as cur:
            cur.execute(
                "SELECT * FROM picks WHERE user_id = ? AND league_id = ? AND game_id = ?",
                (user_id, league_id, game_id),
            )
            row = cur.fetchone()
            return self._row_to_pick(row) if row else None

    def picks_for_game(self, game_id: str) -> list[Pick]:
        """Get all picks for a game."""
        with self.cursor() as cur:
            cur.execute(
                "SELECT * FROM picks WHERE game_id = ? ORDER BY pick_id", (game_id,)
            )
            return [self._row_to_pick(row) for row in cur.fetchall()]

    def all_picks(self, league_id: Optional[str] = None) -> list[Pick]:
        """Get all picks, optionally for one league."""
        with self.cursor() as cur:
            if league_id is not None:
                cur.execute(
                    "SELECT * FROM picks WHERE league_id = ? ORDER BY pick_id",
                    (league_id,),
                )
            else:
                cur.execute("SELECT * FROM picks ORDER BY pick_id")
            return [self._row_to_pick(row) for row in cur.fetchall()]

    def delete_pick(self, pick_id: int) -> None:
        with self.cursor() as cur:
            cur.execute("DELETE FROM picks WHERE pick_id = ?", (pick_id,))

    def lock_picks(self, game_id: str, locked_at: datetime) -> int:
        """Stamp locked_at on every unlocked pick of a game.

        Returns:
            Number of picks locked
        """
        with self.cursor() as cur:
            cur.execute(
                "UPDATE picks SET locked_at = ? WHERE game_id = ? AND locked_at IS NULL",
                (_iso(locked_at), game_id),
            )
            return cur.rowcount

    def set_pick_points(self, pick_id: int, points: int) -> None:
        with self.cursor() as cur:
            cur.execute(
                "UPDATE picks SET points_earned = ? WHERE pick_id = ?",
                (points, pick_id),
            )

    # -------------------------------------------------------------------------
    # Game result operations
    # -------------------------------------------------------------------------

    def insert_game_result(self, result: GameResult) -> None:
        """Append a game result to the history."""
        with self.cursor() as cur:
            cur.execute(
                "INSERT INTO game_results (game_id, result_json, completed_at) VALUES (?, ?, ?)",
                (result.game_id, result.model_dump_json(), _iso(result.completed_at)),
            )

    def has_game_result(self, game_id: str) -> bool:
        with self.cursor() as cur:
            cur.execute("SELECT 1 FROM game_results WHERE game_id = ? LIMIT 1", (game_id,))
            return cur.fetchone() is not None

    def latest_game_result(self, game_id: str) -> Optional[GameResult]:
        """Get the most recent result for a game."""
        with self.cursor() as cur:
            cur.execute(
                "SELECT result_json FROM game_results WHERE game_id = ? "
                "ORDER BY result_id DESC LIMIT 1",
                (game_id,),
            )
            row = cur.fetchone()
            return GameResult.model_validate_json(row["result_json"]) if row else None

    def game_results(self, game_id: Optional[str] = None) -> list[GameResult]:
        """Get the result history, oldest first."""
        with self.cursor() as cur:
            if game_id is not None:
                cur.execute(
                    "SELECT result_json FROM game_results WHERE game_id = ? ORDER BY result_id",
                    (game_id,),
                )
            else:
                cur.execute("SELECT result_json FROM game_results ORDER BY result_id")
            return [GameResult.model_validate_json(row["result_json"]) for row in cur.fetchall()]

    def resolved_game_ids(self) -> list[str]:
        with self.cursor() as cur:
            cur.execute("SELECT DISTINCT game_id FROM game_results ORDER BY game_id")
            return [row["game_id"] for row in cur.fetchall()]

    # -------------------------------------------------------------------------
    # Draft order operations
    # -------------------------------------------------------------------------

    def get_draft_order(self) -> Optional[DraftOrder]:
        """Get the stored draft order, or None if never set."""
        with self.cursor() as cur:
            cur.execute("SELECT user_ids, updated_at FROM draft_order WHERE id = 1")
            row = cur.fetchone()
            if row is None:
                return None
            return DraftOrder(
                user_ids=json.loads(row["user_ids"]),
                updated_at=_parse_dt(row["updated_at"]),
            )

    def save_draft_order(self, order: DraftOrder) -> None:
        """Replace the stored draft order."""
        with self.cursor() as cur:
            cur.execute(
                """
                INSERT INTO draft_order (id, user_ids, updated_at) VALUES (1, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    user_ids = excluded.user_ids,
                    updated_at = excluded.updated_at
                """,
                (json.dumps(order.user_ids), _iso(order.updated_at or datetime.now())),
            )

    # -------------------------------------------------------------------------
    # Season score operations
    # -------------------------------------------------------------------------

    def replace_season_scores(self, totals: dict[str, int]) -> None:
        """Overwrite all season totals with a freshly computed set."""
        with self.cursor() as cur:
            cur.execute("DELETE FROM season_scores")
            cur.executemany(
                "INSERT INTO season_scores (user_id, total_points) VALUES (?, ?)",
                sorted(totals.items()),
            )

    def get_season_scores(self) -> list[SeasonScore]:
        """Get season totals, highest first."""
        with self.cursor() as cur:
            cur.execute(
                "SELECT user_id, total_points FROM season_scores "
                "ORDER BY total_points DESC, user_id"
            )
            return [
                SeasonScore(user_id=row["user_id"], total_points=row["total_points"])
                for row in cur.fetchall()
            ]

    def get_season_start(self) -> Optional[datetime]:
        """Start of the current season, or None if never reset."""
        with self.cursor() as cur:
            cur.execute("SELECT started_at FROM season WHERE id = 1")
            row = cur.fetchone()
            return _parse_dt(row["started_at"]) if row else None

    def reset_season_scores(self, started_at: datetime) -> None:
        """Zero every season total and open a new season at started_at."""
        with self.cursor() as cur:
            cur.execute("UPDATE season_scores SET total_points = 0")
            cur.execute(
                """
                INSERT INTO season (id, started_at) VALUES (1, ?)
                ON CONFLICT(id) DO UPDATE SET started_at = excluded.started_at
                """,
                (_iso(started_at),),
            )
        logger.info(f"Season scores reset, new season from {started_at.isoformat()}")

    # -------------------------------------------------------------------------
    # Stats
    # -------------------------------------------------------------------------

    def get_database_stats(self) -> dict[str, Any]:
        """Get summary counts for status output."""
        with self.cursor() as cur:
            cur.execute("SELECT COUNT(*) as count FROM games")
            total_games = cur.fetchone()["count"]

            cur.execute("SELECT COUNT(*) as count FROM games WHERE resolved_at IS NOT NULL")
            resolved_games = cur.fetchone()["count"]

            cur.execute("SELECT COUNT(*) as count FROM picks")
            total_picks = cur.fetchone()["count"]

            cur.execute("SELECT COUNT(*) as count FROM users")
            total_users = cur.fetchone()["count"]

            return {
                "total_games": total_games,
                "resolved_games": resolved_games,
                "total_picks": total_picks,
                "total_users": total_users,
            }


def get_database(db_path: Optional[Path | str] = None) -> Database:
    """Open a database and make sure its schema exists.

    Args:
        db_path: Optional custom path for database

    Returns:
        Database instance
    """
    db = Database(db_path)
    if not db.is_initialized():
        db.initialize()
    return db
