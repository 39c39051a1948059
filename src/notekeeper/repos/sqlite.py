"""Provides the :class:`SqliteRepo` class."""

from collections import namedtuple
from datetime import datetime
import sqlite3
from typing import List, Optional

from notekeeper.conf import SqliteRepoConf
from notekeeper.log import get_logger
from notekeeper.models import Note, NoteQuery
from notekeeper.repos.base import Repo, PersistenceError


logger = get_logger(__name__)


_SQL_CREATE_SCHEMA = """
CREATE TABLE IF NOT EXISTS notes (
    seq INTEGER PRIMARY KEY,
    id TEXT NOT NULL,
    title TEXT NOT NULL,
    content TEXT NOT NULL,
    category TEXT NOT NULL,
    color_hex TEXT NOT NULL,
    is_favorite BOOLEAN NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE UNIQUE INDEX IF NOT EXISTS notes_index_id ON notes (id);
CREATE INDEX IF NOT EXISTS notes_index_category ON notes (category);
"""

_NOTE_COLUMNS = 'id, title, content, category, color_hex, is_favorite, created_at, updated_at'

_SQL_SELECT = f'SELECT {_NOTE_COLUMNS} FROM notes'
_SqlNoteRow = namedtuple('SqlNoteRow', ['id', 'title', 'content', 'category', 'color_hex', 'is_favorite',
                                        'created_at', 'updated_at'])

_SQL_INSERT_NOTE = f'INSERT INTO notes ({_NOTE_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)'

_SQL_UPDATE_NOTE = ('UPDATE notes SET title = ?, content = ?, category = ?, color_hex = ?, is_favorite = ?,'
                    ' created_at = ?, updated_at = ?'
                    ' WHERE id = ?')
_SqlUpdateNoteRow = namedtuple('SqlUpdateNoteRow', ['title', 'content', 'category', 'color_hex', 'is_favorite',
                                                    'created_at', 'updated_at', 'id'])


def _timestamp_text(value: datetime) -> str:
    # fixed width so the text sorts the same way as the datetime
    return value.isoformat(timespec='microseconds')


def _row_to_note(row: _SqlNoteRow) -> Note:
    return Note(id=row.id,
                title=row.title,
                content=row.content,
                category=row.category,
                color_hex=row.color_hex,
                is_favorite=bool(row.is_favorite),
                created_at=datetime.fromisoformat(row.created_at),
                updated_at=datetime.fromisoformat(row.updated_at))


class SqliteRepo(Repo):
    """Stores notes in an SQLite database.

    The connection is opened when the instance is created and stays open until :meth:`close` is called.
    Every change is committed to the database before the method making it returns.

    Filtering by category and favorite status is done by the database; text search and sorting are done in
    Python, since they need to ignore case and diacritics the same way for every repo implementation.

    Remember to call :meth:`close` when done with the instance, or use the instance as a context manager.

    .. attribute:: conf
       :type: notekeeper.conf.SqliteRepoConf
    """

    storage_errors = (sqlite3.Error,)

    def __init__(self, conf: SqliteRepoConf):
        super().__init__(conf)
        if not conf.path:
            raise ValueError('`path` must be set in SqliteRepoConf.')
        self.connection = None
        try:
            self._connect()
        except sqlite3.Error as e:
            raise PersistenceError(f'Failed to open database {conf.path}: {e}', e) from e

    def _connect(self):
        # access is serialized by self._lock, so the connection may be shared between threads
        self.connection = sqlite3.connect(self.conf.path, check_same_thread=False)
        self.connection.executescript(_SQL_CREATE_SCHEMA)
        cursor = self.connection.cursor()
        cursor.execute('SELECT MAX(updated_at) FROM notes')
        latest = cursor.fetchone()[0]
        if latest:
            self._observe_timestamp(datetime.fromisoformat(latest))
        logger.debug('database_opened', path=self.conf.path)

    def _commit(self) -> None:
        self.connection.commit()

    def _rollback(self) -> None:
        try:
            self.connection.rollback()
        except sqlite3.Error as e:
            logger.error('rollback_failed', error=str(e))

    def _flush(self) -> None:
        self.connection.commit()

    def _load(self, note_id: str) -> Optional[Note]:
        cursor = self.connection.cursor()
        cursor.execute(f'{_SQL_SELECT} WHERE id = ?', (note_id,))
        row = cursor.fetchone()
        return _row_to_note(_SqlNoteRow(*row)) if row else None

    def _select(self, query: NoteQuery) -> List[Note]:
        clauses = []
        params = []
        if query.category is not None:
            clauses.append('category = ?')
            params.append(query.category)
        if query.favorites_only:
            clauses.append('is_favorite')
        sql = _SQL_SELECT
        if clauses:
            sql += ' WHERE ' + ' AND '.join(clauses)
        sql += ' ORDER BY seq'
        cursor = self.connection.cursor()
        cursor.execute(sql, params)
        return [_row_to_note(_SqlNoteRow(*r)) for r in cursor.fetchall()]

    def _insert(self, note: Note) -> None:
        row = _SqlNoteRow(id=note.id,
                          title=note.title,
                          content=note.content,
                          category=note.category,
                          color_hex=note.color_hex,
                          is_favorite=note.is_favorite,
                          created_at=_timestamp_text(note.created_at),
                          updated_at=_timestamp_text(note.updated_at))
        self.connection.execute(_SQL_INSERT_NOTE, row)

    def _replace(self, note: Note) -> None:
        row = _SqlUpdateNoteRow(id=note.id,
                                title=note.title,
                                content=note.content,
                                category=note.category,
                                color_hex=note.color_hex,
                                is_favorite=note.is_favorite,
                                created_at=_timestamp_text(note.created_at),
                                updated_at=_timestamp_text(note.updated_at))
        self.connection.execute(_SQL_UPDATE_NOTE, row)

    def _remove(self, note_id: str) -> bool:
        cursor = self.connection.execute('DELETE FROM notes WHERE id = ?', (note_id,))
        return cursor.rowcount > 0

    def _remove_all(self) -> int:
        cursor = self.connection.cursor()
        cursor.execute('SELECT COUNT(*) FROM notes')
        count = cursor.fetchone()[0]
        cursor.execute('DELETE FROM notes')
        return count

    def close(self):
        if self.connection is None:
            return
        self.flush()
        self.connection.close()
        self.connection = None
