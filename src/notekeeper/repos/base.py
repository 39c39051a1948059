"""Defines the API for storing and querying a collection of notes.

The most important class is :class:`Repo`.
"""

from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timedelta, timezone
import threading
from typing import Iterator, List, Optional, Tuple, Type

import shortuuid

from notekeeper.conf import RepoConf
from notekeeper.log import get_logger
from notekeeper.models import Note, NoteQuery, NoteQueryIsh, NoteStats, DEFAULT_CATEGORY, random_color


logger = get_logger(__name__)


class ValidationError(ValueError):
    """Raised when a note's title or content is not acceptable, e.g. both are empty."""
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PersistenceError(Exception):
    """Raised when a change could not be committed to (or data could not be read from) storage.

    When this is raised by a method that changes notes, the change has been rolled back, so the repo is still
    usable and the call can be retried.
    """
    def __init__(self, message: str, cause: BaseException = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class Repo:
    """Base class for repos, which are responsible for storing, querying, and changing a collection of notes.

    Every method that changes notes commits the change to storage before returning. If that fails, the change
    is rolled back and :exc:`PersistenceError` is raised. Methods that look up a note by id report a missing note
    by returning False (or None), never by raising.

    All access to storage is serialized by a lock, so a single instance can be shared between threads.
    Readers always see either the state before a change or the state after it has been committed.

    Subclasses implement storage through the underscore-prefixed methods such as :meth:`_insert` and
    :meth:`_commit`; the base class takes care of validation, timestamps, locking and logging.

    Call :meth:`close` when done with an instance, or use it as a context manager.

    .. attribute:: conf
       :type: notekeeper.conf.RepoConf
    """

    storage_errors: Tuple[Type[BaseException], ...] = ()
    """Exception types raised by the storage layer that should be reported as :exc:`PersistenceError`."""

    def __init__(self, conf: RepoConf):
        self.conf = conf
        self._lock = threading.RLock()
        self._last_timestamp = None

    def create(self, title: str, content: str, category: Optional[str] = DEFAULT_CATEGORY) -> Note:
        """Creates, saves and returns a new note.

        Leading and trailing whitespace is removed from the title and content. The note gets a new id,
        a random color, and identical creation and update timestamps.
        A category of None means :data:`notekeeper.models.DEFAULT_CATEGORY`.

        Raises :exc:`ValidationError` if the title and content are unacceptable (see :class:`RepoConf`).
        """
        title, content = self._validate(title, content)
        if category is None:
            category = DEFAULT_CATEGORY
        with self._mutation():
            now = self._timestamp()
            note = Note(id=shortuuid.uuid(),
                        title=title,
                        content=content,
                        category=category,
                        color_hex=random_color(),
                        is_favorite=False,
                        created_at=now,
                        updated_at=now)
            self._insert(note)
        logger.info('note_created', note_id=note.id, title=note.title, category=note.category)
        return note

    def get(self, note_id: str) -> Optional[Note]:
        """Returns the note with the given id, or None if there is none."""
        with self._reading():
            return self._load(note_id)

    def query(self, query: NoteQueryIsh = NoteQuery()) -> List[Note]:
        """Returns all notes matching the query, sorted as the query specifies.

        The result is a snapshot: later changes to the repo are not reflected in it.
        """
        query = NoteQuery.parse(query)
        with self._reading():
            candidates = self._select(query)
        return query.apply_sorting(query.apply_filtering(candidates))

    def get_all(self) -> List[Note]:
        """Returns every note, most recently updated first."""
        return self.query(NoteQuery())

    def get_by_category(self, category: str) -> List[Note]:
        """Returns the notes whose category is exactly ``category`` (case-sensitive), most recently updated first."""
        return self.query(NoteQuery(category=category))

    def search(self, text: str) -> List[Note]:
        """Returns the notes whose title or content contains ``text``, ignoring case and diacritics.

        Empty text matches every note. Results are most recently updated first.
        """
        return self.query(NoteQuery(text=text))

    def get_favorites(self) -> List[Note]:
        """Returns the notes marked as favorites, most recently updated first."""
        return self.query(NoteQuery(favorites_only=True))

    def update(self, note_id: str, title: str, content: str, category: Optional[str] = None) -> bool:
        """Replaces the title and content (and the category, if given) of a note.

        Whitespace is trimmed as in :meth:`create`, and the note's update timestamp is refreshed.
        Returns False, changing nothing, if there is no note with the given id.

        Raises :exc:`ValidationError` if the title and content are unacceptable.
        """
        with self._lock:
            with self._reading():
                exists = self._load(note_id) is not None
            if not exists:
                logger.debug('note_not_found', note_id=note_id, operation='update')
                return False
            title, content = self._validate(title, content)
            with self._mutation():
                note = self._load(note_id)
                changes = {'title': title, 'content': content, 'updated_at': self._timestamp()}
                if category is not None:
                    changes['category'] = category
                self._replace(replace(note, **changes))
        logger.info('note_updated', note_id=note_id, title=title)
        return True

    def toggle_favorite(self, note_id: str) -> bool:
        """Flips whether the note is a favorite and refreshes its update timestamp.

        Returns False, changing nothing, if there is no note with the given id.
        """
        with self._mutation():
            note = self._load(note_id)
            if not note:
                logger.debug('note_not_found', note_id=note_id, operation='toggle_favorite')
                return False
            note = replace(note, is_favorite=not note.is_favorite, updated_at=self._timestamp())
            self._replace(note)
        logger.info('favorite_toggled', note_id=note_id, is_favorite=note.is_favorite)
        return True

    def delete(self, note_id: str) -> bool:
        """Permanently removes a note. Returns False if there was no note with the given id."""
        with self._mutation():
            removed = self._remove(note_id)
        if removed:
            logger.info('note_deleted', note_id=note_id)
        else:
            logger.debug('note_not_found', note_id=note_id, operation='delete')
        return removed

    def delete_all(self) -> int:
        """Permanently removes every note. Returns the number of notes removed."""
        with self._mutation():
            count = self._remove_all()
        logger.info('notes_deleted', count=count)
        return count

    def statistics(self) -> NoteStats:
        """Returns counts of all notes, favorites, and notes per category.

        This is computed fresh on every call.
        """
        return NoteStats.of(self.get_all())

    def flush(self) -> None:
        """Ensures everything is written to storage.

        Every change is already committed when the method making it returns, so this is only a safety net
        for callers that want to be sure before the process is suspended or exits.

        Raises :exc:`PersistenceError` if writing fails.
        """
        with self._lock:
            try:
                self._flush()
            except self.storage_errors as e:
                logger.error('flush_failed', error=str(e))
                raise PersistenceError(f'Failed to save notes: {e}', e) from e

    def close(self) -> None:
        """Flushes and releases any resources associated with the repo. Should be called when you're done with
        an instance."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _validate(self, title: str, content: str) -> Tuple[str, str]:
        title = (title or '').strip()
        content = (content or '').strip()
        if self.conf.require_content and not (title or content):
            raise ValidationError('Note must have either a title or content')
        if self.conf.max_title_length is not None and len(title) > self.conf.max_title_length:
            raise ValidationError(f'Title must be {self.conf.max_title_length} characters or less')
        if self.conf.max_content_length is not None and len(content) > self.conf.max_content_length:
            raise ValidationError(f'Content must be {self.conf.max_content_length:,} characters or less')
        return title, content

    def _timestamp(self) -> datetime:
        """Returns the current UTC time, but always later than any timestamp this repo has handed out or loaded.

        This keeps update timestamps strictly increasing even if the clock is coarse or stands still.
        """
        now = datetime.now(timezone.utc)
        if self._last_timestamp and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now

    def _observe_timestamp(self, timestamp: Optional[datetime]) -> None:
        """Subclasses call this for timestamps loaded from storage, so that new timestamps sort after them."""
        if timestamp and (self._last_timestamp is None or timestamp > self._last_timestamp):
            self._last_timestamp = timestamp

    @contextmanager
    def _reading(self) -> Iterator[None]:
        with self._lock:
            try:
                yield
            except self.storage_errors as e:
                logger.error('read_failed', error=str(e))
                raise PersistenceError(f'Failed to read notes: {e}', e) from e

    @contextmanager
    def _mutation(self) -> Iterator[None]:
        with self._lock:
            self._begin()
            try:
                yield
                self._commit()
            except self.storage_errors as e:
                self._rollback()
                logger.error('commit_failed', error=str(e))
                raise PersistenceError(f'Failed to save notes: {e}', e) from e
            except BaseException:
                self._rollback()
                raise

    def _begin(self) -> None:
        """Called (with the lock held) before a change is applied."""
        pass

    def _commit(self) -> None:
        """Makes the changes applied since :meth:`_begin` durable."""
        raise NotImplementedError()

    def _rollback(self) -> None:
        """Discards the changes applied since :meth:`_begin`. Must not raise."""
        raise NotImplementedError()

    def _flush(self) -> None:
        pass

    def _load(self, note_id: str) -> Optional[Note]:
        raise NotImplementedError()

    def _select(self, query: NoteQuery) -> List[Note]:
        """Returns candidate notes for the query, in insertion order.

        Implementations may pre-filter using the query, but the base class applies the full filtering and
        sorting to whatever is returned.
        """
        raise NotImplementedError()

    def _insert(self, note: Note) -> None:
        raise NotImplementedError()

    def _replace(self, note: Note) -> None:
        raise NotImplementedError()

    def _remove(self, note_id: str) -> bool:
        raise NotImplementedError()

    def _remove_all(self) -> int:
        raise NotImplementedError()
