"""Provides the :class:`MemoryRepo` class."""

from typing import Dict, List, Optional

from notekeeper.conf import RepoConf
from notekeeper.models import Note, NoteQuery
from notekeeper.repos.base import Repo


class MemoryRepo(Repo):
    """Keeps notes in a dict in memory, without any persistence.

    Useful for tests, and as the basis for :class:`notekeeper.repos.yamlfile.YamlFileRepo`, which adds
    persistence by overriding :meth:`_commit`.

    .. attribute:: conf
       :type: notekeeper.conf.RepoConf
    """
    def __init__(self, conf: RepoConf):
        super().__init__(conf)
        self._notes: Dict[str, Note] = {}
        self._snapshot: Optional[Dict[str, Note]] = None
        self._dirty = False

    def _begin(self) -> None:
        self._snapshot = dict(self._notes)
        self._dirty = False

    def _commit(self) -> None:
        self._snapshot = None
        self._dirty = False

    def _rollback(self) -> None:
        if self._snapshot is not None:
            self._notes = self._snapshot
        self._snapshot = None
        self._dirty = False

    def _load(self, note_id: str) -> Optional[Note]:
        return self._notes.get(note_id)

    def _select(self, query: NoteQuery) -> List[Note]:
        return list(self._notes.values())

    def _insert(self, note: Note) -> None:
        if note.id in self._notes:
            raise ValueError(f'Duplicate note id: {note.id}')
        self._notes[note.id] = note
        self._dirty = True

    def _replace(self, note: Note) -> None:
        self._notes[note.id] = note
        self._dirty = True

    def _remove(self, note_id: str) -> bool:
        if note_id not in self._notes:
            return False
        del self._notes[note_id]
        self._dirty = True
        return True

    def _remove_all(self) -> int:
        count = len(self._notes)
        self._notes.clear()
        self._dirty = self._dirty or count > 0
        return count
