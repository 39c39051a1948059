"""Provides the :class:`YamlFileRepo` class."""

import os
import os.path
from tempfile import mkstemp
from typing import List

import yaml

from notekeeper.conf import YamlFileRepoConf
from notekeeper.log import get_logger
from notekeeper.models import Note
from notekeeper.repos.base import PersistenceError
from notekeeper.repos.memory import MemoryRepo


logger = get_logger(__name__)


class YamlFileRepo(MemoryRepo):
    """Stores all notes in a single YAML file.

    The file is read once when the instance is created. Each committed change rewrites the whole file: the new
    contents are written to a temporary file in the same directory, which then replaces the original, so the file
    on disk always holds either the old or the new collection.

    The file looks like this:

    .. code-block:: yaml

       notes:
       - id: 6Fe3vTdKDgxXr7Wb7B5mMk
         title: Shopping
         content: buy milk
         category: Home
         color_hex: '#96CEB4'
         is_favorite: false
         created_at: '2020-01-02T03:04:05+00:00'
         updated_at: '2020-01-02T03:04:05+00:00'

    .. attribute:: conf
       :type: notekeeper.conf.YamlFileRepoConf
    """

    storage_errors = (OSError, yaml.YAMLError)

    def __init__(self, conf: YamlFileRepoConf):
        if not conf.path:
            raise ValueError('`path` must be set in YamlFileRepoConf.')
        conf = conf.standardize()
        super().__init__(conf)
        try:
            for note in self._read():
                self._notes[note.id] = note
                self._observe_timestamp(note.updated_at)
        except self.storage_errors as e:
            raise PersistenceError(f'Failed to read notes from {conf.path}: {e}', e) from e
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f'Malformed notes file {conf.path}: {e}', e) from e
        logger.debug('notes_loaded', path=conf.path, count=len(self._notes))

    def _read(self) -> List[Note]:
        if not os.path.exists(self.conf.path):
            return []
        with open(self.conf.path, 'r', encoding='utf-8') as file:
            data = yaml.safe_load(file)
        if not data:
            return []
        return [Note.from_json(item) for item in data.get('notes') or []]

    def _write(self) -> None:
        doc = {'notes': [note.as_json() for note in self._notes.values()]}
        dirname = os.path.dirname(self.conf.path)
        os.makedirs(dirname, exist_ok=True)
        fd, tmppath = mkstemp(prefix='.notekeeper-', suffix='.yaml.tmp', dir=dirname)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as file:
                yaml.safe_dump(doc, file, allow_unicode=True, sort_keys=False)
                file.flush()
                os.fsync(file.fileno())
            os.replace(tmppath, self.conf.path)
        except BaseException:
            if os.path.exists(tmppath):
                os.remove(tmppath)
            raise
        logger.debug('notes_written', path=self.conf.path, count=len(self._notes))

    def _commit(self) -> None:
        if self._dirty:
            self._write()
        super()._commit()

    def _flush(self) -> None:
        # commits already wrote any changes; only restore a file that went missing
        if self._notes and not os.path.exists(self.conf.path):
            self._write()

    def close(self) -> None:
        self.flush()
