"""Provides the main entry point for using the library, :class:`Notekeeper`"""

from __future__ import annotations
from typing import List

from notekeeper.conf import NotekeeperConf
from notekeeper.log import get_logger
from notekeeper.models import Note


logger = get_logger(__name__)


SAMPLE_NOTES = [
    ('Welcome to Notekeeper!',
     'Welcome to your notes.\n\n'
     'Key features:\n'
     '- Create and edit notes\n'
     '- Categories and favorites\n'
     '- Search\n'
     '- Persistent storage',
     'Welcome'),
    ('Understanding MVC Architecture',
     'MVC (Model-View-Controller) is a fundamental design pattern.\n\n'
     'MODEL: manages data and business logic, independent of the UI.\n'
     'VIEW: displays data and captures input.\n'
     'CONTROLLER: mediates between the model and the view.',
     'Education'),
    ('Storage Integration',
     'All data operations go through the repository:\n\n'
     '- Note: the record type\n'
     '- Repo: handles persistence\n'
     '- The CLI: displays data and accepts commands\n\n'
     'Data persists between runs, and every change is saved immediately.',
     'Technical'),
    ('Design System Features',
     'Every note gets a color from a fixed palette when it is created.\n\n'
     'Notes can be sorted by update time, creation time, title, or category.',
     'Design'),
]
"""(title, content, category) of the notes created by :meth:`Notekeeper.seed_samples`."""


class Notekeeper:
    """Main entry point for working programmatically with your notes.

    Generally, you should get an instance using the :meth:`Notekeeper.for_user` method. Call :meth:`close` when
    you're done with it, or else use it as a context manager; closing makes sure everything has been saved.

    The :attr:`repo` attribute, which is an instance of :class:`notekeeper.repos.base.Repo`, provides the
    operations for creating, querying and changing notes.

    .. attribute:: conf
       :type: notekeeper.conf.NotekeeperConf

       Typically loaded from the variable ``conf`` in the file ``~/.notekeeper.conf.py``

    .. attribute:: repo
       :type: notekeeper.repos.base.Repo

    Here's an example which marks every note in the "Work" category as a favorite:

    .. code-block:: python

       from notekeeper.api import Notekeeper
       with Notekeeper.for_user() as nk:
           for note in nk.repo.get_by_category('Work'):
               if not note.is_favorite:
                   nk.repo.toggle_favorite(note.id)
    """

    @staticmethod
    def for_user() -> Notekeeper:
        """Creates an instance using the user's ``~/.notekeeper.conf.py`` file.

        Raises :exc:`Exception` if it does not exist or does not define configuration.
        """
        return NotekeeperConf.for_user().instantiate()

    def __init__(self, conf: NotekeeperConf):
        self.conf = conf
        self.repo = conf.repo_conf.instantiate()
        if conf.seed_samples:
            self.seed_samples()

    def seed_samples(self) -> List[Note]:
        """Creates the :data:`SAMPLE_NOTES` if the repo has no notes at all.

        Returns the notes created, which is an empty list if the repo already had notes.
        """
        if self.repo.get_all():
            return []
        created = [self.repo.create(title, content, category) for title, content, category in SAMPLE_NOTES]
        logger.info('samples_created', count=len(created))
        return created

    def close(self):
        """Saves any pending changes, then closes the associated repo."""
        self.repo.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
