from __future__ import annotations
from dataclasses import dataclass, replace
import os.path
from typing import Optional


@dataclass
class RepoConf:
    """Base class for repo config. Use a subclass such as :class:`SqliteRepoConf`."""

    require_content: bool = True
    """If True, creating or updating a note fails with :exc:`notekeeper.repos.base.ValidationError` when both the
    title and the content are empty after trimming whitespace.

    Set this to False to let the repo store empty notes, leaving validation to the caller.
    """

    max_title_length: Optional[int] = 100
    """Longest allowed title (after trimming), or None for no limit."""

    max_content_length: Optional[int] = 10000
    """Longest allowed content (after trimming), or None for no limit."""

    def instantiate(self):
        raise NotImplementedError("Please use a subclass like SqliteRepoConf instead!")

    def standardize(self):
        return self


@dataclass
class MemoryRepoConf(RepoConf):
    """Configures notekeeper to keep notes in memory only, via :class:`notekeeper.repos.memory.MemoryRepo`.

    Nothing is written to disk, so this is mostly useful for tests and experiments.
    """
    def instantiate(self):
        from notekeeper.repos.memory import MemoryRepo
        return MemoryRepo(self.standardize())


@dataclass
class YamlFileRepoConf(RepoConf):
    """Configures notekeeper to store notes in a single YAML file, via
    :class:`notekeeper.repos.yamlfile.YamlFileRepo`."""

    path: str = None
    """Required. Path of the YAML file. It will be created if it does not exist.

    The whole file is rewritten every time a note changes, so this is best suited to modest collections.
    """

    def instantiate(self):
        from notekeeper.repos.yamlfile import YamlFileRepo
        return YamlFileRepo(self.standardize())

    def standardize(self):
        if not self.path:
            return self
        return replace(self, path=os.path.abspath(os.path.expanduser(self.path)))


@dataclass
class SqliteRepoConf(RepoConf):
    """Configures notekeeper to store notes in an SQLite database, via :class:`notekeeper.repos.sqlite.SqliteRepo`."""

    path: str = None
    """Required. Path where the SQLite database file should be stored.

    The file will be created if it does not exist. The special value ``':memory:'`` keeps the database in memory.
    """

    def instantiate(self):
        from notekeeper.repos.sqlite import SqliteRepo
        return SqliteRepo(self.standardize())

    def standardize(self):
        if not self.path or self.path == ':memory:':
            return self
        return replace(self, path=os.path.abspath(os.path.expanduser(self.path)))


@dataclass
class NotekeeperConf:
    repo_conf: RepoConf
    """Configures how notes are stored."""

    seed_samples: bool = False
    """If True, a few sample notes are created the first time the repo is opened while empty."""

    log_level: str = 'WARNING'
    """Minimum level of log events printed by the CLI, e.g. ``'DEBUG'``."""

    @classmethod
    def user_config_path(cls) -> str:
        return os.path.expanduser(os.path.join('~', '.notekeeper.conf.py'))

    @classmethod
    def for_user(cls) -> NotekeeperConf:
        """Loads the config from ``~/.notekeeper.conf.py``.

        The file is a Python script which must assign an instance of this class to the variable ``conf``, e.g.:

        .. code-block:: python

           from notekeeper.conf import *
           conf = NotekeeperConf(repo_conf=SqliteRepoConf(path='~/notes.sqlite3'))
        """
        path = cls.user_config_path()
        if not os.path.exists(path):
            raise Exception(f'You need to create the config file: {path}')
        with open(path, 'r') as file:
            conf_script = file.read()
        context = {}
        exec(conf_script, context)
        if 'conf' not in context or not isinstance(context['conf'], cls):
            raise Exception('You need to assign an instance of NotekeeperConf to the variable `conf` '
                            f'in your config file: {path}')
        return context['conf']

    def standardize(self):
        return replace(
            self,
            repo_conf=self.repo_conf.standardize()
        )

    def instantiate(self):
        from notekeeper.api import Notekeeper
        return Notekeeper(self.standardize())
