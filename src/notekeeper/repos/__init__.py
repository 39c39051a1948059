"""Handles storage of a collection of notes.

:class:`notekeeper.repos.base.Repo` defines an API.
:class:`notekeeper.repos.sqlite.SqliteRepo` is the implementation you usually want to use;
:class:`notekeeper.repos.yamlfile.YamlFileRepo` keeps notes in a single human-readable file, and
:class:`notekeeper.repos.memory.MemoryRepo` does not persist anything.
"""
