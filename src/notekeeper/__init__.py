"""Keeps a collection of notes with categories, favorites, and search.

If you installed via ``pip``, run ``notekeeper -h`` to get help.

To use the Python API, look at :class:`notekeeper.api.Notekeeper`, or create a repo directly from one of the
classes in :mod:`notekeeper.conf`.
"""
