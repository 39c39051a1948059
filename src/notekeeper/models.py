"""Defines classes for representing notes, statistics, and queries.

The most important classes are :class:`Note` and :class:`NoteQuery`.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
import random
import unicodedata
from typing import Dict, Iterable, Iterator, List, Optional, Union
from urllib.parse import unquote_plus


DEFAULT_CATEGORY = 'General'

DEFAULT_COLOR = '#4ECDC4'

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)

COLOR_PALETTE = (
    '#FF6B6B',
    '#4ECDC4',
    '#45B7D1',
    '#96CEB4',
    '#FFEAA7',
    '#DDA0DD',
    '#F8C471',
    '#85C1E9',
    '#F1948A',
    '#82E0AA',
)


def random_color(palette=COLOR_PALETTE) -> str:
    """Returns a uniformly random color from the palette, or :data:`DEFAULT_COLOR` if the palette is empty."""
    if not palette:
        return DEFAULT_COLOR
    return random.choice(palette)


def fold(text: str) -> str:
    """Returns a version of the text suitable for case- and diacritic-insensitive comparison.

    For example, ``fold('Café')`` and ``fold('CAFE')`` are both ``'cafe'``.
    """
    decomposed = unicodedata.normalize('NFKD', text)
    return ''.join(c for c in decomposed if not unicodedata.combining(c)).casefold()


@dataclass(frozen=True)
class Note:
    """A single note record.

    Instances are immutable. To change a note, call the relevant method of :class:`notekeeper.repos.base.Repo`
    and fetch the note again.
    """

    id: str
    """Unique identifier assigned by the repo when the note is created. Never reused."""

    title: str
    content: str

    category: str = DEFAULT_CATEGORY
    """Free-form category name. Matched exactly (case-sensitive) by category queries."""

    color_hex: str = DEFAULT_COLOR
    """Display color, picked at random from :data:`COLOR_PALETTE` when the note is created."""

    is_favorite: bool = False

    created_at: Optional[datetime] = None
    """When the note was created (UTC). Never changes."""

    updated_at: Optional[datetime] = None
    """When the note was last created, updated, or had its favorite flag toggled (UTC)."""

    def matches_text(self, text: str) -> bool:
        """Returns True if the text occurs in the title or content, ignoring case and diacritics.

        Empty text matches every note.
        """
        if not text:
            return True
        needle = fold(text)
        return needle in fold(self.title) or needle in fold(self.content)

    def as_json(self) -> dict:
        """Returns a dict representing the instance, suitable for serializing as json."""
        return {
            'id': self.id,
            'title': self.title,
            'content': self.content,
            'category': self.category,
            'color_hex': self.color_hex,
            'is_favorite': self.is_favorite,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_json(cls, data: dict) -> Note:
        """Inverse of :meth:`as_json`."""
        created_at = data.get('created_at')
        updated_at = data.get('updated_at')
        return cls(
            id=data['id'],
            title=data.get('title') or '',
            content=data.get('content') or '',
            category=data.get('category', DEFAULT_CATEGORY),
            color_hex=data.get('color_hex') or DEFAULT_COLOR,
            is_favorite=bool(data.get('is_favorite', False)),
            created_at=datetime.fromisoformat(created_at) if created_at else None,
            updated_at=datetime.fromisoformat(updated_at) if updated_at else None,
        )


@dataclass
class NoteStats:
    """Aggregate counts over a collection of notes, as returned by :meth:`notekeeper.repos.base.Repo.statistics`."""

    total: int = 0
    favorite_count: int = 0

    category_counts: Dict[str, int] = field(default_factory=dict)
    """Maps each distinct category present to the number of notes in it."""

    @classmethod
    def of(cls, notes: Iterable[Note]) -> NoteStats:
        stats = cls()
        for note in notes:
            stats.total += 1
            if note.is_favorite:
                stats.favorite_count += 1
            stats.category_counts[note.category] = stats.category_counts.get(note.category, 0) + 1
        return stats

    def as_json(self) -> dict:
        return {
            'total': self.total,
            'favorite_count': self.favorite_count,
            'category_counts': dict(self.category_counts),
        }


class NoteQuerySortField(Enum):
    UPDATED = 'updated'
    CREATED = 'created'
    TITLE = 'title'
    CATEGORY = 'category'


@dataclass
class NoteQuerySort:
    field: NoteQuerySortField

    reverse: bool = False
    """If True, sort descending."""

    ignore_case: bool = True
    """If True, strings are sorted as if they were lower case."""

    def key(self, note: Note) -> Union[str, datetime]:
        """Returns the sort key for the given note for the :attr:`field` specified in this instance.

        This is affected by the value of :attr:`ignore_case`, but not by :attr:`reverse`.
        """
        if self.field == NoteQuerySortField.UPDATED:
            return note.updated_at or _EARLIEST
        elif self.field == NoteQuerySortField.CREATED:
            return note.created_at or _EARLIEST
        elif self.field == NoteQuerySortField.TITLE:
            return note.title.lower() if self.ignore_case else note.title
        elif self.field == NoteQuerySortField.CATEGORY:
            return note.category.lower() if self.ignore_case else note.category


def _default_sort() -> List[NoteQuerySort]:
    return [NoteQuerySort(NoteQuerySortField.UPDATED, reverse=True)]


@dataclass
class NoteQuery:
    """Represents criteria for searching for notes.

    Some methods that take a NoteQuery parameter also accept strings as a convenience, which they
    pass to :meth:`parse`.

    If multiple criteria are specified, the query only returns notes that satisfy *all* of them.
    """

    category: Optional[str] = None
    """If not None, only notes whose category is exactly this value are returned.

    Note that the empty string is a value like any other: it only matches notes whose category is empty.
    """

    text: str = ''
    """If non-empty, only notes whose title or content contains this text (ignoring case and diacritics)
    are returned."""

    favorites_only: bool = False

    sort_by: List[NoteQuerySort] = field(default_factory=_default_sort)
    """Indicates how to sort the results. Fields on the left take priority.

    The default puts the most recently updated notes first.
    """

    @classmethod
    def parse(cls, strquery: NoteQueryIsh) -> NoteQuery:
        """Converts the parameter to a NoteQuery, if it isn't one already.

        Query strings are split on spaces. Each part can be one of the following:

        * ``category:NAME`` - notes must be in the given category (``+`` and percent-escapes are decoded, so
          ``category:To+Do`` means "To Do")
        * ``is:favorite`` - notes must be favorites
        * ``sort:FIELD1,FIELD2`` - sort by the given fields
            * fields on the left take higher priority, e.g. ``sort:category,-updated``
            * a minus sign in front of a field name sorts descending
            * supported fields: ``updated``, ``created``, ``title``, ``category``

        Every other part is treated as search text. Multiple such parts are joined by single spaces.

        Examples:

        * ``"category:Work report"`` - notes in the "Work" category mentioning "report"
        * ``"is:favorite sort:title"`` - favorites, alphabetically
        """
        if isinstance(strquery, NoteQuery):
            return strquery
        query = cls()
        words = []
        sorts = []
        for term in strquery.split():
            lower = term.lower()
            if lower.startswith('category:'):
                query.category = unquote_plus(term[9:])
            elif lower in ('is:favorite', 'is:fav'):
                query.favorites_only = True
            elif lower.startswith('sort:'):
                for sortstr in lower[5:].split(','):
                    if not sortstr:
                        continue
                    reverse = sortstr.startswith('-')
                    sorts.append(NoteQuerySort(NoteQuerySortField(sortstr.lstrip('-')), reverse=reverse))
            else:
                words.append(term)
        query.text = ' '.join(words)
        if sorts:
            query.sort_by = sorts
        return query

    def matches(self, note: Note) -> bool:
        if self.category is not None and not note.category == self.category:
            return False
        if self.favorites_only and not note.is_favorite:
            return False
        return note.matches_text(self.text)

    def apply_filtering(self, notes: Iterable[Note]) -> Iterator[Note]:
        """Yields the notes from the given iterable which match the criteria of this query."""
        return (note for note in notes if self.matches(note))

    def apply_sorting(self, notes: Iterable[Note]) -> List[Note]:
        """Returns a copy of the given notes sorted using this query's sort_by.

        The sort is stable, so notes with equal keys keep the order they were given in.
        """
        result = list(notes)
        for sort in reversed(self.sort_by):
            result.sort(key=sort.key, reverse=sort.reverse)
        return result


NoteQueryIsh = Union[str, NoteQuery]
