"""Command-line interface for notekeeper."""


import argparse
import json
import sys
from terminaltables import AsciiTable
from notekeeper.api import Notekeeper
from notekeeper.conf import NotekeeperConf
from notekeeper.log import configure_logging
from notekeeper.models import Note, NoteQuery
from notekeeper.repos.base import PersistenceError, ValidationError


def _display_title(note: Note) -> str:
    return note.title or 'Untitled Note'


def _print_note(note: Note) -> None:
    print(f'id: {note.id}')
    print(f'title: {note.title}')
    print(f'category: {note.category}')
    print(f'favorite: {"yes" if note.is_favorite else "no"}')
    print(f'color: {note.color_hex}')
    print(f'created: {note.created_at}')
    print(f'updated: {note.updated_at}')
    print('content:')
    for line in note.content.splitlines():
        print(f'\t{line}')


def _not_found(note_id: str) -> int:
    print(f'Note not found: {note_id}', file=sys.stderr)
    return 1


def _list(args, nk: Notekeeper) -> int:
    query = NoteQuery.parse(args.query or '')
    if args.category:
        query.category = args.category[0]
    if args.favorites:
        query.favorites_only = True
    notes = nk.repo.query(query)
    if args.json:
        print(json.dumps([n.as_json() for n in notes]))
    elif args.table:
        data = [('ID', 'Title', 'Category', 'Favorite', 'Updated')]
        for note in notes:
            data.append((note.id,
                         _display_title(note),
                         note.category,
                         '*' if note.is_favorite else '',
                         note.updated_at.strftime('%Y-%m-%d %H:%M')))
        print(AsciiTable(data).table)
    else:
        for note in notes:
            star = '*' if note.is_favorite else ' '
            print(f'{note.id} {star} {_display_title(note)} [{note.category}]')
    return 0


def _show(args, nk: Notekeeper) -> int:
    note = nk.repo.get(args.id[0])
    if not note:
        return _not_found(args.id[0])
    if args.json:
        print(json.dumps(note.as_json()))
    else:
        _print_note(note)
    return 0


def _add(args, nk: Notekeeper) -> int:
    note = nk.repo.create(args.title[0], args.content or '', args.category[0] if args.category else 'General')
    if args.json:
        print(json.dumps(note.as_json()))
    else:
        print(f'Created {note.id}')
    return 0


def _edit(args, nk: Notekeeper) -> int:
    note_id = args.id[0]
    note = nk.repo.get(note_id)
    if not note:
        return _not_found(note_id)
    title = args.title[0] if args.title else note.title
    content = args.body[0] if args.body else note.content
    category = args.category[0] if args.category else None
    if not nk.repo.update(note_id, title, content, category):
        return _not_found(note_id)
    return 0


def _fav(args, nk: Notekeeper) -> int:
    note_id = args.id[0]
    if not nk.repo.toggle_favorite(note_id):
        return _not_found(note_id)
    note = nk.repo.get(note_id)
    print(f'{"Added" if note.is_favorite else "Removed"} {_display_title(note)} '
          f'{"to" if note.is_favorite else "from"} favorites')
    return 0


def _rm(args, nk: Notekeeper) -> int:
    note_id = args.id[0]
    if not nk.repo.delete(note_id):
        return _not_found(note_id)
    return 0


def _stats(args, nk: Notekeeper) -> int:
    stats = nk.repo.statistics()
    if args.json:
        print(json.dumps(stats.as_json()))
    else:
        print(f'Total: {stats.total}')
        print(f'Favorites: {stats.favorite_count}')
        categories = sorted(stats.category_counts.keys())
        data = [('Category', 'Count')] + [(c, stats.category_counts[c]) for c in categories]
        table = AsciiTable(data)
        table.justify_columns[1] = 'right'
        print(table.table)
    return 0


def argparser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser()
    parser.set_defaults(func=None)
    parser.add_argument('-v', '--verbose', action='store_true', help='Print debug logging to stderr.')

    subs = parser.add_subparsers(title='Commands')

    p_list = subs.add_parser(
        'list',
        help='List notes, most recently updated first. For full query syntax, see the documentation of '
             'notekeeper.models.NoteQuery.parse - an example query is "category:Work is:favorite report".')
    p_list.add_argument('query', nargs='?', help='Query string. If omitted, all notes are listed.')
    p_list.add_argument('-c', '--category', nargs=1, help='Only list notes in this category (case-sensitive).')
    p_list.add_argument('-f', '--favorites', action='store_true', help='Only list favorites.')
    p_list_formats = p_list.add_mutually_exclusive_group()
    p_list_formats.add_argument('-j', '--json', action='store_true', help='Output as JSON.')
    p_list_formats.add_argument('-t', '--table', action='store_true', help='Format output as a table.')
    p_list.set_defaults(func=_list)

    p_show = subs.add_parser('show', help='Show all details of a note.')
    p_show.add_argument('id', nargs=1)
    p_show.add_argument('-j', '--json', action='store_true', help='Output as JSON.')
    p_show.set_defaults(func=_show)

    p_add = subs.add_parser('add', help='Create a note. Prints the id of the new note.')
    p_add.add_argument('title', nargs=1)
    p_add.add_argument('content', nargs='?', help='Body of the note.')
    p_add.add_argument('-c', '--category', nargs=1, help='Category of the note. Defaults to "General".')
    p_add.add_argument('-j', '--json', action='store_true', help='Output the created note as JSON.')
    p_add.set_defaults(func=_add)

    p_edit = subs.add_parser('edit', help='Change a note. Anything not specified keeps its current value.')
    p_edit.add_argument('id', nargs=1)
    p_edit.add_argument('-t', '--title', nargs=1, help='New title.')
    p_edit.add_argument('-b', '--body', nargs=1, help='New content.')
    p_edit.add_argument('-c', '--category', nargs=1, help='New category.')
    p_edit.set_defaults(func=_edit)

    p_fav = subs.add_parser('fav', help='Mark a note as a favorite, or unmark it if it already is one.')
    p_fav.add_argument('id', nargs=1)
    p_fav.set_defaults(func=_fav)

    p_rm = subs.add_parser('rm', help='Permanently delete a note.')
    p_rm.add_argument('id', nargs=1)
    p_rm.set_defaults(func=_rm)

    p_stats = subs.add_parser('stats', help='Show the number of notes, favorites, and notes per category.')
    p_stats.add_argument('-j', '--json', action='store_true', help='Output as JSON.')
    p_stats.set_defaults(func=_stats)

    return parser


def main(args=None) -> int:
    """Runs the tool and returns its exit code.

    args may be an array of string command-line arguments; if absent,
    the process's arguments are used.
    """
    parser = argparser()
    args = parser.parse_args(args)
    if not args.func:
        parser.print_help()
        return 1
    conf = NotekeeperConf.for_user()
    configure_logging('DEBUG' if args.verbose else conf.log_level)
    try:
        with conf.instantiate() as nk:
            return args.func(args, nk)
    except ValidationError as e:
        print(e.message, file=sys.stderr)
        return 1
    except PersistenceError as e:
        print(e.message, file=sys.stderr)
        return 2
