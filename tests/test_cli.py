from datetime import datetime
import json
from pathlib import Path
from freezegun import freeze_time
import pytest
import structlog
from notekeeper import cli


@pytest.fixture
def nk_setup(fs, mocker):
    mocker.patch('notekeeper.models.random.choice', side_effect=lambda seq: seq[0])
    Path('~').expanduser().mkdir(parents=True, exist_ok=True)
    Path('~/.notekeeper.conf.py').expanduser().write_text("""
from notekeeper.conf import *
conf = NotekeeperConf(
    repo_conf=YamlFileRepoConf(path='/notes/notes.yaml')
)
""")
    yield
    # main() points structlog at the captured stderr, which is closed after the test
    structlog.reset_defaults()


def add(capsys, *args) -> str:
    assert cli.main(['add', '-j'] + list(args)) == 0
    out, err = capsys.readouterr()
    return json.loads(out)['id']


def test_no_command(nk_setup, capsys):
    assert cli.main([]) == 1


def test_add_and_show(nk_setup, capsys):
    with freeze_time('2020-01-02 03:04:05'):
        assert cli.main(['add', '  Shopping ', 'buy milk\nand eggs', '-c', 'Home']) == 0
    out, err = capsys.readouterr()
    assert out.startswith('Created ')
    note_id = out.split()[1]
    assert cli.main(['show', note_id]) == 0
    out, err = capsys.readouterr()
    assert out == f"""id: {note_id}
title: Shopping
category: Home
favorite: no
color: #FF6B6B
created: 2020-01-02 03:04:05+00:00
updated: 2020-01-02 03:04:05+00:00
content:
\tbuy milk
\tand eggs
"""
    assert cli.main(['show', '-j', note_id]) == 0
    out, err = capsys.readouterr()
    assert json.loads(out) == {
        'id': note_id,
        'title': 'Shopping',
        'content': 'buy milk\nand eggs',
        'category': 'Home',
        'color_hex': '#FF6B6B',
        'is_favorite': False,
        'created_at': '2020-01-02T03:04:05+00:00',
        'updated_at': '2020-01-02T03:04:05+00:00',
    }


def test_add_default_category(nk_setup, capsys):
    note_id = add(capsys, 'Title')
    assert cli.main(['show', '-j', note_id]) == 0
    out, err = capsys.readouterr()
    assert json.loads(out)['category'] == 'General'
    assert json.loads(out)['content'] == ''


def test_add_invalid(nk_setup, capsys):
    assert cli.main(['add', '   ']) == 1
    out, err = capsys.readouterr()
    assert 'Note must have either a title or content' in err
    assert cli.main(['list', '-j']) == 0
    out, err = capsys.readouterr()
    assert json.loads(out) == []


def test_show_missing(nk_setup, capsys):
    assert cli.main(['show', 'bogus']) == 1
    out, err = capsys.readouterr()
    assert err == 'Note not found: bogus\n'


def test_list(nk_setup, capsys):
    home = add(capsys, 'Shopping', 'buy milk', '-c', 'Home')
    work = add(capsys, 'Work', 'finish report', '-c', 'Work')
    untitled = add(capsys, '', 'just some text', '-c', 'Home')
    assert cli.main(['fav', work]) == 0
    capsys.readouterr()

    assert cli.main(['list']) == 0
    out, err = capsys.readouterr()
    assert out == (f'{work} * Work [Work]\n'
                   f'{untitled}   Untitled Note [Home]\n'
                   f'{home}   Shopping [Home]\n')

    assert cli.main(['list', '-j', '-c', 'Home']) == 0
    out, err = capsys.readouterr()
    assert [n['id'] for n in json.loads(out)] == [untitled, home]

    assert cli.main(['list', '-j', '-f']) == 0
    out, err = capsys.readouterr()
    assert [n['id'] for n in json.loads(out)] == [work]

    assert cli.main(['list', '-j', 'MILK']) == 0
    out, err = capsys.readouterr()
    assert [n['id'] for n in json.loads(out)] == [home]

    assert cli.main(['list', '-j', 'sort:title']) == 0
    out, err = capsys.readouterr()
    assert [n['id'] for n in json.loads(out)] == [untitled, home, work]


def test_list_table(nk_setup, capsys):
    with freeze_time('2020-01-02 03:04:05'):
        note_id = add(capsys, 'Shopping', 'buy milk', '-c', 'Home')
    assert cli.main(['list', '-t']) == 0
    out, err = capsys.readouterr()
    assert 'Title' in out
    assert 'Category' in out
    assert f'| {note_id} | Shopping | Home     |          | 2020-01-02 03:04 |' in out


def test_edit(nk_setup, capsys):
    note_id = add(capsys, 'Shopping', 'buy milk', '-c', 'Home')
    assert cli.main(['edit', note_id, '-t', 'Shopping List']) == 0
    assert cli.main(['show', '-j', note_id]) == 0
    out, err = capsys.readouterr()
    note = json.loads(out)
    assert (note['title'], note['content'], note['category']) == ('Shopping List', 'buy milk', 'Home')
    assert datetime.fromisoformat(note['updated_at']) > datetime.fromisoformat(note['created_at'])

    assert cli.main(['edit', note_id, '-b', 'buy milk and eggs', '-c', 'Errands']) == 0
    assert cli.main(['show', '-j', note_id]) == 0
    out, err = capsys.readouterr()
    note = json.loads(out)
    assert (note['title'], note['content'], note['category']) == ('Shopping List', 'buy milk and eggs', 'Errands')


def test_edit_missing(nk_setup, capsys):
    assert cli.main(['edit', 'bogus', '-t', 'x']) == 1
    out, err = capsys.readouterr()
    assert err == 'Note not found: bogus\n'


def test_edit_invalid(nk_setup, capsys):
    note_id = add(capsys, 'Shopping', '')
    assert cli.main(['edit', note_id, '-t', ' ']) == 1
    out, err = capsys.readouterr()
    assert 'Note must have either a title or content' in err


def test_fav(nk_setup, capsys):
    note_id = add(capsys, 'Work', 'finish report')
    assert cli.main(['fav', note_id]) == 0
    out, err = capsys.readouterr()
    assert out == 'Added Work to favorites\n'
    assert cli.main(['fav', note_id]) == 0
    out, err = capsys.readouterr()
    assert out == 'Removed Work from favorites\n'
    assert cli.main(['fav', 'bogus']) == 1


def test_rm(nk_setup, capsys):
    note_id = add(capsys, 'Work', 'finish report')
    assert cli.main(['rm', note_id]) == 0
    assert cli.main(['rm', note_id]) == 1
    out, err = capsys.readouterr()
    assert err == f'Note not found: {note_id}\n'


def test_stats(nk_setup, capsys):
    add(capsys, 'Shopping', 'buy milk', '-c', 'Home')
    add(capsys, 'Chores', 'dishes', '-c', 'Home')
    work = add(capsys, 'Work', 'finish report', '-c', 'Work')
    assert cli.main(['fav', work]) == 0
    capsys.readouterr()

    assert cli.main(['stats', '-j']) == 0
    out, err = capsys.readouterr()
    assert json.loads(out) == {'total': 3, 'favorite_count': 1, 'category_counts': {'Home': 2, 'Work': 1}}

    assert cli.main(['stats']) == 0
    out, err = capsys.readouterr()
    assert out == """Total: 3
Favorites: 1
+----------+-------+
| Category | Count |
+----------+-------+
| Home     |     2 |
| Work     |     1 |
+----------+-------+
"""


def test_verbose_logs_to_stderr(nk_setup, capsys):
    assert cli.main(['-v', 'add', 'Title']) == 0
    out, err = capsys.readouterr()
    assert 'note_created' in err
    assert 'note_created' not in out
