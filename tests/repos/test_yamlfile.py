import os
from pathlib import Path
from freezegun import freeze_time
import pytest
import yaml
from notekeeper.conf import YamlFileRepoConf
from notekeeper.repos.base import PersistenceError
from notekeeper.repos.yamlfile import YamlFileRepo


def config(path='/data/notes.yaml'):
    return YamlFileRepoConf(path=path)


def test_init_requires_path():
    with pytest.raises(ValueError, match='`path` must be set'):
        YamlFileRepoConf().instantiate()


def test_missing_file_is_empty(fs):
    with config().instantiate() as repo:
        assert repo.get_all() == []


def test_file_created_on_first_change(fs):
    repo = config().instantiate()
    assert not Path('/data/notes.yaml').exists()
    repo.create('Title', 'content')
    assert Path('/data/notes.yaml').exists()


def test_file_format(fs, mocker):
    mocker.patch('notekeeper.models.random.choice', side_effect=lambda seq: seq[0])
    with freeze_time('2020-01-02 03:04:05'):
        with config().instantiate() as repo:
            note = repo.create('Shopping', 'buy milk', 'Home')
    assert yaml.safe_load(Path('/data/notes.yaml').read_text()) == {
        'notes': [{
            'id': note.id,
            'title': 'Shopping',
            'content': 'buy milk',
            'category': 'Home',
            'color_hex': '#FF6B6B',
            'is_favorite': False,
            'created_at': '2020-01-02T03:04:05+00:00',
            'updated_at': '2020-01-02T03:04:05+00:00',
        }]
    }


def test_persists_across_instances(fs):
    with config().instantiate() as repo:
        a = repo.create('Shopping', 'buy milk', 'Home')
        b = repo.create('Café', 'espresso', 'Food')
        repo.toggle_favorite(a.id)
        repo.delete(b.id)
        c = repo.create('Work', 'finish report', 'Work')
        before = repo.get_all()
    with config().instantiate() as repo:
        assert repo.get_all() == before
        assert [n.id for n in before] == [c.id, a.id]


def test_new_timestamps_sort_after_stored_ones(fs):
    with freeze_time('2030-01-01 00:00:00'):
        with config().instantiate() as repo:
            old = repo.create('From the future', '')
    with freeze_time('2020-01-01 00:00:00'):
        with config().instantiate() as repo:
            new = repo.create('From the past', '')
            assert [n.id for n in repo.get_all()] == [new.id, old.id]


def test_unicode_content(fs):
    with config().instantiate() as repo:
        note = repo.create('Über', 'naïve café ☕')
    with config().instantiate() as repo:
        assert repo.get(note.id) == note
        assert repo.search('NAIVE') == [note]


def test_empty_file(fs):
    fs.create_file('/data/notes.yaml', contents='')
    with config().instantiate() as repo:
        assert repo.get_all() == []


def test_malformed_file(fs):
    fs.create_file('/data/notes.yaml', contents='notes:\n- title: no id here\n')
    with pytest.raises(PersistenceError, match='Malformed notes file'):
        config().instantiate()


def test_invalid_yaml(fs):
    fs.create_file('/data/notes.yaml', contents='notes: [unclosed')
    with pytest.raises(PersistenceError, match='Failed to read notes'):
        config().instantiate()


def test_write_failure_rolls_back(fs, mocker):
    repo = config().instantiate()
    kept = repo.create('Kept', 'content')
    original = Path('/data/notes.yaml').read_text()

    mocker.patch('yaml.safe_dump', side_effect=yaml.YAMLError('boom'))
    with pytest.raises(PersistenceError, match='boom') as excinfo:
        repo.create('Lost', 'content')
    assert isinstance(excinfo.value.cause, yaml.YAMLError)
    with pytest.raises(PersistenceError):
        repo.toggle_favorite(kept.id)

    assert repo.get_all() == [kept]
    assert Path('/data/notes.yaml').read_text() == original
    assert os.listdir('/data') == ['notes.yaml']


def test_misses_do_not_rewrite_file(fs, mocker):
    repo = config().instantiate()
    repo.create('Title', 'content')
    mocker.patch('yaml.safe_dump', side_effect=yaml.YAMLError('boom'))
    assert not repo.delete('bogus')
    assert not repo.toggle_favorite('bogus')
    assert not repo.update('bogus', 'x', 'y')


def test_relative_path(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    repo = YamlFileRepo(YamlFileRepoConf(path='notes.yaml'))
    note = repo.create('Title', 'content')
    repo.close()
    assert (tmp_path / 'notes.yaml').exists()
    with YamlFileRepo(YamlFileRepoConf(path='notes.yaml')) as reopened:
        assert reopened.get_all() == [note]


def test_reading_does_not_write(fs, mocker):
    with config().instantiate() as repo:
        assert repo.get_all() == []
    assert not Path('/data/notes.yaml').exists()

    with config().instantiate() as repo:
        repo.create('Title', 'content')
    mocker.patch('yaml.safe_dump', side_effect=yaml.YAMLError('boom'))
    with config().instantiate() as repo:
        assert len(repo.get_all()) == 1
        assert repo.statistics().total == 1


def test_flush_restores_missing_file(fs, mocker):
    repo = config().instantiate()
    note = repo.create('Title', 'content')
    os.remove('/data/notes.yaml')

    mocker.patch('yaml.safe_dump', side_effect=yaml.YAMLError('boom'))
    with pytest.raises(PersistenceError, match='Failed to save notes: boom'):
        repo.flush()
    mocker.stopall()

    repo.flush()
    data = yaml.safe_load(Path('/data/notes.yaml').read_text())
    assert [n['id'] for n in data['notes']] == [note.id]
