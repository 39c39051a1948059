import pytest
from notekeeper.conf import MemoryRepoConf, SqliteRepoConf, YamlFileRepoConf


@pytest.fixture(params=['memory', 'sqlite', 'yamlfile'])
def repo(request, tmp_path):
    """An empty repo of each kind."""
    if request.param == 'memory':
        conf = MemoryRepoConf()
    elif request.param == 'sqlite':
        conf = SqliteRepoConf(path=':memory:')
    else:
        conf = YamlFileRepoConf(path=str(tmp_path / 'notes.yaml'))
    with conf.instantiate() as repo:
        yield repo
