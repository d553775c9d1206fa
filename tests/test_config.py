import pytest

from jmapclient.config import DEFAULT_SESSION_PATH, Settings, load_settings
from jmapclient.protocol.errors import ConfigurationError


ENV = {
    'JMAP_SERVER_URL': 'https://api.example.com',
    'JMAP_TOKEN': 'env-token',
}


def test_from_environment():
    settings = load_settings(ENV)
    assert settings == Settings(server_url='https://api.example.com', token='env-token')
    assert settings.session_path == DEFAULT_SESSION_PATH
    assert settings.timeout == 30.0
    assert 'env-token' not in repr(settings)


def test_arguments_win():
    settings = load_settings(
        {**ENV, 'JMAP_SESSION_PATH': '/jmap/session', 'JMAP_TIMEOUT': '5'},
        token='arg-token',
        timeout=2
    )
    assert settings.token == b'arg-token'
    assert settings.server_url == 'https://api.example.com'
    assert settings.session_path == '/jmap/session'
    assert settings.timeout == 2.0


def test_missing_values():
    with pytest.raises(ConfigurationError) as excinfo:
        load_settings({'JMAP_TOKEN': 'x'})
    assert '--server' in str(excinfo.value)

    with pytest.raises(ConfigurationError) as excinfo:
        load_settings({'JMAP_SERVER_URL': 'https://api.example.com'})
    assert '--token' in str(excinfo.value)


@pytest.mark.parametrize('timeout', ['soon', '0', '-1'])
def test_invalid_timeout(timeout):
    with pytest.raises(ConfigurationError):
        load_settings({**ENV, 'JMAP_TIMEOUT': timeout})


def test_dotenv_file(tmp_path, monkeypatch):
    # load_dotenv() writes into os.environ; monkeypatch puts it back afterwards
    for name in ('JMAP_SERVER_URL', 'JMAP_TOKEN', 'JMAP_SESSION_PATH', 'JMAP_TIMEOUT'):
        monkeypatch.setenv(name, '')
        monkeypatch.delenv(name)

    env_file = tmp_path / '.env'
    env_file.write_text('JMAP_SERVER_URL=https://dotenv.example.com\nJMAP_TOKEN=dotenv-token\n')

    settings = load_settings(dotenv_path=str(env_file))
    assert settings.server_url == 'https://dotenv.example.com'
    assert settings.token == b'dotenv-token'


def test_clear_token():
    settings = load_settings(ENV)
    token = settings.token
    settings.clear_token()
    assert token == bytearray(len('env-token'))
