"""Tests for configuration loading and validation."""

import json

import pytest

from linkscout.utils.config import CheckOptions, ConfigError, ConfigManager, load_config, validate_options


def test_no_config_file_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    settings = load_config(flags={'recurse': None, 'format': None})
    assert settings.format == 'text'
    assert settings.logging.verbosity == 'warning'

    options = settings.to_check_options('docs/')
    assert options == CheckOptions(path='docs/')
    assert options.concurrency == 100
    assert options.timeout == 0


def test_reads_yaml_file(tmp_path):
    path = tmp_path / 'linkscout.config.yaml'
    path.write_text(
        "recurse: true\n"
        "concurrency: 10\n"
        "skip:\n  - googleapis\n  - example\\.org\n"
        "format: JSON\n"
        "logging:\n  verbosity: debug\n"
    )
    settings = load_config(str(path))

    assert settings.recurse is True
    assert settings.concurrency == 10
    assert settings.skip == ['googleapis', 'example\\.org']
    assert settings.format == 'json'
    assert settings.logging.verbosity == 'debug'


def test_reads_json_file(tmp_path):
    path = tmp_path / 'linkscout.config.json'
    path.write_text(json.dumps({'recurse': True, 'skip': 'a.test b.test', 'serverRoot': 'site/'}))
    settings = load_config(str(path))

    assert settings.skip == ['a.test', 'b.test']
    assert settings.server_root == 'site/'
    assert settings.to_check_options('site/docs').links_to_skip == ['a.test', 'b.test']


def test_default_file_discovered_in_working_directory(tmp_path, monkeypatch):
    (tmp_path / 'linkscout.config.yaml').write_text("timeout: 5\n")
    monkeypatch.chdir(tmp_path)
    assert load_config().timeout == 5


def test_flags_override_file(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text("concurrency: 10\nskip: foo\nformat: csv\n")
    settings = load_config(str(path), {'concurrency': 3, 'skip': 'bar', 'format': None, 'verbosity': 'error'})

    assert settings.concurrency == 3
    assert settings.skip == ['bar']
    assert settings.format == 'csv'
    assert settings.logging.verbosity == 'error'


def test_silent_means_error_verbosity(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text("silent: true\n")
    assert load_config(str(path)).logging.verbosity == 'error'


def test_silent_and_verbosity_conflict(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(ConfigError, match="silent"):
        load_config(flags={'silent': True, 'verbosity': 'info'})


def test_missing_file_raises(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(str(tmp_path / 'nope.yaml'))


def test_invalid_yaml_raises(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text("recurse: [unclosed\n")
    with pytest.raises(ConfigError):
        load_config(str(path))


def test_non_mapping_raises(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text("- just\n- a list\n")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(str(path))


@pytest.mark.parametrize('flags', [
    {'concurrency': 0},
    {'timeout': -1},
    {'format': 'xml'},
    {'verbosity': 'loud'},
])
def test_invalid_values_rejected(tmp_path, flags):
    with pytest.raises(ConfigError):
        load_config(str(_empty(tmp_path)), flags)


def test_settings_not_loaded():
    with pytest.raises(ConfigError):
        ConfigManager().settings


@pytest.mark.parametrize('options', [
    CheckOptions(path=''),
    CheckOptions(path='x', concurrency=0),
    CheckOptions(path='x', timeout=-1),
    CheckOptions(path='x', port=70000),
])
def test_validate_options(options):
    with pytest.raises(ConfigError):
        validate_options(options)


def test_options_are_immutable():
    options = CheckOptions(path='http://a.test/')
    with pytest.raises(AttributeError):
        options.path = 'http://b.test/'
    assert options.with_path('http://b.test/').path == 'http://b.test/'
    assert options.path == 'http://a.test/'


def _empty(tmp_path):
    path = tmp_path / 'empty.yaml'
    path.write_text('')
    return path


def test_markdown_flag_reaches_options(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert load_config().to_check_options('docs/').markdown is False
    assert load_config(flags={'markdown': True}).to_check_options('docs/').markdown is True
