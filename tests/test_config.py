import pytest

from ledger_audit.config import DEFAULTS, load_config, merge_config
from ledger_audit.exceptions import ConfigError


@pytest.fixture
def clean_env(tmp_path, monkeypatch):
    monkeypatch.delenv('LEDGER_AUDIT_CONFIG', raising=False)
    monkeypatch.delenv('CODA_API_KEY', raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestMergeConfig:
    """Test suite for merging overrides over defaults"""

    def test_defaults(self):
        assert merge_config({}) == DEFAULTS
        assert merge_config(None) == DEFAULTS

    def test_section_override_keeps_other_keys(self):
        merged = merge_config({'coda': {'doc_id': 'doc-2'}})
        assert merged['coda']['doc_id'] == 'doc-2'
        assert merged['coda']['transactions_table_id'] == DEFAULTS['coda']['transactions_table_id']

    def test_unknown_keys_ignored(self):
        merged = merge_config({'other': {'a': 1}, 'audit': {'nope': 2}})
        assert 'other' not in merged
        assert 'nope' not in merged['audit']

    def test_section_must_be_mapping(self):
        with pytest.raises(ConfigError):
            merge_config({'audit': 5})

    def test_defaults_not_mutated(self):
        merge_config({'audit': {'max_days': 5}})
        assert DEFAULTS['audit']['max_days'] == 100


class TestLoadConfig:
    """Test suite for loading settings"""

    def test_defaults_without_file(self, clean_env):
        settings = load_config()
        assert settings.audit.max_days == 100
        assert settings.coda.doc_id == 'sz-gfMWR-I'
        assert settings.coda.api_key == ''

    def test_yaml_file(self, clean_env):
        path = clean_env / 'custom.yml'
        path.write_text("coda:\n  api_key: from-file\n  timeout: 5\naudit:\n  max_days: 31\n")

        settings = load_config(str(path))

        assert settings.coda.api_key == 'from-file'
        assert settings.coda.timeout == 5.0
        assert settings.audit.max_days == 31

    def test_default_file_in_cwd(self, clean_env):
        (clean_env / 'config.yml').write_text("audit:\n  max_days: 7\n")
        assert load_config().audit.max_days == 7

    def test_env_file_path(self, clean_env, monkeypatch):
        path = clean_env / 'other.yml'
        path.write_text("audit:\n  max_days: 9\n")
        monkeypatch.setenv('LEDGER_AUDIT_CONFIG', str(path))
        assert load_config().audit.max_days == 9

    def test_env_api_key_wins(self, clean_env, monkeypatch):
        path = clean_env / 'custom.yml'
        path.write_text("coda:\n  api_key: from-file\n")
        monkeypatch.setenv('CODA_API_KEY', 'from-env')
        assert load_config(str(path)).coda.api_key == 'from-env'

    def test_missing_explicit_file(self, clean_env):
        with pytest.raises(ConfigError):
            load_config(str(clean_env / 'missing.yml'))

    def test_invalid_yaml(self, clean_env):
        path = clean_env / 'bad.yml'
        path.write_text("coda: [unclosed\n")
        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_not_a_mapping(self, clean_env):
        path = clean_env / 'list.yml'
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError):
            load_config(str(path))

    @pytest.mark.parametrize("body", ["audit:\n  max_days: 0\n", "audit:\n  max_days: lots\n"])
    def test_invalid_max_days(self, clean_env, body):
        path = clean_env / 'bad.yml'
        path.write_text(body)
        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_dotenv_in_working_directory(self, clean_env, monkeypatch):
        # Restore the real environment after load_dotenv writes to it
        monkeypatch.setenv('CODA_API_KEY', 'placeholder')
        monkeypatch.delenv('CODA_API_KEY')
        (clean_env / '.env').write_text("CODA_API_KEY=from-dotenv\n")

        assert load_config().coda.api_key == 'from-dotenv'
