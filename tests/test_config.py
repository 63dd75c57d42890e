"""
Comprehensive tests for configuration management

Tests cover:
- Configuration loading and defaults
- Environment variable handling
- Configuration validation
- Saving and reloading
- Test server account settings
"""
import json

import pytest

from deltachat_rpc.utils.config import (
    ClientConfig,
    ConfigManager,
    TestServerConfig,
    get_config,
    reset_config,
)
from deltachat_rpc.utils.errors import InvalidConfigError


class TestConfigManagerInitialization:
    """Tests for ConfigManager initialization"""

    def test_missing_file_uses_defaults(self, tmp_path):
        """Test a missing config file yields the default configuration"""
        config = ConfigManager(config_path=tmp_path / "missing.json", env={})
        assert config.config == ClientConfig()
        assert not (tmp_path / "missing.json").exists()

    def test_load_from_file(self, tmp_path):
        """Test values are read from the JSON file"""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"transport": {"server_path": "/opt/dc/rpc-server"}}))

        config = ConfigManager(config_path=path, env={})
        assert config.config.transport.server_path == "/opt/dc/rpc-server"
        assert config.config.transport.close_timeout == 5.0

    def test_config_path_from_environment(self, tmp_path):
        """Test DC_RPC_CONFIG selects the config file"""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"logging": {"log_level": "DEBUG"}}))

        config = ConfigManager(env={"DC_RPC_CONFIG": str(path)})
        assert config.path == path
        assert config.config.logging.log_level == "DEBUG"

    def test_invalid_json(self, tmp_path):
        """Test a corrupt file raises InvalidConfigError"""
        path = tmp_path / "config.json"
        path.write_text("{not json")
        with pytest.raises(InvalidConfigError):
            ConfigManager(config_path=path, env={})

    def test_invalid_schema(self, tmp_path):
        """Test values of the wrong type raise InvalidConfigError"""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"transport": {"start_timeout": "soon"}}))
        with pytest.raises(InvalidConfigError):
            ConfigManager(config_path=path, env={})


class TestConfigurationDefaults:
    """Tests for default configuration values"""

    def test_default_server_path(self):
        """Test the server binary is looked up on PATH by default"""
        assert ClientConfig().transport.server_path == "deltachat-rpc-server"

    def test_default_timeouts(self):
        """Test default timeouts"""
        transport = ClientConfig().transport
        assert transport.start_timeout == 10.0
        assert transport.close_timeout == 5.0
        assert transport.call_timeout is None

    def test_default_stderr_forwarding(self):
        """Test server stderr is forwarded by default"""
        assert ClientConfig().transport.forward_stderr is True


class TestEnvironmentOverrides:
    """Tests for environment variable handling"""

    def test_server_path_override(self, tmp_path):
        """Test DC_RPC_SERVER overrides the server binary"""
        config = ConfigManager(
            config_path=tmp_path / "missing.json",
            env={"DC_RPC_SERVER": "/usr/local/bin/deltachat-rpc-server"},
        )
        assert config.config.transport.server_path == "/usr/local/bin/deltachat-rpc-server"

    def test_accounts_dir_override(self, tmp_path):
        """Test DC_ACCOUNTS_PATH sets the accounts directory"""
        config = ConfigManager(
            config_path=tmp_path / "missing.json",
            env={"DC_ACCOUNTS_PATH": str(tmp_path / "accounts")},
        )
        assert config.config.transport.accounts_dir == str(tmp_path / "accounts")

    def test_port_override_coerced(self, tmp_path):
        """Test numeric environment values are coerced to int"""
        config = ConfigManager(
            config_path=tmp_path / "missing.json",
            env={"DC_TEST_MAIL_PORT": "1143"},
        )
        assert config.config.test_server.mail_port == 1143

    def test_invalid_override(self, tmp_path):
        """Test an environment value of the wrong type is rejected"""
        with pytest.raises(InvalidConfigError):
            ConfigManager(
                config_path=tmp_path / "missing.json",
                env={"DC_TEST_SEND_PORT": "smtp"},
            )


class TestConfigurationAccess:
    """Tests for get, set and save"""

    def test_get_dotted_path(self, tmp_path):
        """Test values are read with dot-separated paths"""
        config = ConfigManager(config_path=tmp_path / "missing.json", env={})
        assert config.get("transport.close_timeout") == 5.0
        assert config.get("transport.unknown", "fallback") == "fallback"

    def test_set_validates(self, tmp_path):
        """Test set() coerces and validates values"""
        config = ConfigManager(config_path=tmp_path / "missing.json", env={})
        config.set("transport.start_timeout", "2.5")
        assert config.config.transport.start_timeout == 2.5

        with pytest.raises(InvalidConfigError):
            config.set("transport.start_timeout", "later")

    def test_set_unknown_key(self, tmp_path):
        """Test unknown keys and sections are rejected"""
        config = ConfigManager(config_path=tmp_path / "missing.json", env={})
        with pytest.raises(InvalidConfigError):
            config.set("transport.nope", 1)
        with pytest.raises(InvalidConfigError):
            config.set("nope.server_path", "x")

    def test_save_and_reload(self, tmp_path):
        """Test a saved configuration loads back identically"""
        path = tmp_path / "nested" / "config.json"
        config = ConfigManager(config_path=path, env={})
        config.set("transport.call_timeout", 30)
        assert config.save() == path

        reloaded = ConfigManager(config_path=path, env={})
        assert reloaded.config.transport.call_timeout == 30.0

    def test_get_config_singleton(self):
        """Test get_config() caches until reset_config()"""
        first = get_config()
        assert get_config() is first
        reset_config()
        assert get_config() is not first


class TestTestServerConfig:
    """Tests for test server account settings"""

    def test_as_account_config(self):
        """Test settings convert to core config strings"""
        values = TestServerConfig(mail_port=1143, mvbox_move=True).as_account_config()
        assert values["mail_server"] == "localhost"
        assert values["mail_port"] == "1143"
        assert values["mvbox_move"] == "1"
        assert all(isinstance(value, str) for value in values.values())
