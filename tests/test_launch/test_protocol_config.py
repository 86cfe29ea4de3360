import pytest

from config.settings import Settings
from src.errors import AuthorizationError, ConfigurationError, ErrorKind
from src.launch.config import ProtocolConfig


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestInitialize:
    def test_defaults_from_settings(self):
        config = ProtocolConfig.initialize("admin_1", _settings())
        assert config.admin == "admin_1"
        assert config.fee_authority == "admin_1"
        assert config.protocol_fee_bps == 100
        assert config.graduation_threshold == 85_000_000_000
        assert config.default_bin_step_bps == 25
        assert config.launches_paused is False
        assert config.total_launches == 0

    def test_separate_fee_authority(self):
        config = ProtocolConfig.initialize("admin_1", _settings(), fee_authority="fees_1")
        assert config.fee_authority == "fees_1"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"protocol_fee_bps": 1_001},
            {"graduation_threshold_lamports": 0},
            {"default_bin_step_bps": 0},
            {"default_bin_step_bps": 501},
        ],
    )
    def test_rejects_out_of_range(self, overrides):
        with pytest.raises(ConfigurationError) as exc:
            ProtocolConfig.initialize("admin_1", _settings(**overrides))
        assert exc.value.kind == ErrorKind.INVALID_CONFIG


class TestAdminUpdates:
    def test_admin_can_update(self):
        config = ProtocolConfig.initialize("admin_1", _settings())
        config.update("admin_1", protocol_fee_bps=250, trading_paused=True)
        assert config.protocol_fee_bps == 250
        assert config.trading_paused is True

    def test_non_admin_rejected(self):
        config = ProtocolConfig.initialize("admin_1", _settings())
        with pytest.raises(AuthorizationError) as exc:
            config.update("intruder", launches_paused=True)
        assert exc.value.kind == ErrorKind.UNAUTHORIZED
        assert config.launches_paused is False

    def test_invalid_update_applies_nothing(self):
        config = ProtocolConfig.initialize("admin_1", _settings())
        with pytest.raises(ConfigurationError):
            config.update("admin_1", trading_paused=True, protocol_fee_bps=5_000)
        assert config.trading_paused is False
        assert config.protocol_fee_bps == 100

    def test_transfer_admin(self):
        config = ProtocolConfig.initialize("admin_1", _settings())
        config.transfer_admin("admin_1", "admin_2")
        assert config.admin == "admin_2"
        with pytest.raises(AuthorizationError):
            config.transfer_admin("admin_1", "admin_3")


def test_statistics():
    config = ProtocolConfig.initialize("admin_1", _settings())
    config.record_launch()
    config.record_trade(1_000_000_000, 8_000_000)
    config.record_trade(500_000_000, 4_000_000)
    config.record_graduation()
    assert config.total_launches == 1
    assert config.total_volume_lamports == 1_500_000_000
    assert config.total_fees_collected == 12_000_000
    assert config.total_graduations == 1
