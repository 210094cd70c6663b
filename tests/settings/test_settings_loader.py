"""
Tests for ``ledger_config``: YAML loading, overlay, validation and the
bridges to module config objects.
"""

import pytest
import yaml

from ledger_config import (
    build_inventory_config,
    build_payroll_config,
    build_sales_config,
    engine_options,
    get_active_config,
    logging_options,
)
from ledger_config.loader import load_yaml_file, merge_settings, parse_settings
from ledger_modules.payroll.config import PayrollConfig


@pytest.fixture
def write_settings(tmp_path):
    def _write(data, name="override.yaml"):
        path = tmp_path / name
        path.write_text(yaml.safe_dump(data))
        return path

    return _write


class TestDefaults:

    def test_default_values(self):
        settings = get_active_config()

        assert settings.database.pool_size == 20
        assert settings.logging.level == "INFO"
        assert settings.sales.default_payment_method == "cash"
        assert settings.payroll.default_currency == "BDT"
        assert settings.payroll.lock_on_generate is False
        assert settings.inventory.movement_list_limit == 100
        assert len(settings.checksum) == 64

    def test_checksum_is_stable(self):
        assert get_active_config().checksum == get_active_config().checksum

    def test_load_logged(self, captured_logs):
        settings = get_active_config()
        loaded = [r for r in captured_logs() if r["message"] == "config_loaded"]
        assert loaded[-1]["checksum"] == settings.checksum


class TestOverlay:

    def test_override_replaces_only_named_keys(self, write_settings):
        path = write_settings({"payroll": {"lock_on_generate": True}, "database": {"echo": True}})

        settings = get_active_config(path)

        assert settings.payroll.lock_on_generate is True
        assert settings.payroll.default_currency == "BDT"
        assert settings.database.echo is True
        assert settings.database.pool_size == 20
        assert settings.checksum != get_active_config().checksum

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "absent.yaml")

    def test_empty_file_means_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert get_active_config(path).checksum == get_active_config().checksum

    def test_merge_keeps_base_untouched(self):
        base = {"sales": {"default_payment_method": "cash"}}
        merged = merge_settings(base, {"sales": {"default_payment_method": "card"}})
        assert merged["sales"]["default_payment_method"] == "card"
        assert base["sales"]["default_payment_method"] == "cash"


class TestValidation:

    def test_unknown_section(self):
        with pytest.raises(ValueError, match="unknown settings section"):
            parse_settings({"billing": {}})

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="payroll: unknown keys currency"):
            parse_settings({"payroll": {"currency": "USD"}})

    @pytest.mark.parametrize(
        "data",
        [
            {"database": {"pool_size": "20"}},
            {"database": {"pool_size": True}},
            {"payroll": {"lock_on_generate": 1}},
            {"sales": {"default_payment_method": 3}},
        ],
    )
    def test_wrong_type(self, data):
        with pytest.raises(ValueError, match="expected"):
            parse_settings(data)

    def test_unknown_log_level(self):
        with pytest.raises(ValueError, match="logging.level"):
            parse_settings({"logging": {"level": "CHATTY"}})

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="top level must be a mapping"):
            load_yaml_file(path)

    def test_section_must_be_mapping(self, write_settings):
        path = write_settings({"sales": "card"})
        with pytest.raises(ValueError, match="section 'sales' must be a mapping"):
            get_active_config(path)


class TestBridges:

    def test_module_configs(self, write_settings):
        path = write_settings({
            "sales": {"default_payment_method": "bkash"},
            "payroll": {"lock_on_generate": True},
            "inventory": {"movement_list_limit": 25},
        })
        settings = get_active_config(path)

        assert build_sales_config(settings).default_payment_method == "bkash"
        payroll = build_payroll_config(settings)
        assert isinstance(payroll, PayrollConfig)
        assert payroll.lock_on_generate is True
        assert build_inventory_config(settings).movement_list_limit == 25

    def test_module_config_rejects_bad_currency(self, write_settings):
        settings = get_active_config(write_settings({"payroll": {"default_currency": "TAKA"}}))
        with pytest.raises(ValueError, match="default_currency"):
            build_payroll_config(settings)

    def test_logging_options(self, write_settings):
        settings = get_active_config(write_settings({"logging": {"level": "debug"}}))
        assert logging_options(settings) == {"level": "DEBUG"}

    def test_engine_options_omit_url(self):
        options = engine_options(get_active_config())
        assert "url" not in options
        assert options == {"echo": False, "pool_size": 20, "max_overflow": 10, "pool_timeout": 30}
