import json

import pytest

from utils.config import Config, ConfigError, DEFAULT_DEPARTMENT_GROUPS

AD_VARS = ("AD_SERVER", "AD_USERNAME", "AD_PASSWORD", "BASE_DN", "AD_DOMAIN", "USERS_ROOT_DN",
           "DEPARTMENT_GROUPS_FILE", "DEFAULT_GROUP", "SMTP_PORT", "AD_USE_SSL")


@pytest.fixture
def config(monkeypatch, tmp_path) -> Config:
    for name in AD_VARS:
        monkeypatch.delenv(name, raising=False)
    return Config(str(tmp_path / "missing.env"))


def test_missing_ad_vars(config, monkeypatch) -> None:
    monkeypatch.setenv("AD_SERVER", "ldaps://dc1.x.local")

    assert not config.validate_ad_config()
    assert config.get_missing_ad_vars() == ["AD_USERNAME", "AD_PASSWORD", "BASE_DN"]


def test_domain_and_users_root_derive_from_base_dn(config, monkeypatch) -> None:
    monkeypatch.setenv("BASE_DN", "DC=x,DC=local")

    assert config.ad_domain == "x.local"
    assert config.users_root_dn == "DC=x,DC=local"

    monkeypatch.setenv("AD_DOMAIN", "corp.example")
    monkeypatch.setenv("USERS_ROOT_DN", "OU=Staff,DC=x,DC=local")
    assert config.ad_domain == "corp.example"
    assert config.users_root_dn == "OU=Staff,DC=x,DC=local"


def test_flags(config, monkeypatch) -> None:
    assert config.ad_use_ssl is True
    monkeypatch.setenv("AD_USE_SSL", "no")
    assert config.ad_use_ssl is False


def test_bad_smtp_port(config, monkeypatch) -> None:
    monkeypatch.setenv("SMTP_PORT", "smtp")
    with pytest.raises(ConfigError):
        config.smtp_port


def test_default_group_policy(config) -> None:
    policy = config.load_group_policy()

    assert policy.groups_for("IT") == tuple(DEFAULT_DEPARTMENT_GROUPS["IT"])
    assert policy.groups_for("it ") == tuple(DEFAULT_DEPARTMENT_GROUPS["IT"])
    assert policy.groups_for("Unknown") == ("Domain Users",)


def test_group_policy_from_file_is_read_only(config, monkeypatch, tmp_path) -> None:
    path = tmp_path / "groups.json"
    path.write_text(json.dumps({"Legal": ["Legal Staff", "Contracts"]}), encoding="utf-8")
    monkeypatch.setenv("DEPARTMENT_GROUPS_FILE", str(path))
    monkeypatch.setenv("DEFAULT_GROUP", "All Staff")

    policy = config.load_group_policy()

    assert policy.groups_for("Legal") == ("Legal Staff", "Contracts")
    assert policy.groups_for("IT") == ("All Staff",)
    with pytest.raises(TypeError):
        policy.mapping["it"] = ("x",)


def test_malformed_group_policy_file(config, monkeypatch, tmp_path) -> None:
    path = tmp_path / "groups.json"
    path.write_text(json.dumps({"Legal": "Legal Staff"}), encoding="utf-8")
    monkeypatch.setenv("DEPARTMENT_GROUPS_FILE", str(path))

    with pytest.raises(ConfigError):
        config.load_group_policy()
