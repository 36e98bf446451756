from __future__ import annotations

import json

import pytest

from governance import config as gov_config
from governance.config import GovernanceConfig, RoundSchedule, SelectionParams
from governance.errors import ConfigError

_ENV = (
    "GOV_CONFIG_FILE", "GOV_ROUND_ID", "GOV_ADMINS", "GOV_APPLICATION_START_DEADLINE",
    "GOV_APPLICATION_END", "GOV_VOTING_END", "GOV_MAX_WINNERS", "GOV_SCAN_SAFETY_MARGIN",
    "GOV_MAX_APPLICATIONS",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _ENV:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    cfg = GovernanceConfig()
    cfg.validate()
    assert cfg.selection.max_winners == 3
    assert cfg.selection.scan_safety_margin == 100
    assert cfg.registry.max_applications == 0
    assert cfg.schedule.voting_end is None


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("GOV_ROUND_ID", "r7")
    monkeypatch.setenv("GOV_ADMINS", "alice, bob,")
    monkeypatch.setenv("GOV_APPLICATION_END", "2026-11-01T00:00:00Z")
    monkeypatch.setenv("GOV_VOTING_END", "1_800_000_000")
    monkeypatch.setenv("GOV_MAX_WINNERS", "5")

    cfg = gov_config.load()
    assert cfg.round_id == "r7"
    assert cfg.admins == ("alice", "bob")
    assert cfg.schedule.application_end == 1793491200
    assert cfg.schedule.voting_end == 1_800_000_000
    assert cfg.selection.max_winners == 5


def test_yaml_file_then_env(tmp_path, monkeypatch):
    p = tmp_path / "round.yaml"
    p.write_text(
        "round_id: from-file\n"
        "admins: [root]\n"
        "schedule:\n"
        "  application_start_deadline: 100\n"
        "  application_end: 200\n"
        "  voting_end: 300\n"
        "selection:\n"
        "  max_winners: 2\n"
    )
    monkeypatch.setenv("GOV_CONFIG_FILE", str(p))
    monkeypatch.setenv("GOV_MAX_WINNERS", "4")

    cfg = gov_config.load()
    assert cfg.round_id == "from-file"
    assert cfg.admins == ("root",)
    assert cfg.schedule.voting_end == 300
    assert cfg.selection.max_winners == 4


def test_json_round_trip(tmp_path):
    cfg = GovernanceConfig(schedule=RoundSchedule(1, 2, 3), admins=("a",), round_id="x")
    p = tmp_path / "c.json"
    p.write_text(json.dumps(cfg.to_dict()))
    assert gov_config.from_file(p) == cfg


@pytest.mark.parametrize(
    "cfg",
    [
        GovernanceConfig(selection=SelectionParams(max_winners=0)),
        GovernanceConfig(selection=SelectionParams(scan_safety_margin=-1)),
        GovernanceConfig(schedule=RoundSchedule(application_end=10, voting_end=5)),
        GovernanceConfig(schedule=RoundSchedule(application_start_deadline=10, application_end=5)),
        GovernanceConfig(round_id=""),
        GovernanceConfig(admins=("",)),
    ],
)
def test_invalid_configs_rejected(cfg):
    with pytest.raises(ConfigError):
        cfg.validate()


def test_bad_env_value(monkeypatch):
    monkeypatch.setenv("GOV_MAX_WINNERS", "many")
    with pytest.raises(ConfigError):
        gov_config.from_env()
    assert issubclass(ConfigError, ValueError)


@pytest.mark.parametrize(
    "admins, expected",
    [
        ("alice", ("alice",)),
        ("alice, bob", ("alice", "bob")),
        (["alice", "bob"], ("alice", "bob")),
        (None, ()),
    ],
)
def test_admins_from_dict(admins, expected):
    assert GovernanceConfig.from_dict({"admins": admins}).admins == expected


def test_admins_must_be_identities():
    with pytest.raises(ConfigError):
        GovernanceConfig.from_dict({"admins": 5})


@pytest.mark.parametrize(
    "data",
    [
        {"selection": {"max_winners": "many"}},
        {"selection": {"scan_safety_margin": [1]}},
        {"registry": {"max_applications": "lots"}},
        {"selection": "top-3"},
    ],
)
def test_non_numeric_fields_raise_config_error(data):
    with pytest.raises(ConfigError):
        GovernanceConfig.from_dict(data)


def test_numeric_strings_accepted():
    cfg = GovernanceConfig.from_dict({"selection": {"max_winners": "4"}, "registry": {"max_applications": "1_000"}})
    assert cfg.selection.max_winners == 4
    assert cfg.registry.max_applications == 1000
