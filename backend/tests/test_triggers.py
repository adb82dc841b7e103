"""
Tests for the trigger boundary: credential check, cron flag, dispatch.
"""

import pytest

from corpsim.core.config import Settings
from corpsim.services.turn.scheduler import TurnScheduler
from corpsim.services.turn.triggers import CRON_ENABLED_KEY, run_trigger
from tests.conftest import FIXED_NOW, SECRET


@pytest.fixture
def scheduler(store, test_settings, clock):
    return TurnScheduler(store, test_settings, clock)


@pytest.fixture
def player(seed):
    return seed.user("player")


def test_valid_credential_runs_job(scheduler, store, test_settings, player):
    result = run_trigger("actions", SECRET, scheduler, test_settings)

    assert result["ok"] is True
    assert result["data"]["users_updated"] == 1
    assert store.find_user_by_id(player).actions == 2


@pytest.mark.parametrize("credential", [None, "", "wrong", SECRET + "x"])
def test_bad_credential_rejected(scheduler, store, test_settings, player, credential):
    result = run_trigger("actions", credential, scheduler, test_settings)

    assert result["ok"] is False
    assert result["error"]["kind"] == "unauthorized"
    assert store.find_user_by_id(player).actions == 0


def test_unconfigured_secret_rejects_everything(scheduler, player):
    cfg = Settings(_env_file=None, CRON_SECRET="   ")

    result = run_trigger("actions", "", scheduler, cfg)

    assert result["error"]["kind"] == "unauthorized"


def test_disabled_flag_skips(scheduler, store, test_settings, player):
    store.set_setting(CRON_ENABLED_KEY, "false", FIXED_NOW)

    result = run_trigger("actions", SECRET, scheduler, test_settings)

    assert result["ok"] is True
    assert result["skipped"] is True
    assert store.find_user_by_id(player).actions == 0


def test_flag_read_fresh_each_call(scheduler, store, test_settings, player):
    store.set_setting(CRON_ENABLED_KEY, "false", FIXED_NOW)
    run_trigger("actions", SECRET, scheduler, test_settings)
    store.set_setting(CRON_ENABLED_KEY, "true", FIXED_NOW)

    result = run_trigger("actions", SECRET, scheduler, test_settings)

    assert result["skipped"] is False
    assert store.find_user_by_id(player).actions == 2


def test_unknown_job_is_invalid_input(scheduler, test_settings):
    result = run_trigger("payday", SECRET, scheduler, test_settings)

    assert result["error"]["kind"] == "invalid_input"


def test_turn_dispatch(scheduler, test_settings, player):
    result = run_trigger("turn", SECRET, scheduler, test_settings)

    assert result["job"] == "turn"
    assert result["data"]["aborted_at"] is None


def test_dividends_dispatch(scheduler, test_settings):
    result = run_trigger("dividends", SECRET, scheduler, test_settings)

    assert result["ok"] is True
    assert result["data"]["corporations_paid"] == 0
