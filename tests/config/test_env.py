"""Tests for environment configuration helpers."""

from unittest.mock import patch

import pytest

from saasbilling.config import BillingConfig, EnvConfig, EnvValidator, env
from saasbilling.config.env import get_bool_env, get_int_env, get_list_env
from saasbilling.config.validation import ConfigValidationError


class TestEnvHelpers:
  def test_int_env_falls_back_on_garbage(self, monkeypatch):
    monkeypatch.setenv("SOME_INT", "not-a-number")
    assert get_int_env("SOME_INT", 5) == 5

  def test_bool_env(self, monkeypatch):
    monkeypatch.setenv("SOME_FLAG", "yes")
    assert get_bool_env("SOME_FLAG") is True
    monkeypatch.setenv("SOME_FLAG", "off")
    assert get_bool_env("SOME_FLAG") is False

  def test_list_env(self, monkeypatch):
    monkeypatch.setenv("SOME_LIST", "a, b,,c ")
    assert get_list_env("SOME_LIST") == ["a", "b", "c"]


class TestStripePriceLookup:
  def test_price_id_from_environment(self, monkeypatch):
    monkeypatch.setenv("STRIPE_PRICE_PRO_PLUS_YEARLY", "price_abc")
    assert EnvConfig.get_stripe_price_id("Pro Plus", "yearly") == "price_abc"

  def test_missing_price_id(self, monkeypatch):
    monkeypatch.delenv("STRIPE_PRICE_ENTERPRISE_MONTHLY", raising=False)
    assert EnvConfig.get_stripe_price_id("Enterprise", "MONTHLY") is None


class TestBillingConfig:
  def test_cycle_labels(self):
    assert BillingConfig.get_cycle_label("MONTHLY") == "Monthly"
    assert BillingConfig.get_cycle_label("YEARLY") == "Annual"


class TestStartupValidation:
  def test_test_environment_passes(self):
    EnvValidator.validate_required_vars(env)

  def test_production_requires_strong_secret(self):
    with (
      patch.object(EnvConfig, "ENVIRONMENT", "prod"),
      patch.object(EnvConfig, "JWT_SECRET_KEY", "short"),
    ):
      with pytest.raises(ConfigValidationError):
        EnvValidator.validate_required_vars(env)

  def test_production_rejects_test_stripe_key(self):
    with (
      patch.object(EnvConfig, "ENVIRONMENT", "prod"),
      patch.object(EnvConfig, "STRIPE_SECRET_KEY", "sk_test_abc"),
    ):
      with pytest.raises(ConfigValidationError):
        EnvValidator.validate_required_vars(env)
