"""Usage accountant tests."""

import pytest

from loomflow.usage import Usage, UsageAccountant


def test_update_stats_accumulates_totals_and_per_model():
    accountant = UsageAccountant()
    accountant.update_stats(
        "anthropic/claude-3-sonnet",
        Usage(prompt_tokens=1000, completion_tokens=500, total_tokens=1500),
    )
    accountant.update_stats(
        "anthropic/claude-3-sonnet",
        Usage(prompt_tokens=10, completion_tokens=0, total_tokens=10),
    )

    stats = accountant.get_stats()
    assert stats.total_requests == 2
    assert stats.total_tokens == 1510
    expected = (1010 / 1e6) * 3.0 + (500 / 1e6) * 15.0
    assert stats.total_cost == pytest.approx(expected)
    bucket = stats.by_model["anthropic/claude-3-sonnet"]
    assert bucket.requests == 2
    assert bucket.tokens == 1510
    assert bucket.cost == pytest.approx(expected)


def test_unknown_model_counts_tokens_at_zero_cost():
    accountant = UsageAccountant()
    cost = accountant.update_stats(
        "vendor/unknown", Usage(prompt_tokens=5, completion_tokens=5, total_tokens=10)
    )
    stats = accountant.get_stats()
    assert cost == 0
    assert stats.total_tokens == 10
    assert stats.by_model["vendor/unknown"].cost == 0


def test_record_request_counts_without_tokens():
    accountant = UsageAccountant()
    accountant.record_request("openai/gpt-4")
    stats = accountant.get_stats()
    assert stats.total_requests == 1
    assert stats.total_tokens == 0
    assert stats.by_model["openai/gpt-4"].requests == 1


def test_get_stats_returns_a_copy():
    accountant = UsageAccountant()
    accountant.record_request("openai/gpt-4")
    snapshot = accountant.get_stats()
    snapshot.total_requests = 99
    snapshot.by_model["openai/gpt-4"].requests = 99
    assert accountant.get_stats().total_requests == 1
    assert accountant.get_stats().by_model["openai/gpt-4"].requests == 1


def test_reset_stats_clears_everything():
    accountant = UsageAccountant()
    accountant.update_stats(
        "openai/gpt-4", Usage(prompt_tokens=1, completion_tokens=1, total_tokens=2)
    )
    accountant.reset_stats()
    stats = accountant.get_stats()
    assert stats.total_requests == 0
    assert stats.total_tokens == 0
    assert stats.total_cost == 0
    assert stats.by_model == {}
