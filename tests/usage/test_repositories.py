from datetime import timedelta

from app.commons.utils import utcnow


async def test_token_usage_repository__aggregate_for_user(token_usage_repository, regular_user, token_usage_rows):
    totals = await token_usage_repository.aggregate_for_user(regular_user.id)

    assert totals.total_tokens == 40
    assert totals.completion_tokens == 25
    assert totals.message_count == 2


async def test_token_usage_repository__aggregate_for_user__empty_range(
    token_usage_repository, regular_user, token_usage_rows
):
    """Scenario: aggregate a window that ends before any usage.

    Asserts:
        - sums fall back to zero instead of None
    """
    totals = await token_usage_repository.aggregate_for_user(regular_user.id, end=utcnow() - timedelta(days=1))

    assert totals.total_tokens == 0
    assert totals.message_count == 0


async def test_token_usage_repository__sum_cost_since__future_is_zero(
    token_usage_repository, regular_user, token_usage_rows
):
    assert await token_usage_repository.sum_cost_since(regular_user.id, utcnow() + timedelta(days=1)) == 0


async def test_token_usage_repository__count_conversations_ignores_null(
    token_usage_repository, regular_user, token_usage_rows
):
    assert await token_usage_repository.count_conversations(regular_user.id) == 0
