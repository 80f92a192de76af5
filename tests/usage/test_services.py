from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from app.usage.exceptions import UsageReferenceNotFoundException, UsageTrackingException
from app.usage.models import TokenUsage
from app.usage.schemas import UsageFilter, UsageRecordCreate
from app.usage.services import UsageService
from app.users.enums import UserRole


async def _rows_for(db_session, user_id: int) -> list[TokenUsage]:
    result = await db_session.execute(select(TokenUsage).where(TokenUsage.user_id == user_id))
    return list(result.scalars().all())


async def test_usage_service__record_usage__charges_running_counter(
    usage_service, db_session, regular_user, regular_user_permission, catalog_model
):
    """Scenario: record explicit counts for a limited user.

    Asserts:
        - the row carries the counts, the model key and the token-linear cost
        - the permission counter grows by the total
    """
    usage = await usage_service.record_usage(
        UsageRecordCreate(user_id=regular_user.id, model_id=catalog_model.id, prompt_tokens=20, completion_tokens=30)
    )

    assert usage.total_tokens == 50
    assert usage.model_key == "gpt-4o-mini"
    assert usage.provider_id == catalog_model.provider_id
    assert usage.is_estimated is False
    assert usage.cost == (Decimal(20) * Decimal("0.15") + Decimal(30) * Decimal("0.6")) / Decimal(1_000_000)

    await db_session.refresh(regular_user_permission)
    assert regular_user_permission.token_used == 50


async def test_usage_service__record_usage__guest_usage_is_mirrored_to_host(
    usage_service, db_session, guest_user, regular_user, regular_user_permission, catalog_model
):
    """Scenario: a guest hosted by alice uses 12 tokens.

    Asserts:
        - one row for the guest and one identical row for the host
        - the host's counter is charged
    """
    await usage_service.record_usage(
        UsageRecordCreate(user_id=guest_user.id, model_id=catalog_model.id, prompt_tokens=4, completion_tokens=8)
    )

    guest_rows = await _rows_for(db_session, guest_user.id)
    host_rows = await _rows_for(db_session, regular_user.id)
    assert [r.total_tokens for r in guest_rows] == [12]
    assert [r.total_tokens for r in host_rows] == [12]
    assert host_rows[0].cost == guest_rows[0].cost

    await db_session.refresh(regular_user_permission)
    assert regular_user_permission.token_used == 12


async def test_usage_service__record_usage__mirror_failure_keeps_guest_row(
    usage_service, db_session, guest_user, regular_user_permission, catalog_model, mocker
):
    """Scenario: charging the host fails.

    Asserts:
        - the guest's row is kept and the error does not propagate
    """
    original_charge = usage_service._charge

    async def failing_charge(user_id, tokens):
        if user_id == regular_user_permission.user_id:
            raise OperationalError("UPDATE", {}, Exception("locked"))
        await original_charge(user_id, tokens)

    mocker.patch.object(usage_service, "_charge", side_effect=failing_charge)

    usage = await usage_service.record_usage(
        UsageRecordCreate(user_id=guest_user.id, model_id=catalog_model.id, prompt_tokens=1, completion_tokens=1)
    )

    assert usage.user_id == guest_user.id
    assert await _rows_for(db_session, regular_user_permission.user_id) == []


async def test_usage_service__record_usage__tracking_disabled(usage_service, regular_user, token_tracking_disabled):
    result = await usage_service.record_usage(
        UsageRecordCreate(user_id=regular_user.id, prompt_tokens=1, completion_tokens=1)
    )
    assert result is None


async def test_usage_service__record_usage__unknown_user(usage_service):
    with pytest.raises(UsageTrackingException):
        await usage_service.record_usage(UsageRecordCreate(user_id=424242, prompt_tokens=1, completion_tokens=1))


@pytest.mark.parametrize(
    "field, value",
    [("provider_id", 9999), ("model_id", 9999), ("conversation_id", 9999), ("message_id", 9999)],
)
async def test_usage_service__record_usage__unknown_references_are_rejected(
    usage_service, db_session, regular_user, catalog_model, field, value
):
    """Scenario: a manual record points at rows that do not exist.

    Asserts:
        - a not-found error is raised before anything is written
    """
    record_in = UsageRecordCreate(user_id=regular_user.id, prompt_tokens=1, completion_tokens=1)
    setattr(record_in, field, value)

    with pytest.raises(UsageReferenceNotFoundException):
        await usage_service.record_usage(record_in)

    assert await _rows_for(db_session, regular_user.id) == []


async def test_usage_service__record_usage__foreign_conversation_is_rejected(
    usage_service, db_session, regular_user, other_conversation, catalog_model
):
    with pytest.raises(UsageReferenceNotFoundException, match="Conversation"):
        await usage_service.record_usage(
            UsageRecordCreate(
                user_id=regular_user.id,
                conversation_id=other_conversation.id,
                model_id=catalog_model.id,
                prompt_tokens=1,
                completion_tokens=1,
            )
        )


async def test_usage_service__record_usage__own_conversation_and_message(
    usage_service, regular_user, conversation, message, catalog_model
):
    usage = await usage_service.record_usage(
        UsageRecordCreate(
            user_id=regular_user.id,
            conversation_id=conversation.id,
            message_id=message.id,
            provider_id=catalog_model.provider_id,
            model_id=catalog_model.id,
            prompt_tokens=1,
            completion_tokens=1,
        )
    )

    assert usage.conversation_id == conversation.id
    assert usage.message_id == message.id

async def test_usage_service__record_usage__estimates_from_texts(usage_service, regular_user, catalog_model):
    usage = await usage_service.record_usage(
        UsageRecordCreate(
            user_id=regular_user.id, model_id=catalog_model.id, input_text="hello world", output_text="Hi"
        )
    )

    assert usage.prompt_tokens == 2
    assert usage.completion_tokens == 1
    assert usage.is_estimated is True
    assert usage.input_chars == len("hello world")


@pytest.mark.parametrize(
    "record_kwargs, expected",
    [
        ({"prompt_tokens": 3, "completion_tokens": 4}, (3, 4, 7)),
        ({"prompt_tokens": 3}, (3, 0, 3)),
        ({"total_tokens": 9}, (0, 9, 9)),
        ({"input_text": "a b", "output_text": "c"}, (2, 1, 3)),
    ],
)
def test_usage_service__resolve_counts(record_kwargs, expected):
    counts = UsageService.resolve_counts(UsageRecordCreate(user_id=1, **record_kwargs))
    assert (counts.prompt_tokens, counts.completion_tokens, counts.total_tokens) == expected


async def test_usage_service__get_user_stats(usage_service, regular_user, token_usage_rows):
    stats = await usage_service.get_user_stats(regular_user.id)

    assert stats.total_tokens == 40
    assert stats.prompt_tokens == 15
    assert stats.message_count == 2
    assert stats.today_tokens == 40


async def test_usage_service__get_user_history__newest_first(usage_service, regular_user, token_usage_rows):
    history = await usage_service.get_user_history(regular_user.id, UsageFilter(limit=1))

    assert len(history) == 1
    assert history[0].id == token_usage_rows[1].id


async def test_usage_service__get_leaderboard__orders_by_tokens(
    usage_service, admin_user, regular_user, token_usage_rows
):
    leaderboard = await usage_service.get_leaderboard()

    assert [entry.user_id for entry in leaderboard] == [admin_user.id, regular_user.id]
    assert leaderboard[0].role == UserRole.ADMIN
    assert leaderboard[1].total_tokens == 40
    assert leaderboard[1].message_count == 2


async def test_usage_service__get_model_stats(usage_service, catalog_model, token_usage_rows):
    stats = await usage_service.get_model_stats()

    assert len(stats) == 1
    assert stats[0].model_key == "gpt-4o-mini"
    assert stats[0].total_tokens == 240
    assert stats[0].message_count == 3


async def test_usage_service__get_user_limit_statuses(usage_service, regular_user_permission, token_usage_rows):
    statuses = await usage_service.get_user_limit_statuses()

    assert len(statuses) == 1
    assert statuses[0].username == "alice"
    assert statuses[0].token_limit == 1000
    assert float(statuses[0].cost_used) == pytest.approx(0.000017)
