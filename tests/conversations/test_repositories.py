from app.conversations.enums import MessageRole
from app.conversations.models import Conversation, Message


async def test_message_repository__search__escapes_wildcards(
    db_session, message_repository, conversation, message, regular_user
):
    """Scenario: search for text containing LIKE wildcards.

    Asserts:
        - "100%" matches literally
        - "%" alone does not match every message
    """
    db_session.add(
        Message(conversation_id=conversation.id, user_id=regular_user.id, role=MessageRole.ASSISTANT, content="Lisbon")
    )
    await db_session.flush()

    assert [m.id for m in await message_repository.search(regular_user.id, "100%")] == [message.id]
    assert await message_repository.search(regular_user.id, "_%") == []


async def test_message_repository__search__only_own_conversations(
    db_session, message_repository, message, admin_user
):
    assert await message_repository.search(admin_user.id, "sunny") == []


async def test_message_repository__list_for_conversation__skips_deleted(
    db_session, message_repository, conversation, message, regular_user
):
    deleted = Message(
        conversation_id=conversation.id,
        user_id=regular_user.id,
        role=MessageRole.ASSISTANT,
        content="gone",
        is_deleted=True,
    )
    db_session.add(deleted)
    await db_session.flush()

    visible = await message_repository.list_for_conversation(conversation.id)
    everything = await message_repository.list_for_conversation(conversation.id, include_deleted=True)

    assert [m.id for m in visible] == [message.id]
    assert [m.id for m in everything] == [message.id, deleted.id]


async def test_conversation_repository__list_for_user__pinned_first_and_archived_hidden(
    db_session, conversation_repository, conversation, regular_user
):
    """Scenario: a user has a plain, a pinned and an archived conversation.

    Asserts:
        - the pinned one is listed first
        - archived ones only appear when asked for
    """
    pinned = Conversation(user_id=regular_user.id, title="Pinned", is_pinned=True)
    archived = Conversation(user_id=regular_user.id, title="Old", is_archived=True)
    db_session.add_all([pinned, archived])
    await db_session.flush()

    listed = await conversation_repository.list_for_user(regular_user.id)
    with_archived = await conversation_repository.list_for_user(regular_user.id, include_archived=True)

    assert [c.id for c in listed] == [pinned.id, conversation.id]
    assert archived.id in [c.id for c in with_archived]


async def test_conversation_repository__get_for_user__other_owner(
    conversation_repository, conversation, admin_user
):
    assert await conversation_repository.get_for_user(conversation.id, admin_user.id) is None
