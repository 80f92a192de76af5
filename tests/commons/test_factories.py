from app.commons.factories import build_rate_limit_store, build_rate_limiter, build_reset_token_store


async def test_build_reset_token_store__is_shared():
    assert await build_reset_token_store() is await build_reset_token_store()


async def test_build_rate_limiter__uses_its_own_store():
    limiter = await build_rate_limiter()

    assert limiter.store is await build_rate_limit_store()
    assert limiter.store is not await build_reset_token_store()


async def test_build_rate_limiter__many_clients_do_not_evict_reset_tokens(mocker):
    """Scenario: a small store size, one pending reset token, then hits from many client addresses.

    Asserts:
        - the reset token is still readable
    """
    mocker.patch("app.commons.factories.settings.CACHE_MAX_SIZE", 3)
    reset_store = await build_reset_token_store()
    await reset_store.set("password_reset:abc", 7, ttl=600)

    limiter = await build_rate_limiter()
    for i in range(10):
        await limiter.hit(f"10.0.0.{i}")

    assert await reset_store.get("password_reset:abc") == 7
