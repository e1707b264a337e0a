import asyncio

import fakeredis
import pytest

from apps.workers.otp_sweeper import OtpSweeper
from services.otp import MemoryOtpStore, OtpOutcome, OtpVerifier, RedisOtpStore, generate_code


@pytest.fixture(params=["memory", "redis"])
async def store(request, clock):
    """Both stores behind the same contract, driven by the fake clock."""
    if request.param == "memory":
        yield MemoryOtpStore(clock=clock)
        return

    client = fakeredis.FakeAsyncRedis(decode_responses=True)
    yield RedisOtpStore(client, clock=clock)
    await client.aclose()


def test_generate_code_is_four_digits():
    for _ in range(200):
        code = generate_code()
        assert len(code) == 4
        assert 1000 <= int(code) <= 9999


async def test_wrong_then_right_then_reused(store):
    await store.store("a@mail.mcgill.ca", "4821", 10)

    assert await store.verify("a@mail.mcgill.ca", "1111") is OtpOutcome.INVALID_CODE
    assert await store.verify("a@mail.mcgill.ca", "4821") is OtpOutcome.VALID
    assert await store.verify("a@mail.mcgill.ca", "4821") is OtpOutcome.NOT_FOUND


async def test_failed_attempt_is_counted():
    store = MemoryOtpStore()
    await store.store("a@mail.mcgill.ca", "4821", 10)

    await store.verify("a@mail.mcgill.ca", "1111")

    assert store.attempts("a@mail.mcgill.ca") == 1


async def test_sixth_attempt_is_locked_out_even_with_correct_code(store):
    await store.store("a@mail.mcgill.ca", "4821", 10)

    for _ in range(5):
        assert await store.verify("a@mail.mcgill.ca", "0000") is OtpOutcome.INVALID_CODE

    assert await store.verify("a@mail.mcgill.ca", "4821") is OtpOutcome.MAX_ATTEMPTS
    # Lockout does not consume the record
    assert await store.verify("a@mail.mcgill.ca", "4821") is OtpOutcome.MAX_ATTEMPTS


async def test_last_allowed_attempt_can_succeed(store):
    await store.store("a@mail.mcgill.ca", "4821", 10)

    for _ in range(4):
        await store.verify("a@mail.mcgill.ca", "0000")

    assert await store.verify("a@mail.mcgill.ca", "4821") is OtpOutcome.VALID


async def test_expired_then_not_found(store, clock):
    await store.store("a@mail.mcgill.ca", "4821", 10)
    clock.advance(minutes=11)

    assert await store.verify("a@mail.mcgill.ca", "4821") is OtpOutcome.EXPIRED
    assert await store.verify("a@mail.mcgill.ca", "4821") is OtpOutcome.NOT_FOUND


async def test_new_code_replaces_old_and_resets_attempts(store):
    await store.store("a@mail.mcgill.ca", "4821", 10)
    for _ in range(5):
        await store.verify("a@mail.mcgill.ca", "0000")

    await store.store("a@mail.mcgill.ca", "5555", 10)

    assert await store.verify("a@mail.mcgill.ca", "4821") is OtpOutcome.INVALID_CODE
    assert await store.verify("a@mail.mcgill.ca", "5555") is OtpOutcome.VALID


async def test_email_is_case_insensitive(store):
    await store.store("Alice@Mail.McGill.ca", "4821", 10)

    assert await store.has_valid("alice@mail.mcgill.ca")
    assert await store.verify("ALICE@mail.mcgill.ca", "4821") is OtpOutcome.VALID


async def test_has_valid_and_delete(store, clock):
    await store.store("a@mail.mcgill.ca", "4821", 10)
    assert await store.has_valid("a@mail.mcgill.ca")

    await store.delete("a@mail.mcgill.ca")
    assert not await store.has_valid("a@mail.mcgill.ca")

    await store.store("a@mail.mcgill.ca", "4821", 10)
    clock.advance(minutes=11)
    assert not await store.has_valid("a@mail.mcgill.ca")


async def test_purge_expired_keeps_live_codes(store, clock):
    await store.store("old@mail.mcgill.ca", "1234", 5)
    await store.store("new@mail.mcgill.ca", "5678", 30)
    clock.advance(minutes=10)

    assert await store.purge_expired() == 1
    assert await store.verify("old@mail.mcgill.ca", "1234") is OtpOutcome.NOT_FOUND
    assert await store.verify("new@mail.mcgill.ca", "5678") is OtpOutcome.VALID


async def test_redis_record_carries_native_ttl(clock):
    client = fakeredis.FakeAsyncRedis(decode_responses=True)
    store = RedisOtpStore(client, clock=clock, grace_seconds=300)

    await store.store("a@mail.mcgill.ca", "4821", 10)

    ttl = await client.ttl("otp:a@mail.mcgill.ca")
    assert 600 < ttl <= 900
    await client.aclose()


async def test_verifier_issues_and_verifies(otp_store):
    verifier = OtpVerifier(otp_store, ttl_minutes=10)

    code = await verifier.issue("a@mail.mcgill.ca")

    assert await otp_store.has_valid("a@mail.mcgill.ca")
    assert await verifier.verify("a@mail.mcgill.ca", code) is OtpOutcome.VALID


async def test_sweeper_purges_once(clock):
    store = MemoryOtpStore(clock=clock)
    await store.store("a@mail.mcgill.ca", "4821", 1)
    clock.advance(minutes=2)

    sweeper = OtpSweeper(store, interval_seconds=60)

    assert await sweeper.sweep_once() == 1
    assert not await store.has_valid("a@mail.mcgill.ca")


async def test_sweeper_runs_in_background(clock):
    store = MemoryOtpStore(clock=clock)
    await store.store("a@mail.mcgill.ca", "4821", 1)
    clock.advance(minutes=2)

    sweeper = OtpSweeper(store, interval_seconds=0.01)
    sweeper.start()
    try:
        for _ in range(100):
            if store.attempts("a@mail.mcgill.ca") is None:
                break
            await asyncio.sleep(0.01)
    finally:
        await sweeper.stop()

    assert store.attempts("a@mail.mcgill.ca") is None
    assert not sweeper.running
