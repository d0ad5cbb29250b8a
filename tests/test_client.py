import asyncio

import pytest
from stellar_sdk import Keypair

from microstellar import (
    NATIVE_ASSET,
    Asset,
    AssetType,
    FakeLedger,
    HorizonLedger,
    InvalidAddressError,
    InvalidAssetError,
    InvalidInputError,
    LoadError,
    MicroStellar,
    RemoteError,
    StreamError,
    error_string,
    opts,
)
from tests.fakes import FailingLedger, FakeAsyncMethod, RecordingHook


def test_network_selection():
    assert isinstance(MicroStellar("fake").ledger, FakeLedger)
    assert MicroStellar("fake").fake

    live = MicroStellar("test")
    assert isinstance(live.ledger, HorizonLedger)
    assert live.ledger.horizon_url == "https://horizon-testnet.stellar.org"
    assert not live.fake

    with pytest.raises(ValueError):
        MicroStellar("custom", horizon_url="http://localhost:8000")
    with pytest.raises(ValueError):
        MicroStellar("moon")


def test_create_keypair(ms):
    pair = ms.create_keypair()
    assert Keypair.from_secret(pair.seed).public_key == pair.address


@pytest.mark.asyncio
async def test_fake_pay_native(ms, fake_ledger, source, target):
    response = await ms.pay_native(source.secret, target.public_key, "3", opts().with_memo_text("for shelter"))

    assert response["successful"]
    assert len(fake_ledger.submitted) == 1


@pytest.mark.asyncio
async def test_fake_pay_credit(ms, source, target):
    asset = Asset("QBIT", Keypair.random().public_key, AssetType.CREDIT4)
    response = await ms.pay(source.secret, target.public_key, "5", asset)
    assert response["successful"]


@pytest.mark.asyncio
async def test_pay_invalid_target_never_reaches_ledger(ms, fake_ledger, source):
    fake_ledger.submit = FakeAsyncMethod(return_value={})

    with pytest.raises(InvalidAddressError, match="nobody"):
        await ms.pay(source.secret, "nobody", "3", NATIVE_ASSET)

    fake_ledger.submit.assert_not_called()


@pytest.mark.asyncio
async def test_pay_invalid_asset(ms, source, target):
    with pytest.raises(InvalidAssetError):
        await ms.pay(source.secret, target.public_key, "3", Asset("", "", AssetType.CREDIT4))


@pytest.mark.asyncio
async def test_pay_vetoed(ms, fake_ledger, source, target):
    hook = RecordingHook(proceed=False)
    response = await ms.pay_native(source.secret, target.public_key, "3", opts().on_before_submit(hook))

    assert response is None
    assert len(hook.envelopes) == 1
    assert fake_ledger.submitted == []


@pytest.mark.asyncio
async def test_submit_failure_raises_remote_error(source, target):
    ms = MicroStellar("fake", ledger=FailingLedger(submit_error=ConnectionError("reset")))

    with pytest.raises(RemoteError) as excinfo:
        await ms.pay_native(source.secret, target.public_key, "3")

    assert excinfo.value.stage == "submit"
    assert "reset" in error_string(excinfo.value)


@pytest.mark.asyncio
async def test_fund_account(ms, source, target):
    response = await ms.fund_account(source.secret, target.secret, "2")
    assert response["successful"]

    with pytest.raises(InvalidAddressError):
        await ms.fund_account(source.secret, "bad", "2")


@pytest.mark.asyncio
async def test_load_account_fake(ms, source):
    account = await ms.load_account(source.secret)
    assert account.address == source.public_key
    assert account.native_balance == "0"

    with pytest.raises(InvalidAddressError):
        await ms.load_account("nope")


@pytest.mark.asyncio
async def test_trust_lines(ms, source):
    asset = Asset("USD", Keypair.random().public_key, AssetType.CREDIT4)

    assert (await ms.create_trust_line(source.secret, asset, "1000"))["successful"]
    assert (await ms.create_trust_line(source.secret, asset))["successful"]
    assert (await ms.remove_trust_line(source.secret, asset))["successful"]

    with pytest.raises(InvalidInputError):
        await ms.create_trust_line(source.secret, NATIVE_ASSET)


@pytest.mark.asyncio
async def test_signers_and_thresholds(ms, source, target):
    assert (await ms.add_signer(source.secret, target.public_key, 1))["successful"]
    assert (await ms.remove_signer(source.secret, target.public_key))["successful"]
    assert (await ms.set_master_weight(source.secret, 0))["successful"]
    assert (await ms.set_thresholds(source.secret, 1, 2, 2))["successful"]


@pytest.mark.asyncio
@pytest.mark.parametrize("weight", [-1, 256])
async def test_bad_weight(ms, source, weight):
    with pytest.raises(InvalidInputError):
        await ms.set_master_weight(source.secret, weight)


@pytest.mark.asyncio
async def test_multisig_payment(ms, fake_ledger, source, target):
    cosigner = Keypair.random()
    response = await ms.pay_native(source.public_key, target.public_key, "1",
                                   opts().with_signer(cosigner.secret))
    assert response["successful"]


@pytest.mark.asyncio
async def test_resolve_federation(ms, fake_ledger, target):
    fake_ledger.add_federation("bob*example.com", target.public_key)
    assert await ms.resolve("bob*example.com") == target.public_key

    with pytest.raises(LookupError):
        await ms.resolve("alice*example.com")

    fake_ledger.add_federation("eve*example.com", "garbage")
    with pytest.raises(InvalidAddressError):
        await ms.resolve("eve*example.com")


# --- Against a local Horizon ---

@pytest.mark.asyncio
async def test_horizon_load_account(mock_horizon, source):
    mock_horizon.set_account(source.public_key)
    ms = MicroStellar("custom", horizon_url=mock_horizon.url, passphrase=mock_horizon.passphrase)

    account = await ms.load_account(source.public_key)

    assert account.native_balance == "100.0000000"
    assert account.sequence == 123
    assert mock_horizon.get_requests("accounts")[0]["account_id"] == source.public_key


@pytest.mark.asyncio
async def test_horizon_missing_account(mock_horizon, source):
    ms = MicroStellar("custom", horizon_url=mock_horizon.url, passphrase=mock_horizon.passphrase)

    with pytest.raises(LoadError):
        await ms.load_account(source.public_key)


@pytest.mark.asyncio
async def test_horizon_pay(mock_horizon, source, target):
    mock_horizon.set_account(source.public_key)
    ms = MicroStellar("custom", horizon_url=mock_horizon.url, passphrase=mock_horizon.passphrase)

    response = await ms.pay_native(source.secret, target.public_key, "3")

    assert response["hash"] == "abc123"
    assert len(mock_horizon.get_requests("transactions")) == 1


@pytest.mark.asyncio
async def test_horizon_rejection(mock_horizon, source, target):
    mock_horizon.set_account(source.public_key)
    mock_horizon.reject_transactions("tx_failed", ["op_underfunded"])
    ms = MicroStellar("custom", horizon_url=mock_horizon.url, passphrase=mock_horizon.passphrase)

    with pytest.raises(RemoteError) as excinfo:
        await ms.pay_native(source.secret, target.public_key, "3")

    assert error_string(excinfo.value) == (
        "Transaction Failed: The transaction failed when submitted to the stellar network. "
        "(tx_failed, op_underfunded)"
    )


async def collect(watcher):
    return [payment async for payment in watcher]


@pytest.mark.asyncio
async def test_horizon_watch_payments(mock_horizon, source, target):
    issuer = Keypair.random().public_key
    mock_horizon.add_payment(target.public_key, source.public_key, "10.0000000")
    mock_horizon.add_payment(source.public_key, target.public_key, "2.5000000", "USD", issuer)
    ms = MicroStellar("custom", horizon_url=mock_horizon.url, passphrase=mock_horizon.passphrase)

    watcher = await ms.watch_payments(source.public_key, opts().with_cursor("12345"))
    payments = await asyncio.wait_for(collect(watcher), timeout=30)

    assert [p.paging_token for p in payments] == ["1", "2"]
    assert payments[0].from_account == target.public_key
    assert payments[0].to_account == source.public_key
    assert payments[0].amount == "10.0000000"
    assert payments[0].asset is NATIVE_ASSET
    assert payments[1].asset == Asset("USD", issuer, AssetType.CREDIT4)
    assert payments[1].transaction_hash == "hash2"

    request = mock_horizon.get_requests("payments")[0]
    assert request["account_id"] == source.public_key
    assert request["cursor"] == "12345"

    assert watcher.closed
    assert isinstance(watcher.err, StreamError)
    assert watcher.err.stage == "stream"


@pytest.mark.asyncio
async def test_horizon_stream_starts_at_tip(mock_horizon, source, target):
    mock_horizon.add_payment(target.public_key, source.public_key, "1.0000000")
    ledger = HorizonLedger(mock_horizon.url, mock_horizon.passphrase)

    stream = ledger.stream_payments(source.public_key)
    try:
        payment = await asyncio.wait_for(stream.__anext__(), timeout=30)
    finally:
        await stream.aclose()

    assert payment.amount == "1.0000000"
    assert mock_horizon.get_requests("payments")[0]["cursor"] == "now"
