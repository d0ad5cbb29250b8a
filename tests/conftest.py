import json
import socket

import pytest
from aiohttp import web
from stellar_sdk import Keypair, Network

from lumen.store import MemoryStore, NamespacedStore
from microstellar import FakeLedger, MicroStellar


# --- Helpers ---

def get_free_port():
    """Finds a free port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("", 0))
        return s.getsockname()[1]


# --- Fixtures: keys and clients ---

@pytest.fixture
def source():
    return Keypair.random()


@pytest.fixture
def target():
    return Keypair.random()


@pytest.fixture
def fake_ledger():
    return FakeLedger(interval=0.01)


@pytest.fixture
def ms(fake_ledger):
    return MicroStellar("fake", ledger=fake_ledger)


@pytest.fixture
async def store():
    backend = NamespacedStore(MemoryStore(), "test")
    yield backend
    await backend.close()


# --- Mock Horizon Server ---

@pytest.fixture(scope="function")
def horizon_server_config():
    port = get_free_port()
    return {"host": "localhost", "port": port, "url": f"http://localhost:{port}"}


@pytest.fixture
async def mock_horizon(horizon_server_config):
    """Starts a local mock Stellar Horizon server."""

    class HorizonMockState:
        def __init__(self):
            self.url = horizon_server_config["url"]
            self.passphrase = Network.TESTNET_NETWORK_PASSPHRASE
            self.requests = []
            self.accounts = {}
            self.transaction_response = {"successful": True, "hash": "abc123"}
            self.transaction_status = 200
            self.payments = []

        def set_account(self, account_id, balances=None):
            self.accounts[account_id] = {
                "id": account_id,
                "account_id": account_id,
                "sequence": "123",
                "balances": balances or [{"asset_type": "native", "balance": "100.0000000"}],
                "signers": [{"key": account_id, "weight": 1}],
                "thresholds": {"low_threshold": 0, "med_threshold": 1, "high_threshold": 2},
                "data": {},
                "flags": {"auth_required": False, "auth_revocable": False},
            }

        def reject_transactions(self, tx_code, op_codes):
            self.transaction_status = 400
            self.transaction_response = {
                "type": "https://stellar.org/horizon-errors/transaction_failed",
                "title": "Transaction Failed",
                "status": 400,
                "detail": "The transaction failed when submitted to the stellar network.",
                "extras": {"result_codes": {"transaction": tx_code, "operations": op_codes}},
            }

        def add_payment(self, from_account, to_account, amount, asset_code=None, asset_issuer=None):
            n = len(self.payments) + 1
            record = {
                "id": str(n),
                "paging_token": str(n),
                "type": "payment",
                "created_at": "2024-01-01T00:00:00Z",
                "transaction_hash": f"hash{n}",
                "from": from_account,
                "to": to_account,
                "amount": amount,
                "asset_type": "native",
            }
            if asset_code:
                record["asset_type"] = "credit_alphanum4" if len(asset_code) <= 4 else "credit_alphanum12"
                record["asset_code"] = asset_code
                record["asset_issuer"] = asset_issuer
            self.payments.append(record)

        def get_requests(self, endpoint=None):
            if endpoint:
                return [r for r in self.requests if r["endpoint"] == endpoint]
            return self.requests

    state = HorizonMockState()

    routes = web.RouteTableDef()

    @routes.get("/accounts/{account_id}")
    async def get_account(request):
        account_id = request.match_info['account_id']
        state.requests.append({"endpoint": "accounts", "method": "GET", "account_id": account_id})

        if account_id in state.accounts:
            return web.json_response(state.accounts[account_id])
        return web.json_response({"status": 404, "title": "Resource Missing"}, status=404)

    @routes.post("/transactions")
    async def submit_transaction(request):
        data = await request.post()
        state.requests.append({"endpoint": "transactions", "method": "POST", "data": dict(data)})
        return web.json_response(state.transaction_response, status=state.transaction_status)

    @routes.get("/accounts/{account_id}/payments")
    async def stream_payments(request):
        state.requests.append({"endpoint": "payments", "method": "GET",
                               "account_id": request.match_info['account_id'],
                               "cursor": request.query.get("cursor")})

        # Only the first connection gets events, reconnects are refused.
        if len(state.get_requests("payments")) > 1:
            return web.json_response({"status": 404, "title": "Resource Missing"}, status=404)

        response = web.StreamResponse(headers={"Content-Type": "text/event-stream"})
        await response.prepare(request)
        await response.write(b'retry: 10\nevent: open\ndata: "hello"\n\n')
        for record in state.payments:
            await response.write(f"id: {record['paging_token']}\ndata: {json.dumps(record)}\n\n".encode())
        await response.write_eof()
        return response

    @routes.get("/{path:.*}")
    async def catch_all(request):
        path = request.match_info['path']
        state.requests.append({"endpoint": path, "method": "GET"})
        return web.json_response({"status": 404}, status=404)

    app = web.Application()
    app.add_routes(routes)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, horizon_server_config["host"], horizon_server_config["port"])
    await site.start()

    yield state

    await runner.cleanup()
