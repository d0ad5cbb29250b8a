# lumen/cli.py
"""The lumen command line: named accounts, assets and variables on top of microstellar."""

import argparse
import asyncio
import sys
from typing import List, Optional

import sentry_sdk
from loguru import logger

from microstellar import (
    MicroStellar,
    MicroStellarError,
    TxOptions,
    error_string,
    infer_asset_type,
    is_federation_address,
    new_asset,
    opts,
    source_address,
    valid_address,
    valid_seed,
)

from . import __version__
from .config_reader import Settings, config
from .errors import KeyNotFoundError, LumenError, UnresolvedAccountError
from .loguru_tools import setup_logging
from .resolver import AccountResolver, AssetResolver
from .store import IStore, NamespacedStore, open_store


def show_success(msg: str) -> None:
    print(msg)


class CommandError(LumenError):
    """A command could not complete; the message is shown to the user."""


def fail(cmd: str, msg: str, testing: bool = False) -> None:
    """Log a failed command and exit 1, or print "error" when testing."""
    logger.bind(cmd=cmd).error(msg)
    if not testing:
        sys.exit(1)
    print("error")


class Cli:
    def __init__(self, store: IStore, ms: MicroStellar, testing: bool = False, nosubmit: bool = False):
        self.store = store
        self.ms = ms
        self.testing = testing
        self.nosubmit = nosubmit
        self.accounts = AccountResolver(ms, store)
        self.assets = AssetResolver(self.accounts, store)

    def error(self, cmd: str, msg: str) -> None:
        fail(cmd, msg, self.testing)

    async def execute(self, args: argparse.Namespace) -> None:
        """Run the handler picked by the parser; failures go through error()."""
        handler = getattr(self, f"cmd_{args.handler}")
        try:
            await handler(args)
        except CommandError as ex:
            self.error(args.command, str(ex))
        except (MicroStellarError, LumenError) as ex:
            self.error(args.command, f"{args.command} failed: {error_string(ex)}")

    # === Helpers ===

    async def resolve_address(self, name: str) -> str:
        try:
            value = await self.accounts.resolve_account(name, "address")
        except UnresolvedAccountError as ex:
            raise CommandError(f"invalid address: {name} ({ex})") from ex
        return source_address(value)

    async def resolve_seed(self, name: str) -> str:
        try:
            value = await self.accounts.resolve_account(name, "seed")
        except UnresolvedAccountError as ex:
            raise CommandError(f"invalid seed: {name} ({ex})") from ex
        return value

    def _print_and_veto(self, envelope_xdr: str) -> bool:
        show_success(envelope_xdr)
        return False

    async def gen_tx_options(self, args: argparse.Namespace) -> TxOptions:
        options = opts()
        log = logger.bind(cmd=args.command)

        if getattr(args, "memotext", None):
            options = options.with_memo_text(args.memotext)

        if getattr(args, "memoid", None):
            try:
                memo_id = int(args.memoid)
            except ValueError:
                log.debug(f"error parsing memoid: {args.memoid}")
                raise CommandError(f"bad memoid: {args.memoid}") from None
            options = options.with_memo_id(memo_id)

        if getattr(args, "signers", None):
            for signer in args.signers.split(","):
                log.debug(f"adding signer: {signer}")
                seed = await self.resolve_seed(signer.strip())
                if not valid_seed(seed):
                    raise CommandError(f"bad signer: {signer}")
                options = options.with_signer(seed)

        if self.nosubmit:
            log.debug("sign-only transaction")
            options = options.on_before_submit(self._print_and_veto)

        if getattr(args, "nosign", False):
            options = options.skip_signatures()

        return options

    # === Variables ===

    async def cmd_version(self, args: argparse.Namespace) -> None:
        show_success(f"v{__version__}")

    async def cmd_set(self, args: argparse.Namespace) -> None:
        await self.store.set(f"vars:{args.key}", args.value)
        show_success(f"setting {args.key} to {args.value}")

    async def cmd_get(self, args: argparse.Namespace) -> None:
        try:
            value = await self.store.get(f"vars:{args.key}")
        except KeyNotFoundError:
            raise CommandError(f"no such variable: {args.key}") from None
        show_success(value)

    async def cmd_del(self, args: argparse.Namespace) -> None:
        await self.store.delete(f"vars:{args.key}")

    # === Ledger ===

    async def cmd_watch(self, args: argparse.Namespace) -> None:
        address = await self.resolve_address(args.address)
        options = opts()
        if args.cursor:
            options = options.with_cursor(args.cursor)

        seen = 0
        async with await self.ms.watch_payments(address, options) as watcher:
            async for payment in watcher:
                show_success(f"{payment.amount} {payment.asset_code or 'XLM'} "
                             f"from {payment.from_account} to {payment.to_account}")
                seen += 1
                if args.limit and seen >= args.limit:
                    break

        if watcher.err is not None:
            raise CommandError(f"watch stopped: {error_string(watcher.err)}")

    async def cmd_pay(self, args: argparse.Namespace) -> None:
        source = await self.resolve_seed(args.source)
        target = await self.resolve_address(args.target)
        asset = await self.assets.resolve_asset(args.asset)
        options = await self.gen_tx_options(args)

        try:
            response = await self.ms.pay(source, target, args.amount, asset, options)
        except MicroStellarError as ex:
            raise CommandError(f"payment failed: {error_string(ex)}") from ex
        if response is not None:
            show_success("paid")

    async def cmd_balance(self, args: argparse.Namespace) -> None:
        address = await self.resolve_address(args.address)
        asset = await self.assets.resolve_asset(args.asset)

        try:
            account = await self.ms.load_account(address)
        except MicroStellarError as ex:
            raise CommandError(f"can't load account: {error_string(ex)}") from ex
        show_success(account.get_balance(asset))

    # === Accounts ===

    async def cmd_account_new(self, args: argparse.Namespace) -> None:
        pair = self.ms.create_keypair()
        await self.store.set(f"account:{args.name}:address", pair.address)
        await self.store.set(f"account:{args.name}:seed", pair.seed)
        show_success(pair.address)

    async def cmd_account_set(self, args: argparse.Namespace) -> None:
        key = args.key
        if valid_seed(key):
            await self.store.set(f"account:{args.name}:seed", key)
            await self.store.set(f"account:{args.name}:address", source_address(key))
        elif valid_address(key) or is_federation_address(key):
            await self.store.set(f"account:{args.name}:address", key)
        else:
            raise CommandError(f"invalid address or seed: {key}")

    async def cmd_account_address(self, args: argparse.Namespace) -> None:
        show_success(await self.resolve_address(args.name))

    async def cmd_account_seed(self, args: argparse.Namespace) -> None:
        seed = await self.resolve_seed(args.name)
        if not valid_seed(seed):
            raise CommandError(f"no seed for account: {args.name}")
        show_success(seed)

    async def cmd_account_del(self, args: argparse.Namespace) -> None:
        await self.store.delete(f"account:{args.name}:address")
        await self.store.delete(f"account:{args.name}:seed")

    async def cmd_account_fund(self, args: argparse.Namespace) -> None:
        source = await self.resolve_seed(args.source)
        target = await self.resolve_address(args.target)
        options = await self.gen_tx_options(args)

        response = await self.ms.fund_account(source, target, args.amount, options)
        if response is not None:
            show_success("funded")

    # === Assets and trust lines ===

    async def cmd_asset_set(self, args: argparse.Namespace) -> None:
        issuer = await self.resolve_address(args.issuer)
        asset_type = args.type or infer_asset_type(args.code).value
        asset = new_asset(args.code, issuer, asset_type)
        asset.validate()

        await self.store.set(f"asset:{args.name}:code", asset.code)
        await self.store.set(f"asset:{args.name}:issuer", asset.issuer)
        await self.store.set(f"asset:{args.name}:type", asset.asset_type.value)

    async def cmd_asset_del(self, args: argparse.Namespace) -> None:
        for field in ("code", "issuer", "type"):
            await self.store.delete(f"asset:{args.name}:{field}")

    async def cmd_trust_create(self, args: argparse.Namespace) -> None:
        source = await self.resolve_seed(args.account)
        asset = await self.assets.resolve_asset(args.asset)
        options = await self.gen_tx_options(args)

        response = await self.ms.create_trust_line(source, asset, args.limit or "", options)
        if response is not None:
            show_success("trust line created")

    async def cmd_trust_remove(self, args: argparse.Namespace) -> None:
        source = await self.resolve_seed(args.account)
        asset = await self.assets.resolve_asset(args.asset)
        options = await self.gen_tx_options(args)

        response = await self.ms.remove_trust_line(source, asset, options)
        if response is not None:
            show_success("trust line removed")

    # === Signers ===

    async def cmd_signer_add(self, args: argparse.Namespace) -> None:
        source = await self.resolve_seed(args.account)
        signer = await self.resolve_address(args.signer)
        options = await self.gen_tx_options(args)

        response = await self.ms.add_signer(source, signer, args.weight, options)
        if response is not None:
            show_success("signer added")

    async def cmd_signer_remove(self, args: argparse.Namespace) -> None:
        source = await self.resolve_seed(args.account)
        signer = await self.resolve_address(args.signer)
        options = await self.gen_tx_options(args)

        response = await self.ms.remove_signer(source, signer, options)
        if response is not None:
            show_success("signer removed")

    async def cmd_signer_masterweight(self, args: argparse.Namespace) -> None:
        source = await self.resolve_seed(args.account)
        options = await self.gen_tx_options(args)

        response = await self.ms.set_master_weight(source, args.weight, options)
        if response is not None:
            show_success("master weight set")

    async def cmd_signer_thresholds(self, args: argparse.Namespace) -> None:
        source = await self.resolve_seed(args.account)
        options = await self.gen_tx_options(args)

        response = await self.ms.set_thresholds(source, args.low, args.medium, args.high, options)
        if response is not None:
            show_success("thresholds set")


def _add_tx_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--nosign", action="store_true", help="don't sign transaction")
    parser.add_argument("--memotext", default="", help="memo text")
    parser.add_argument("--memoid", default="", help="memo ID")
    parser.add_argument("--signers", default="", help="alternate signers (comma separated)")


def _command(subparsers, name: str, handler: str, help_text: str, tx: bool = False,
             command: Optional[str] = None) -> argparse.ArgumentParser:
    parser = subparsers.add_parser(name, help=help_text)
    parser.set_defaults(handler=handler, command=command or name)
    if tx:
        _add_tx_flags(parser)
    return parser


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lumen", description="Stellar command line client")
    parser.add_argument("--network", help="public, test, fake or custom")
    parser.add_argument("--horizon-url", dest="horizon_url", help="horizon url for the custom network")
    parser.add_argument("--passphrase", help="network passphrase for the custom network")
    parser.add_argument("--store", help="store url: memory://, file:<path> or redis://...")
    parser.add_argument("--ns", help="namespace for stored keys")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument("--nosubmit", action="store_true", help="print the signed transaction instead of submitting")

    sub = parser.add_subparsers(dest="cmd", required=True)

    _command(sub, "version", "version", "get version of lumen CLI")

    p = _command(sub, "set", "set", "set variable")
    p.add_argument("key")
    p.add_argument("value")

    p = _command(sub, "get", "get", "get variable")
    p.add_argument("key")

    p = _command(sub, "del", "del", "delete variable")
    p.add_argument("key")

    p = _command(sub, "watch", "watch", "watch the address on the ledger")
    p.add_argument("address")
    p.add_argument("--cursor", default="", help="start from this paging token")
    p.add_argument("--limit", type=int, default=0, help="stop after this many payments")

    p = _command(sub, "pay", "pay", "pay [amount] from [source] to [target]", tx=True)
    p.add_argument("source")
    p.add_argument("target")
    p.add_argument("amount")
    p.add_argument("--asset", default="native", help="asset name or CODE:issuer[:type]")

    p = _command(sub, "balance", "balance", "get the balance of [address]")
    p.add_argument("address")
    p.add_argument("--asset", default="native", help="asset name or CODE:issuer[:type]")

    account = sub.add_parser("account", help="manage named accounts")
    account_sub = account.add_subparsers(dest="subcmd", required=True)
    p = _command(account_sub, "new", "account_new", "create a new keypair", command="account")
    p.add_argument("name")
    p = _command(account_sub, "set", "account_set", "store an address or seed", command="account")
    p.add_argument("name")
    p.add_argument("key")
    p = _command(account_sub, "address", "account_address", "show the address", command="account")
    p.add_argument("name")
    p = _command(account_sub, "seed", "account_seed", "show the seed", command="account")
    p.add_argument("name")
    p = _command(account_sub, "del", "account_del", "forget the account", command="account")
    p.add_argument("name")
    p = _command(account_sub, "fund", "account_fund", "create [target] with [amount] lumens",
                 tx=True, command="account")
    p.add_argument("source")
    p.add_argument("target")
    p.add_argument("amount")

    asset = sub.add_parser("asset", help="manage named assets")
    asset_sub = asset.add_subparsers(dest="subcmd", required=True)
    p = _command(asset_sub, "set", "asset_set", "store an asset", command="asset")
    p.add_argument("name")
    p.add_argument("code")
    p.add_argument("issuer")
    p.add_argument("--type", choices=["credit_alphanum4", "credit_alphanum12"], default=None)
    p = _command(asset_sub, "del", "asset_del", "forget the asset", command="asset")
    p.add_argument("name")

    trust = sub.add_parser("trust", help="manage trust lines")
    trust_sub = trust.add_subparsers(dest="subcmd", required=True)
    p = _command(trust_sub, "create", "trust_create", "trust an asset", tx=True, command="trust")
    p.add_argument("account")
    p.add_argument("asset")
    p.add_argument("limit", nargs="?", default="")
    p = _command(trust_sub, "remove", "trust_remove", "remove a trust line", tx=True, command="trust")
    p.add_argument("account")
    p.add_argument("asset")

    signer = sub.add_parser("signer", help="manage signers and thresholds")
    signer_sub = signer.add_subparsers(dest="subcmd", required=True)
    p = _command(signer_sub, "add", "signer_add", "add a signer", tx=True, command="signer")
    p.add_argument("account")
    p.add_argument("signer")
    p.add_argument("weight", type=int)
    p = _command(signer_sub, "remove", "signer_remove", "remove a signer", tx=True, command="signer")
    p.add_argument("account")
    p.add_argument("signer")
    p = _command(signer_sub, "masterweight", "signer_masterweight", "set the master key weight",
                 tx=True, command="signer")
    p.add_argument("account")
    p.add_argument("weight", type=int)
    p = _command(signer_sub, "thresholds", "signer_thresholds", "set low, medium and high thresholds",
                 tx=True, command="signer")
    p.add_argument("account")
    p.add_argument("low", type=int)
    p.add_argument("medium", type=int)
    p.add_argument("high", type=int)

    return parser


async def run(argv: Optional[List[str]] = None, settings: Optional[Settings] = None) -> None:
    settings = settings or config
    args = build_parser().parse_args(argv)
    setup_logging("DEBUG" if args.verbose else settings.log_level, settings.log_file)

    try:
        ms = MicroStellar(
            args.network or settings.network,
            horizon_url=args.horizon_url or settings.horizon_url,
            passphrase=args.passphrase or settings.network_passphrase,
            base_fee=settings.base_fee,
        )
        store = NamespacedStore(open_store(args.store or settings.store_url), args.ns or settings.namespace)
    except (ValueError, LumenError) as ex:
        fail(args.command, f"can't start: {ex}", settings.testing)
        return

    cli = Cli(store, ms, testing=settings.testing, nosubmit=args.nosubmit)
    try:
        await cli.execute(args)
    finally:
        await store.close()


def main() -> None:
    if config.sentry_dsn:
        sentry_sdk.init(dsn=config.sentry_dsn.get_secret_value(), traces_sample_rate=1.0)
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.error("Exit")
