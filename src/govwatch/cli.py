import asyncio
import contextlib
import logging
import signal

import click
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from govwatch.core.config import StartMode
from govwatch.core.errors import ConfigError
from govwatch.core.models import ContractType, ContractVersion, Network
from govwatch.core.use_cases.scan import ScanStats
from govwatch.log_setup import configure_logging

console = Console(stderr=True)
log = logging.getLogger("govwatch")


def _exactly_one(flags: dict[str, object], what: str) -> str:
    chosen = [name for name, value in flags.items() if value is not None and value is not False]
    if len(chosen) != 1:
        opts = ", ".join(flags)
        if not chosen:
            raise click.UsageError(f"Pass one of {opts} to select the {what}")
        raise click.UsageError(f"Options {', '.join(chosen)} are mutually exclusive")
    return chosen[0]


def _install_signal_handlers(cancel: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()

    def _stop() -> None:
        if not cancel.is_set():
            log.warning("received ctrl-c signal, gracefully shutting down")
        cancel.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, _stop)


def _render_stats(stats: ScanStats) -> Table:
    table = Table(title="govwatch run summary", show_header=True, header_style="bold")
    table.add_column("counter")
    table.add_column("value", justify="right")
    for name, value in vars(stats).items():
        table.add_row(name.replace("_", " "), str(value))
    return table


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--core", is_flag=True, help="Monitor the POA Core network")
@click.option("--sokol", is_flag=True, help="Monitor the Sokol test network")
@click.option("--xdai", is_flag=True, help="Monitor the xDai network (V2 contracts only)")
@click.option("--v1", "v1", is_flag=True, help="Monitor V1 governance contracts")
@click.option("--v2", "v2", is_flag=True, help="Monitor V2 governance contracts [default]")
@click.option("-k", "--keys", is_flag=True, help="Monitor the keys voting contract")
@click.option("-t", "--threshold", is_flag=True, help="Monitor the threshold voting contract")
@click.option("-p", "--proxy", is_flag=True, help="Monitor the proxy voting contract")
@click.option("-e", "--emission", is_flag=True, help="Monitor the emission funds voting contract (V2)")
@click.option("--earliest", is_flag=True, help="Start scanning at block 0")
@click.option("--latest", is_flag=True, help="Start scanning after the current tip")
@click.option("--start", "start_block", type=click.IntRange(min=0), default=None, help="Start scanning at this block")
@click.option("--tail", type=click.IntRange(min=0), default=None, help="Start scanning this many blocks behind the tip")
@click.option(
    "--block-time",
    type=float,
    default=30.0,
    show_default=True,
    help="Seconds to wait between polls",
)
@click.option("-n", "--limit", type=click.IntRange(min=1), default=None, help="Exit after this many notifications")
@click.option("--email", is_flag=True, help="Email each notification to EMAIL_RECIPIENTS")
@click.option("--log-emails", is_flag=True, help="Write the full email body of each notification to the log")
@click.option("--log-file", is_flag=True, help="Log to rotating files under ./logs instead of the terminal")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(
    core: bool,
    sokol: bool,
    xdai: bool,
    v1: bool,
    v2: bool,
    keys: bool,
    threshold: bool,
    proxy: bool,
    emission: bool,
    earliest: bool,
    latest: bool,
    start_block: int | None,
    tail: int | None,
    block_time: float,
    limit: int | None,
    email: bool,
    log_emails: bool,
    log_file: bool,
    verbose: bool,
) -> None:
    """govwatch: watch POA Network governance contracts for new ballots."""
    network = Network(_exactly_one({"--core": core, "--sokol": sokol, "--xdai": xdai}, "network").lstrip("-"))

    if v1 and v2:
        raise click.UsageError("Options --v1, --v2 are mutually exclusive")
    version = ContractVersion.V1 if v1 else ContractVersion.V2

    selected = {
        ContractType.KEYS: keys,
        ContractType.THRESHOLD: threshold,
        ContractType.PROXY: proxy,
        ContractType.EMISSION_FUNDS: emission,
    }
    contract_types = [ct for ct, on in selected.items() if on]
    if not contract_types:
        raise click.UsageError("Pass at least one of --keys, --threshold, --proxy, --emission")

    start_flag = _exactly_one(
        {"--earliest": earliest, "--latest": latest, "--start": start_block, "--tail": tail},
        "start block",
    )
    if start_flag == "--earliest":
        start_mode = StartMode.earliest()
    elif start_flag == "--latest":
        start_mode = StartMode.latest()
    elif start_flag == "--start":
        start_mode = StartMode.start(start_block)  # type: ignore[arg-type]
    else:
        start_mode = StartMode.tail(tail)  # type: ignore[arg-type]

    from govwatch.orchestration import build_delivery_config, build_dispatcher, build_watch_config, watch
    from govwatch.settings import Settings

    try:
        try:
            settings = Settings()
        except ValidationError as e:
            raise ConfigError(f"invalid environment: {e}") from e
        config = build_watch_config(
            settings=settings,
            network=network,
            version=version,
            contract_types=contract_types,
            start_mode=start_mode,
            block_time=block_time,
            notification_limit=limit,
        )
        delivery = build_delivery_config(
            settings=settings,
            email=email,
            log_emails=log_emails,
            log_file=log_file,
        )
        configure_logging(verbose=verbose, log_file=log_file)
        dispatcher = build_dispatcher(delivery)

        async def run() -> ScanStats:
            cancel = asyncio.Event()
            _install_signal_handlers(cancel)
            return await watch(config=config, dispatcher=dispatcher, cancel=cancel)

        stats = asyncio.run(run())
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    console.print(_render_stats(stats))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
