"""Main entry point for the DEX arbitrage bot."""

import asyncio
import signal
import sys
from typing import Optional
import click
from dotenv import load_dotenv
from loguru import logger

# uvloop is not available on Windows
try:
    import uvloop
    UVLOOP_AVAILABLE = True
except ImportError:
    UVLOOP_AVAILABLE = False

from .alerts.monitor import Monitor
from .config import Config, LoggingConfig, get_config
from .core.engine import ArbitrageEngine
from .core.types import ArbitrageOpportunity
from .errors import (ArbitrageError, CircuitBreakerTripped, ConfigurationError,
                     ExecutionError, InsufficientLiquidity)
from .exchanges.registry import ExchangeRegistry
from .storage.db import Database
from .storage.journal import TradeJournal
from .wallet import Wallet


def setup_logging(logging_config: LoggingConfig, level: Optional[str] = None) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level or logging_config.level,
               format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>")
    if logging_config.file:
        logger.add(logging_config.file, level="DEBUG",
                   rotation=logging_config.rotation, retention=logging_config.retention,
                   format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}")


class DexArbBot:
    """Polling DEX arbitrage bot."""

    def __init__(self, config: Config):
        self.config = config
        self.registry = ExchangeRegistry.from_config(config)
        self.wallet = Wallet.from_config(config)
        self.monitor = Monitor(log_trades=config.logging.log_trades)
        self.engine = ArbitrageEngine(config, self.registry, self.wallet, self.monitor)
        self.storage = Database(config.storage.db_path)
        self.journal = TradeJournal(self.storage)
        self.check_interval = config.monitoring.check_interval_ms / 1000
        self.running = False

        logger.info("DEX Arbitrage Bot initialized")
        logger.info(f"Venues: {self.registry.names()}")
        logger.info(f"Trading pairs: {config.venues.trading_pairs}")
        logger.info(f"Min profit: {config.arbitrage.min_profit_percent}%")
        logger.info(f"Max trade amount: {config.arbitrage.max_trade_amount}")
        logger.info(f"Max consecutive failures: {config.safety.max_consecutive_failures}")
        if config.safety.simulation_mode:
            logger.warning("⚠️ Running in SIMULATION mode, no transactions will be submitted")
        else:
            logger.warning(f"🚨 Running in LIVE mode with wallet {self.wallet.public_key}")

    async def start(self):
        """Start the bot and run until stopped or halted."""
        if self.running:
            return

        await self.storage.connect()
        self._install_signal_handlers()
        self.running = True

        try:
            await self._trading_loop()
        finally:
            await self.stop()

    async def stop(self):
        """Release venues and storage."""
        logger.info("Stopping DEX Arbitrage Bot")
        self.running = False
        self._remove_signal_handlers()
        await self.registry.close()
        await self.storage.disconnect()

    def request_stop(self):
        """Stop after the current iteration; in-flight legs finish."""
        if self.running:
            logger.info("Shutdown requested, finishing current iteration")
        self.running = False

    def _install_signal_handlers(self):
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.request_stop)
            except NotImplementedError:
                # Windows event loops have no signal handler support
                pass

    def _remove_signal_handlers(self):
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.remove_signal_handler(sig)
            except NotImplementedError:
                pass

    async def _trading_loop(self):
        """Main trading loop."""
        logger.info("Entering main trading loop")

        while self.running:
            try:
                opportunities = await self.engine.find_opportunities()
                if opportunities:
                    logger.info(f"Detected {len(opportunities)} arbitrage opportunities")
                    await self._process_opportunity(opportunities[0])
            except CircuitBreakerTripped:
                raise
            except Exception as e:
                logger.error(f"Error in trading loop: {e}")
                self.monitor.record_error(f"Trading loop: {e}")

            if self.running:
                await asyncio.sleep(self.check_interval)

    async def _process_opportunity(self, opportunity: ArbitrageOpportunity):
        """Execute the best opportunity and journal the outcome."""
        try:
            result = await self.engine.execute_arbitrage(opportunity)
        except InsufficientLiquidity:
            return
        except CircuitBreakerTripped as e:
            if e.__cause__ is not None:
                await self.journal.journal_failure(opportunity, e.__cause__)
            self.monitor.record_error(str(e))
            raise
        except ExecutionError as e:
            await self.journal.journal_failure(opportunity, e)
            return

        await self.journal.journal_execution(result)
        logger.info(f"Opportunity executed: {opportunity.pair} {opportunity.source_venue} -> "
                    f"{opportunity.target_venue}, est. profit {opportunity.estimated_profit:.6f} "
                    f"{opportunity.quote_asset}")


async def scan_once(config: Config):
    """Run one scan and return the opportunities without executing."""
    registry = ExchangeRegistry.from_config(config)
    engine = ArbitrageEngine(config, registry)
    try:
        return await engine.find_opportunities()
    finally:
        await registry.close()


@click.group()
def cli():
    """DEX Arbitrage Bot CLI."""
    load_dotenv()


def _load_config(config_path: str, live: bool = False) -> Config:
    """Load config for a command, exiting with status 2 when it is unusable."""
    try:
        config = get_config(config_path)
        if live:
            config.safety.simulation_mode = False
            config = Config.model_validate(config.model_dump())
    except (ConfigurationError, ValueError) as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(2)
    return config


async def run_bot(config: Config):
    """Build the bot on the running loop and trade until stopped."""
    bot = DexArbBot(config)
    await bot.start()


@cli.command()
@click.option('--config', 'config_path', type=click.Path(exists=True), default='config.yaml',
              help='Path to config file')
@click.option('--live', is_flag=True, help='Disable simulation mode and submit real transactions')
def run(config_path, live):
    """Run the DEX arbitrage bot."""
    config = _load_config(config_path, live)
    setup_logging(config.logging)

    # Use uvloop on Linux for better performance
    if sys.platform != "win32" and UVLOOP_AVAILABLE:
        uvloop.install()

    try:
        asyncio.run(run_bot(config))
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
    except CircuitBreakerTripped as e:
        logger.critical(f"🛑 Trading halted: {e}")
        sys.exit(1)
    except ArbitrageError as e:
        logger.error(f"Bot failed: {e}")
        sys.exit(1)


@cli.command()
@click.option('--config', 'config_path', type=click.Path(exists=True), default='config.yaml',
              help='Path to config file')
def scan(config_path):
    """Scan once and print opportunities without trading."""
    config = _load_config(config_path)
    setup_logging(config.logging, level="WARNING")

    try:
        opportunities = asyncio.run(scan_once(config))
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(2)
    if not opportunities:
        print("No opportunities above threshold")
        return

    print(f"\n=== {len(opportunities)} OPPORTUNITIES ===")
    for opportunity in opportunities:
        print(f"- {opportunity.pair}: buy {opportunity.source_venue} @ {opportunity.buy_price}, "
              f"sell {opportunity.target_venue} @ {opportunity.sell_price} | "
              f"gross {opportunity.gross_profit_percent:.4f}% net {opportunity.net_profit_percent:.4f}% "
              f"| size {opportunity.trade_size}")


@cli.command()
@click.option('--days', default=7, type=int, help='Number of days to report (default: 7)')
@click.option('--config', 'config_path', type=click.Path(exists=True), default='config.yaml',
              help='Path to config file')
def report(days, config_path):
    """Generate trading report."""
    config = _load_config(config_path)
    setup_logging(config.logging, level="WARNING")

    async def generate_report():
        db = Database(config.storage.db_path)
        journal = TradeJournal(db)
        try:
            await db.connect()
            print(await journal.generate_report(days))
        finally:
            await db.disconnect()

    asyncio.run(generate_report())


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
