"""Checks Monitor Worker.

This module implements the process that watches the selected repository's
pull requests and reports failed checks, managing configuration, component
wiring, signal handling and shutdown.
"""

import argparse
import asyncio
import logging
import signal
import sys
from datetime import UTC, datetime
from typing import Any

from ..config.loader import ConfigurationLoader
from ..config.models import Config
from ..github.client import GitHubClientConfig
from ..models.repository import Repository
from .monitor.accounts import AccountsStore
from .monitor.check_merger import CheckSourceMerger
from .monitor.local_git import GitLocalCommitReader
from .monitor.notification_gate import NotificationGate
from .monitor.notifications import LoggingNotifier
from .monitor.poll_cycle import PollCycle
from .monitor.scheduler import ChecksMonitorScheduler

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ChecksMonitorWorker:
    """Worker that monitors pull request checks of one repository.

    Manages the complete lifecycle of the monitor including:
    - Configuration loading and validation
    - Account store and GitHub client creation
    - Scheduler subscription to the selected repository
    - Graceful shutdown on SIGINT/SIGTERM
    """

    def __init__(self, config_path: str | None = None, config: Config | None = None):
        """Initialize checks monitor worker.

        Args:
            config_path: Optional path to configuration file
            config: Already loaded configuration, takes precedence over the path
        """
        self.config_path = config_path
        self.config = config

        self.accounts: AccountsStore | None = None
        self.gate: NotificationGate | None = None
        self.scheduler: ChecksMonitorScheduler | None = None
        self.notifier = LoggingNotifier()
        self.repository: Repository | None = None

        self.running = False
        self.shutdown_event = asyncio.Event()
        self._unsubscribe_notifier: Any = None

        self.stats: dict[str, Any] = {
            "worker_started_at": None,
            "last_error": None,
        }

    async def initialize(self) -> None:
        """Load configuration and wire the monitor components."""
        logger.info("Initializing Checks Monitor Worker...")

        try:
            self._load_configuration()
            self._create_components()

            self.stats["worker_started_at"] = datetime.now(UTC)
            logger.info("Checks Monitor Worker initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize Checks Monitor Worker: {e}")
            await self.cleanup()
            raise

    def _load_configuration(self) -> None:
        """Load and validate configuration."""
        if self.config is None:
            config_loader = ConfigurationLoader()
            if self.config_path:
                self.config = config_loader.load_from_file(self.config_path)
            else:
                self.config = config_loader.auto_load()

        self.repository = self.config.get_selected_repository().to_repository()

        logger.info(
            f"Configuration loaded: {len(self.config.accounts)} accounts, "
            f"{len(self.config.repositories)} repositories, "
            f"monitoring {self.repository}"
        )

    def _create_components(self) -> None:
        """Create the account store, gate, poll cycle and scheduler."""
        if self.config is None:
            raise RuntimeError("Configuration not loaded")

        monitor_config = self.config.monitor

        self.accounts = AccountsStore(
            (account.to_account() for account in self.config.accounts),
            client_config=GitHubClientConfig(
                timeout=int(monitor_config.fetch_timeout_seconds)
            ),
        )
        self.gate = NotificationGate()
        merger = CheckSourceMerger(
            GitLocalCommitReader(), fetch_timeout=monitor_config.fetch_timeout_seconds
        )
        self.scheduler = ChecksMonitorScheduler(
            accounts=self.accounts,
            poll_cycle=PollCycle(merger, self.gate),
            gate=self.gate,
            poll_interval=monitor_config.poll_interval_seconds,
            pull_request_limit=monitor_config.pull_request_limit,
            lookback_seconds=monitor_config.lookback_seconds,
            fetch_timeout=monitor_config.fetch_timeout_seconds,
            initial_delay=monitor_config.initial_delay_seconds,
        )
        self._unsubscribe_notifier = self.gate.on_checks_failed(self.notifier)

    async def run(self) -> None:
        """Subscribe to the selected repository and run until shutdown."""
        if self.scheduler is None or self.repository is None:
            raise RuntimeError("Worker not initialized. Call initialize() first.")

        self.running = True
        logger.info("Starting Checks Monitor Worker...")

        self._setup_signal_handlers()

        try:
            self.scheduler.select_repository(self.repository)
            if not self.scheduler.is_subscribed:
                logger.warning(f"Repository {self.repository} cannot be monitored")
                return

            await self.shutdown_event.wait()

        except asyncio.CancelledError:
            logger.info("Worker cancelled")
        except Exception as e:
            logger.error(f"Worker error: {e}")
            self.stats["last_error"] = str(e)
        finally:
            self.running = False
            await self.scheduler.close()
            logger.info("Checks Monitor Worker stopped")

    async def run_once(self) -> bool:
        """Run a single poll cycle for the selected repository.

        Returns:
            True if the cycle completed and its results were applied
        """
        if self.scheduler is None or self.repository is None:
            raise RuntimeError("Worker not initialized. Call initialize() first.")

        self.scheduler.select_repository(self.repository)
        try:
            return await self.scheduler.poll_now()
        finally:
            await self.scheduler.close()

    def _setup_signal_handlers(self) -> None:
        """Set up signal handlers for graceful shutdown."""

        def signal_handler(sig: int, frame: Any) -> None:
            logger.info(f"Received signal {sig}, initiating shutdown...")
            self.shutdown_event.set()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    async def shutdown(self) -> None:
        """Initiate graceful shutdown."""
        logger.info("Shutting down Checks Monitor Worker...")
        self.shutdown_event.set()

    async def cleanup(self) -> None:
        """Clean up resources."""
        try:
            if self._unsubscribe_notifier is not None:
                self._unsubscribe_notifier()
                self._unsubscribe_notifier = None

            if self.scheduler:
                await self.scheduler.close()

            if self.accounts:
                await self.accounts.close()

            logger.info("Cleanup completed")

        except Exception as e:
            logger.error(f"Error during cleanup: {e}")

    def get_health_status(self) -> dict[str, Any]:
        """Get worker health status."""
        return {
            "healthy": self.stats["last_error"] is None,
            "worker": {
                "running": self.running,
                "stats": self.stats,
                "notifications_sent": self.notifier.sent_count,
            },
            "scheduler": self.scheduler.get_status() if self.scheduler else None,
        }


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(description="Checks Monitor Worker")
    parser.add_argument("--config", help="Configuration file path")
    parser.add_argument(
        "--log-level", default=None, help="Log level (defaults to system.log_level)"
    )
    parser.add_argument(
        "--once", action="store_true", help="Run a single poll cycle and exit"
    )
    return parser


async def main(argv: list[str] | None = None) -> None:
    """Main entry point for checks monitor worker."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, (args.log_level or "INFO").upper()),
        format=LOG_FORMAT,
    )

    worker = ChecksMonitorWorker(config_path=args.config)

    try:
        await worker.initialize()
        if args.log_level is None and worker.config is not None:
            logging.getLogger().setLevel(worker.config.system.log_level.value)

        if args.once:
            await worker.run_once()
        else:
            await worker.run()
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.error(f"Worker failed: {e}")
        sys.exit(1)
    finally:
        await worker.cleanup()


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
