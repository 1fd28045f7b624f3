"""Entry point for the dynamic DNS agent."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path
from threading import Event

import yaml
from oslo_config import cfg

from ddns_reconciler import DynamicDNSReconciler, ForwardingConfig
from ddns_supervisor import NetlinkVRFMonitor, SystemdProcess

from .config import load_desired_state
from .opts import build_settings, register_opts
from .registry import SubsystemRegistry
from .subsystems import DynamicDNSSubsystem, ForwardingSubsystem
from .watchers import DesiredStateWatcher

LOG = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def load_conf(config_file: Path | None) -> cfg.ConfigOpts:
    conf = cfg.ConfigOpts()
    register_opts(conf)
    files = [str(config_file)] if config_file is not None else []
    conf(args=[], project="ddns-agent", default_config_files=files)
    return conf


def build_registry(
    conf: cfg.ConfigOpts, vrf_monitor: NetlinkVRFMonitor | None = None
) -> SubsystemRegistry:
    timeout = conf.systemctl_timeout

    def process_factory(unit: str) -> SystemdProcess:
        return SystemdProcess(unit, timeout=timeout)

    reconciler = DynamicDNSReconciler(
        build_settings(conf),
        process_factory,
        vrf_subscriber=vrf_monitor,
        vrf_checker=vrf_monitor,
    )
    forwarding = ForwardingConfig(
        process_factory(conf.forwarding.unit),
        conf.forwarding.lease_file_fmt,
        conf.forwarding.conf_file_fmt,
    )

    registry = SubsystemRegistry()
    registry.register("dynamic", DynamicDNSSubsystem(reconciler))
    registry.register("forwarding", ForwardingSubsystem(forwarding))
    return registry


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run the dynamic DNS agent")
    parser.add_argument(
        "--config-file",
        type=Path,
        default=None,
        help="Path to the agent INI configuration file",
    )
    parser.add_argument(
        "--desired",
        type=Path,
        default=None,
        help="Desired state YAML file (overrides desired_state)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Apply the desired state once and exit",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    conf = load_conf(args.config_file)
    desired_path = args.desired or Path(conf.desired_state)

    try:
        initial = load_desired_state(desired_path)
    except (OSError, yaml.YAMLError, ValueError) as exc:
        LOG.error("cannot load desired state %s: %s", desired_path, exc)
        return 1

    vrf_monitor = None
    if conf.wait_for_vrf and conf.instance_name != "default":
        vrf_monitor = NetlinkVRFMonitor()

    registry = build_registry(conf, vrf_monitor)

    if args.once:
        registry.apply(initial)
        registry.shutdown()
        if vrf_monitor is not None:
            vrf_monitor.close()
        return 0

    stop_event = Event()
    watcher = DesiredStateWatcher(
        registry=registry,
        path=desired_path,
        interval=conf.poll_interval,
        stop_event=stop_event,
    )
    # Perform an initial poll so we converge immediately
    try:
        watcher.poll()
    except Exception:
        LOG.exception("initial apply of %s failed", desired_path)
    watcher.start()

    def _shutdown(signum, frame):  # pragma: no cover - signal handler
        LOG.info("received signal %s, shutting down", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    try:
        while not stop_event.is_set():
            stop_event.wait(1.0)
    except KeyboardInterrupt:  # pragma: no cover - fallback if signal not set
        stop_event.set()

    watcher.join()
    registry.shutdown()
    if vrf_monitor is not None:
        vrf_monitor.close()

    LOG.info("dynamic dns agent stopped")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
