#!/usr/bin/env python3
"""Render ddclient configuration for a desired state file without systemd."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from ddns_agent.config import load_desired_state
from ddns_reconciler import DDClientSettings, DynamicDNSReconciler
from ddns_supervisor import ProcessHandle


LOG = logging.getLogger(__name__)


class DryRunProcess(ProcessHandle):
    """Log what the supervisor would have been asked to do."""

    def __init__(self, unit: str) -> None:
        self.unit = unit

    def stop(self) -> None:
        LOG.info("would stop %s", self.unit)

    def reload(self) -> None:
        LOG.info("would reload %s", self.unit)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--desired",
        type=Path,
        default=Path("deploy/ddns/desired.yaml"),
        help="Path to the desired state YAML file",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("build/ddclient"),
        help="Directory under which etc/, run/, cache/ and env/ are created",
    )
    parser.add_argument(
        "--instance",
        default="default",
        help="Routing instance written to DDCLIENT_VRF_NAME",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    state = load_desired_state(args.desired)
    if state.dynamic is None:
        LOG.warning("%s has no dynamic section, nothing to render", args.desired)
        return 0

    root = args.output_dir
    settings = DDClientSettings(
        config_dir=root / "etc",
        run_dir=root / "run",
        cache_dir=root / "cache",
        env_dir_fmt=str(root / "env" / "%s"),
        instance_name=args.instance,
    )
    reconciler = DynamicDNSReconciler(settings, DryRunProcess)
    report = reconciler.set(state.dynamic)

    for result in report:
        LOG.info("%s: %s", result.name, result.action.value)
    if not report.ok:
        for result in report.failed():
            LOG.error("%s: %s", result.name, "; ".join(result.errors))
        return 1
    LOG.info("ddclient configuration written under %s", root)
    return 0


if __name__ == "__main__":
    sys.exit(main())
