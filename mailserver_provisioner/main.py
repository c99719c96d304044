from __future__ import annotations

import argparse
import logging
from typing import Callable, Dict, List, Optional

from .config import ConfigError, ProvisionConfig, load_config
from .context import build_context
from .logging_utils import configure_logging
from .pipeline import PipelineResult, Step, StepFailure, run_pipeline
from .report import build_report, save_report
from .steps import (
    DovecotCommunityRepoStep,
    InstallCaddyStep,
    InstallDovecotStep,
    InstallFail2banStep,
    InstallPackagesStep,
    InstallPostfixStep,
    InstallRspamdStep,
    PostInstallationStep,
    PreInstallationStep,
    RemoveSensitiveDataStep,
    SetupCaddyStep,
)

logger = logging.getLogger(__name__)


def build_steps() -> List[Step]:
    """Image build: order matters, later steps rely on earlier ones."""

    return [
        PreInstallationStep(),
        InstallPostfixStep(),
        InstallPackagesStep(),
        DovecotCommunityRepoStep(),
        InstallDovecotStep(),
        InstallRspamdStep(),
        InstallFail2banStep(),
        InstallCaddyStep(),
        RemoveSensitiveDataStep(),
        PostInstallationStep(),
    ]


def setup_steps() -> List[Step]:
    """Container start-up."""

    return [SetupCaddyStep()]


PIPELINES: Dict[str, Callable[[], List[Step]]] = {
    "build": build_steps,
    "setup": setup_steps,
}


def run(
    *,
    pipeline: str,
    cfg: ProvisionConfig,
    log_path: Optional[str] = None,
    report_path: Optional[str] = None,
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
    dry_run: bool = False,
    architecture: Optional[str] = None,
) -> PipelineResult:
    """Run one pipeline end to end; StepFailure propagates to the caller."""

    configure_logging(log_path=log_path, level=cfg.log_level_value)
    ctx = build_context(cfg, architecture=architecture)
    logger.info(
        "Pipeline %s (arch=%s, community_repo=%s, dry_run=%s)",
        pipeline,
        ctx.architecture,
        ctx.community_repo,
        dry_run,
    )

    try:
        result = run_pipeline(
            ctx=ctx,
            steps=PIPELINES[pipeline](),
            start_at=start_at,
            stop_after=stop_after,
            dry_run=dry_run,
        )
    except StepFailure as e:
        if report_path:
            save_report(
                report_path,
                build_report(pipeline=pipeline, architecture=ctx.architecture, failure=e, decisions=ctx.decisions),
            )
        raise

    if report_path:
        save_report(report_path, build_report(pipeline=pipeline, architecture=ctx.architecture, result=result))
    return result


def _common_options() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", default=None, help="YAML config file")
    common.add_argument("--log", default=None, help="Also write the log to this file")
    common.add_argument("--log-level", default=None, help="trace|debug|info|warn|error (overrides LOG_LEVEL)")
    common.add_argument("--root", default=None, help="Filesystem root to provision (default /)")
    common.add_argument("--report", default=None, help="Write a run report (.json|.yaml)")
    common.add_argument("--start-at", default=None, help="Start at step_id (e.g. 50_install_rspamd)")
    common.add_argument("--stop-after", default=None, help="Stop after step_id")
    return common


def main(argv: Optional[list[str]] = None) -> int:
    common = _common_options()
    p = argparse.ArgumentParser(prog="mailserver-provisioner")
    sub = p.add_subparsers(dest="command", required=True)
    sub.add_parser("build", parents=[common], help="Install and configure the image's packages")
    sub.add_parser("setup", parents=[common], help="Container start-up configuration")
    plan = sub.add_parser("plan", parents=[common], help="Show which steps would run, without running them")
    plan.add_argument("--pipeline", choices=sorted(PIPELINES), default="build")

    args = p.parse_args(argv)

    try:
        cfg = load_config(args.config).with_overrides(log_level=args.log_level, root=args.root)
    except (ConfigError, FileNotFoundError) as e:
        p.error(str(e))

    pipeline = args.pipeline if args.command == "plan" else args.command
    try:
        run(
            pipeline=pipeline,
            cfg=cfg,
            log_path=args.log,
            report_path=args.report,
            start_at=args.start_at,
            stop_after=args.stop_after,
            dry_run=args.command == "plan",
        )
    except ValueError as e:
        p.error(str(e))
    except StepFailure as e:
        logger.error("Provisioning failed in step %s: %s", e.step_id, e.cause)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
