from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

import typer

from shippo.core.detect import DEFAULT_CONFIG_NAME
from shippo.git.vcs import GitVcs, VcsProtocol
from shippo.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class GlobalOptions:
    config: Path = Path(DEFAULT_CONFIG_NAME)
    only: str | None = None
    tag: str | None = None
    output: Path = Path("dist")
    verbose: bool = False


@dataclass(frozen=True, slots=True)
class CLIContext:
    root: Path
    options: GlobalOptions
    console: ConsoleProtocol
    vcs: VcsProtocol
    clock: Callable[[], datetime]

    @property
    def config_path(self) -> Path:
        return self.options.config

    @property
    def bundle_dir(self) -> Path:
        output = self.options.output.expanduser()
        return output if output.is_absolute() else self.root / output


def clock_from_env(environ: Mapping[str, str] | None = None) -> Callable[[], datetime]:
    """Wall clock, or a fixed instant when SOURCE_DATE_EPOCH is set."""
    env = os.environ if environ is None else environ
    raw = env.get("SOURCE_DATE_EPOCH", "").strip()
    if raw.isdigit():
        fixed = datetime.fromtimestamp(int(raw), UTC)
        return lambda: fixed
    return lambda: datetime.now(UTC)


def global_options(ctx: typer.Context) -> GlobalOptions:
    obj = ctx.find_root().obj
    return obj if isinstance(obj, GlobalOptions) else GlobalOptions()


def build_context(ctx: typer.Context) -> CLIContext:
    options = global_options(ctx)
    config = options.config.expanduser()
    root = config.parent.resolve()
    return CLIContext(
        root=root,
        options=options,
        console=RichConsole(verbose=options.verbose),
        vcs=GitVcs(root),
        clock=clock_from_env(),
    )
