from __future__ import annotations

"""
governance.cli.round_cli
------------------------

Operate on governance rounds from the shell:
- `config`   print the effective configuration (defaults < file < GOV_* env).
- `simulate` run a scripted round (JSON/YAML scenario) against a manual clock
             and print the outcome, optionally persisting it.
- `inspect`  list rounds stored in a state DB, or show one round's winners.

Examples
--------
# Effective config from env / file
python -m governance.cli.round_cli config --file round.yaml

# Run a scenario, split 1_000_000 units among winners, store the result
python -m governance.cli.round_cli simulate demo.yaml --payout-total 1000000 --db gov.db

# List finalized rounds, then show one
python -m governance.cli.round_cli inspect --db gov.db --finalized
python -m governance.cli.round_cli inspect --db gov.db --round-id demo --json
"""

import json
import logging
import os
from typing import Any, Dict, List, Optional

import typer
import yaml

from .. import config as gov_config
from ..adapters.state_db import GovernanceStateDB
from ..errors import GovernanceError
from ..scenario import load_scenario, run_scenario

app = typer.Typer(
    name="gov-round",
    add_completion=False,
    no_args_is_help=True,
    help="Inspect, simulate and persist governance rounds.",
)

# -------------------- utils --------------------


def _pad(s: str, n: int) -> str:
    if len(s) <= n:
        return s + " " * (n - len(s))
    return s[: n - 1] + "…"


def _fail(err: GovernanceError) -> None:
    typer.secho(str(err), fg=typer.colors.RED, err=True)
    raise typer.Exit(2)


def _print_winners(rows: List[Dict[str, Any]], allocation: Optional[Dict[str, int]] = None) -> None:
    if not rows:
        typer.echo("No winners.")
        return
    header = _pad("RANK", 6) + _pad("INDEX", 8) + _pad("APPLICANT", 24) + _pad("SHARE_BP", 10) + _pad("RAW", 12)
    if allocation is not None:
        header += "AMOUNT"
    typer.secho(header, bold=True)
    for w in rows:
        line = (
            _pad(str(w["rank"]), 6)
            + _pad(str(w["index"]), 8)
            + _pad(str(w["applicant"]), 24)
            + _pad(str(w["normalized_share"]), 10)
            + _pad(str(w["raw_score"]), 12)
        )
        if allocation is not None:
            line += str(allocation.get(w["applicant"], 0))
        typer.echo(line)


# -------------------- commands --------------------


@app.command("config")
def cmd_config(
    file: Optional[str] = typer.Option(None, "--file", "-f", help="JSON/YAML config file (overrides GOV_CONFIG_FILE)."),
) -> None:
    """Print the effective round configuration as JSON."""
    try:
        base = gov_config.from_file(file) if file else None
        cfg = gov_config.from_env(base=base) if base is not None else gov_config.load()
    except (GovernanceError, FileNotFoundError) as e:
        typer.secho(f"config error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(2)
    typer.echo(gov_config.pretty(cfg))


@app.command("simulate")
def cmd_simulate(
    scenario: str = typer.Argument(..., help="Scenario file (JSON or YAML)."),
    db: Optional[str] = typer.Option(None, "--db", help="SQLite path/URI to persist the resulting round."),
    payout_total: Optional[int] = typer.Option(
        None, "--payout-total", min=0, help="Split this many base units among winners."
    ),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Run a scripted round end to end."""
    try:
        data = load_scenario(scenario)
        if payout_total is not None:
            data["payout_total"] = payout_total
        result = run_scenario(data)
    except GovernanceError as e:
        _fail(e)
        return
    except (FileNotFoundError, IsADirectoryError, yaml.YAMLError, json.JSONDecodeError) as e:
        typer.secho(f"scenario error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(2)

    if db:
        with GovernanceStateDB(db) as store:
            store.save_round(result.round)

    out = result.to_dict()
    if json_out:
        typer.echo(json.dumps(out, indent=2, sort_keys=True))
        return
    summary = out["summary"]
    typer.secho(
        f"round {summary['round_id']}: phase={summary['phase']} applications={summary['applications']} "
        f"voters={summary['voters']} payout={summary['payout_status']}",
        bold=True,
    )
    for o in out["steps"]:
        mark = "ok" if o["ok"] else f"rejected ({o['code']})"
        typer.echo(f"  step {o['step']:>3} {_pad(o['op'], 18)} {mark}")
    typer.echo("")
    _print_winners(summary["winners"], out.get("allocation"))


@app.command("inspect")
def cmd_inspect(
    db: str = typer.Option(..., "--db", help="SQLite path/URI of the governance state DB."),
    round_id: Optional[str] = typer.Option(None, "--round-id", help="Show a single round."),
    finalized: Optional[bool] = typer.Option(
        None, "--finalized/--open", help="Only finalized (or only open) rounds when listing."
    ),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """List stored rounds or show one round's summary and winners."""
    with GovernanceStateDB(db) as store:
        if round_id is None:
            rows = store.list_rounds(finalized=finalized)
            if json_out:
                typer.echo(json.dumps(rows, indent=2, sort_keys=True))
                return
            if not rows:
                typer.echo("No rounds.")
                return
            typer.secho(_pad("ROUND", 24) + _pad("PHASE", 14) + "FINALIZED", bold=True)
            for r in rows:
                typer.echo(_pad(r["round_id"], 24) + _pad(r["phase"], 14) + ("yes" if r["finalized"] else "no"))
            return
        try:
            rnd = store.load_round(round_id)
        except GovernanceError as e:
            _fail(e)
            return

    summary = rnd.summary()
    if json_out:
        typer.echo(json.dumps(summary, indent=2, sort_keys=True))
        return
    typer.secho(f"round {summary['round_id']}: phase={summary['phase']} payout={summary['payout_status']}", bold=True)
    _print_winners(summary["winners"])


@app.callback()
def main(
    log_level: str = typer.Option(
        os.getenv("GOV_LOG_LEVEL", "WARNING"), "--log-level", help="Python logging level."
    ),
) -> None:
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def get_app() -> typer.Typer:
    return app


if __name__ == "__main__":
    app()
