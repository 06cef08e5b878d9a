import json
import sys
from pathlib import Path
from typing import Optional

import typer

from budgetrec.config import settings
from budgetrec.errors import BudgetRecError
from budgetrec.logging import logger, get_request_id, new_request_id

app = typer.Typer(no_args_is_help=True)

@app.callback()
def main():
    """
    Budget vs. billed hours reconciliation CLI.
    """
    pass

@app.command(name="doctor")
def doctor():
    """
    Check system configuration and environment health.
    """
    logger.info("Running doctor check...")

    print("\n🩺 Budget Reconciliation Doctor\n")

    # Check 1: Environment / Interpreter
    print(f"Python: {sys.version.split()[0]}")
    print(f"Prefix: {sys.prefix}")
    print(f"Request ID: {get_request_id()}")

    # Check 2: Configuration
    print("\n[Configuration]")
    print(f"RECOGNIZED_TEAMS:         {', '.join(settings.RECOGNIZED_TEAMS)}")
    print(f"PERIOD_STRICT:            {settings.PERIOD_STRICT}")
    print(f"ACTUALS_DB_SCHEMA:        {settings.ACTUALS_DB_SCHEMA}")
    print(f"OPENAI_MODEL_AGENT:       {settings.OPENAI_MODEL_AGENT}")

    db_status = "✅ Set" if settings.DATABASE_URL or settings.DATABASE_SERVER else "❌ Missing"
    print(f"DATABASE:                 {db_status}")

    # Mask API Key
    api_key_status = "✅ Set" if settings.OPENAI_API_KEY and settings.OPENAI_API_KEY.get_secret_value() else "❌ Missing"
    print(f"OPENAI_API_KEY:           {api_key_status}")

    import budgetrec.agent.tools  # noqa: F401
    from budgetrec.agent.registry import list_tool_names
    print(f"Assistant tools:          {', '.join(list_tool_names())}")

    # Check 3: Budget file
    budget_path = Path(settings.BUDGET_CSV_PATH)
    if budget_path.is_file():
        print(f"\n[Budget File]             ✅ Found: {budget_path.absolute()}")
    else:
        print(f"\n[Budget File]             ❌ Missing: {budget_path.absolute()} (set BUDGET_CSV_PATH)")

    print("\nDoctor check complete.")


@app.command(name="summary")
def summary(
    period: str = typer.Argument(..., help="Month to analyse, e.g. 'May 2025' or '202505'."),
    team: Optional[str] = typer.Option(None, "--team", "-t", help="Team filter, e.g. 'CST III'."),
    as_json: bool = typer.Option(False, "--json", help="Print the full result as JSON."),
):
    """Budget vs. billed hours for one month."""
    from budgetrec.insights import build_insights, team_variance_percentage
    from budgetrec.reconcile import reconcile

    new_request_id()
    try:
        result = reconcile(period, team)
    except BudgetRecError as e:
        logger.error(f"Summary failed: {e}")
        print(f"❌ {type(e).__name__}: {e}", file=sys.stderr)
        raise typer.Exit(code=1)

    insights = build_insights(result)

    if as_json:
        print(json.dumps({**result.to_dict(), **insights.to_dict()}, indent=2))
        return

    print(f"\n📊 Period {result.period} ({team or 'all teams'})\n")
    print(f"Budgeted:     {result.total_budgeted:10.1f} h")
    print(f"Billed:       {result.total_billed:10.1f} h")
    print(f"Variance:     {result.budget_variance:+10.1f} h ({insights.variance_percentage:+.1f}%)")
    print(f"Utilization:  {result.utilization_rate:10.1f} %")

    if result.team_summary:
        print("\n[Teams]")
        for name, t in result.team_summary.items():
            print(
                f"{name:<10} budgeted {t.budgeted:8.1f}  billed {t.billed:8.1f}  "
                f"variance {t.variance:+8.1f} ({team_variance_percentage(t):+.1f}%)  employees {t.employee_count}"
            )

    for alert in insights.alerts:
        print(f"\n⚠️  {alert.message}")
    for rec in insights.recommendations:
        print(f"- {rec}")

    diagnostics = result.diagnostics
    if diagnostics.has_misses:
        print(
            f"\nUnmatched: {len(diagnostics.unmatched_actuals)} billed without budget "
            f"({', '.join(u.initials for u in diagnostics.unmatched_actuals) or '-'}), "
            f"{len(diagnostics.unmatched_budget)} budgeted without billed hours "
            f"({', '.join(u.initials for u in diagnostics.unmatched_budget) or '-'})"
        )
    if diagnostics.duplicate_budget:
        print(
            f"Ignored budget rows: "
            f"{', '.join(f'{d.initials}/{d.task_id}' for d in diagnostics.duplicate_budget)}"
        )


@app.command(name="ask")
def ask(message: str):
    """Ask the budget assistant a question."""
    from budgetrec.agent.runner import run_agent_loop

    result = run_agent_loop(message)
    if result.stopped_reason.startswith("error"):
        print(f"❌ Assistant failed: {result.stopped_reason}", file=sys.stderr)
        raise typer.Exit(code=1)

    for step in result.steps:
        if step.role == "tool":
            print(f"🔧 {step.tool_name}({json.dumps(step.tool_args)}) - {step.duration_ms}ms")
    print(f"\n{result.final_answer}")


budget_app = typer.Typer(help="Budget file commands.")
app.add_typer(budget_app, name="budget")

@budget_app.command("teams")
def budget_teams(path: Optional[Path] = typer.Option(None, "--path", help="Budget CSV (defaults to BUDGET_CSV_PATH).")):
    """List teams in the budget file with their full-year hours."""
    from budgetrec.ingest.budget import load_budget, team_totals
    try:
        totals = team_totals(load_budget(path))
    except BudgetRecError as e:
        logger.error(f"Budget read failed: {e}")
        print(f"❌ Failed: {e}")
        raise typer.Exit(code=1)

    if not totals:
        print("No budget records found.")
        return

    for team, hours in totals.items():
        print(f"{team:<10} {hours:>8} h")


db_app = typer.Typer(help="Actuals database commands.")
app.add_typer(db_app, name="db")

@db_app.command("check")
def check():
    """Test the connection to the actuals database."""
    from budgetrec.ingest.actuals import check_connection
    if check_connection():
        print("✅ Database connection OK.")
    else:
        print("❌ Database connection failed (see logs).")
        raise typer.Exit(code=1)

if __name__ == "__main__":
    app()
