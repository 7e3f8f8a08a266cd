from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, List, Optional

import typer
from dotenv import load_dotenv

load_dotenv()

from condora.adapters.config import config  # noqa: E402
from condora.adapters.documents import PdfDocumentSource  # noqa: E402
from condora.adapters.sql_repo import SqlPropertyRepository  # noqa: E402
from condora.domain.errors import ExtractionError  # noqa: E402
from condora.domain.policy import policy_from_config  # noqa: E402
from condora.pipelines.core import import_from_pdf, import_from_url, preview_url  # noqa: E402
from condora.services.affordability import calculate_eligibility  # noqa: E402

app = typer.Typer(help="Condora tools (mortgage eligibility, listing import).")


def _parse_overrides(pairs: List[str]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"expected key=value, got {pair!r}", param_hint="--override")
        out[key.strip()] = value.strip()
    return out


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, default=str))


@app.command()
def calculate(
    price: float = typer.Option(..., "--price", help="Property price (SGD)"),
    income: float = typer.Option(..., "--income", help="Fixed monthly income"),
    variable_income: float = typer.Option(0.0, "--variable-income", help="Monthly variable income (bonus, commission)"),
    debt: float = typer.Option(0.0, "--debt", help="Existing monthly debt obligations"),
    age: int = typer.Option(35, help="Borrower age"),
    tenure: int = typer.Option(25, "--tenure", help="Loan tenure in years"),
    rate: float = typer.Option(3.5, "--rate", help="Quoted annual interest rate in percent"),
    count: int = typer.Option(1, "--count", help="Property count including this purchase"),
    category: str = typer.Option("private", "--category", help="private | hdb | ec"),
) -> None:
    """
    Print the eligibility verdict as JSON.
    """
    verdict = calculate_eligibility(
        {
            "monthly_income": income,
            "variable_income": variable_income,
            "existing_debt": debt,
            "age": age,
            "loan_tenure_years": tenure,
            "interest_rate": rate,
            "property_price": price,
            "property_count": count,
            "property_category": category,
        },
        policy_from_config(config),
    )
    _echo_json(verdict.to_dict())


@app.command("preview-url")
def preview_url_cmd(
    url: str = typer.Argument(..., help="Listing page URL"),
    timeout: Optional[float] = typer.Option(None, help="Extraction timeout in seconds"),
) -> None:
    """
    Extract and validate a listing page without saving anything.
    """
    try:
        record, report = asyncio.run(preview_url(url, timeout_s=timeout))
    except ExtractionError as e:
        typer.echo(f"extraction failed: {e}", err=True)
        raise typer.Exit(code=2) from e
    _echo_json({"record": record, "validation": report.to_dict()})


@app.command("import-url")
def import_url_cmd(
    url: str = typer.Argument(..., help="Listing page URL"),
    force: bool = typer.Option(False, "--force", help="Replace existing rows for the project"),
    override: List[str] = typer.Option([], "--override", help="Field override as key=value (repeatable)"),
    timeout: Optional[float] = typer.Option(None, help="Extraction timeout in seconds"),
) -> None:
    """
    Fetch a listing page and import it as one property.
    """
    repo = SqlPropertyRepository(config.DB_URI)
    try:
        result = asyncio.run(
            import_from_url(
                url,
                repo=repo,
                overrides=_parse_overrides(override),
                force_reimport=force,
                timeout_s=timeout,
            )
        )
    except ExtractionError as e:
        typer.echo(f"extraction failed: {e}", err=True)
        raise typer.Exit(code=2) from e
    _echo_json(result.to_dict())
    if not result.success:
        raise typer.Exit(code=1)


@app.command("import-pdf")
def import_pdf_cmd(
    path: Path = typer.Argument(..., help="Brochure PDF"),
    force: bool = typer.Option(False, "--force", help="Replace existing rows for the project"),
    override: List[str] = typer.Option([], "--override", help="Field override as key=value (repeatable)"),
    timeout: Optional[float] = typer.Option(None, help="Extraction timeout in seconds"),
) -> None:
    """
    Extract a brochure PDF and import it as one property.
    """
    repo = SqlPropertyRepository(config.DB_URI)
    try:
        data = path.read_bytes()
    except OSError as e:
        typer.echo(f"cannot read {path}: {e}", err=True)
        raise typer.Exit(code=2) from e

    try:
        result = asyncio.run(
            import_from_pdf(
                data,
                repo=repo,
                overrides=_parse_overrides(override),
                force_reimport=force,
                source=PdfDocumentSource(),
                timeout_s=timeout,
            )
        )
    except ExtractionError as e:
        typer.echo(f"extraction failed: {e}", err=True)
        raise typer.Exit(code=2) from e
    _echo_json(result.to_dict())
    if not result.success:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
