"""Output formatting for command results."""

import csv
import io
import json
from typing import Any, Iterable, Sequence

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from affiliate_admin.affiliates.errors import InvalidOption

# Rich console for tables
console = Console()

NUMERIC_COLUMNS = ("affiliate_id", "user_id", "earnings", "referrals", "visits")


def _parse_fields(fields: str | Sequence[str] | None) -> list[str]:
    if not fields:
        return []
    if isinstance(fields, str):
        fields = fields.split(",")
    return [f.strip() for f in fields if f.strip()]


class Formatter:
    """Render one record or a list of records in the requested format.

    Supported formats: table, csv, json, yaml, plus ids for lists.
    """

    def __init__(
        self,
        format: str = "table",
        fields: str | Sequence[str] | None = None,
        field: str | None = None,
        formats: Sequence[str] = ("table", "csv", "json", "yaml", "ids"),
    ):
        if format not in formats:
            raise InvalidOption(
                f"Invalid format: {format}. Accepted values: {', '.join(formats)}."
            )
        self.format = format
        self.fields = _parse_fields(fields)
        self.field = field

    def _columns(self, record: dict[str, Any], default: Sequence[str] | None = None) -> list[str]:
        columns = self.fields or list(default or record.keys())
        unknown = [c for c in columns if c not in record]
        if unknown:
            raise InvalidOption(f"Invalid field: {', '.join(unknown)}.")
        return columns

    def _field_value(self, record: dict[str, Any]) -> Any:
        if self.field not in record:
            raise InvalidOption(f"Invalid field: {self.field}.")
        return record[self.field]

    # ==================== SINGLE ITEM ====================

    def display_item(self, record: dict[str, Any]) -> None:
        """Print a single record, or one of its fields if `field` was given."""
        if self.field:
            typer.echo(self._render_value(self._field_value(record)))
            return

        columns = self._columns(record)
        item = {c: record[c] for c in columns}

        if self.format == "table":
            table = Table(show_header=True)
            table.add_column("Field", style="cyan")
            table.add_column("Value")
            for key, value in item.items():
                table.add_row(escape(key), escape(str(value)))
            console.print(table)
        elif self.format == "csv":
            rows = [{"Field": k, "Value": v} for k, v in item.items()]
            typer.echo(self._to_csv(rows, ["Field", "Value"]), nl=False)
        else:
            typer.echo(self._serialize(item))

    # ==================== LISTS ====================

    def display_items(
        self,
        records: Iterable[dict[str, Any]],
        default_fields: Sequence[str] | None = None,
    ) -> None:
        """Print a list of records.

        Args:
            records: Records to print
            default_fields: Columns used when no `fields` were given
        """
        records = list(records)

        if self.format == "ids":
            typer.echo(" ".join(str(r["affiliate_id"]) for r in records))
            return

        if self.field:
            for record in records:
                typer.echo(self._render_value(self._field_value(record)))
            return

        if not records:
            if self.format == "json":
                typer.echo("[]")
            elif self.format == "yaml":
                typer.echo(yaml.safe_dump([], sort_keys=False), nl=False)
            elif self.format == "table":
                console.print("[yellow]No affiliates found[/yellow]")
            return

        columns = self._columns(records[0], default_fields)
        items = [{c: record.get(c, "") for c in columns} for record in records]

        if self.format == "table":
            table = Table(show_header=True)
            for column in columns:
                table.add_column(column, justify="right" if column in NUMERIC_COLUMNS else "left")
            for item in items:
                table.add_row(*(escape(str(v)) for v in item.values()))
            console.print(table)
        elif self.format == "csv":
            typer.echo(self._to_csv(items, columns), nl=False)
        else:
            typer.echo(self._serialize(items))

    # ==================== HELPERS ====================

    def _serialize(self, data: Any) -> str:
        if self.format == "yaml":
            return yaml.safe_dump(data, sort_keys=False, allow_unicode=True).rstrip("\n")
        return json.dumps(data)

    @staticmethod
    def _to_csv(rows: list[dict[str, Any]], fieldnames: Sequence[str]) -> str:
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=list(fieldnames), lineterminator="\n")
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
        return buffer.getvalue()

    @staticmethod
    def _render_value(value: Any) -> str:
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        return str(value)
