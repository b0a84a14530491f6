"""
Classify Command - Show the semantic type of a value.
"""

import json

import click

from ...core.classifier import classify as classify_value
from ..utils import echo_json


@click.command()
@click.argument("value")
@click.option("-k", "--key", default="", help="Key the value sits under (used as a hint)")
@click.option("--raw", is_flag=True, help="Treat VALUE as a string even if it parses as JSON")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def classify(value: str, key: str, raw: bool, as_json: bool) -> None:
    """
    Classify VALUE.

    VALUE is parsed as JSON when possible, so 1700000000000 is a number
    and '"1.2.3"' or 1.2.3 are strings.
    """
    parsed = value
    if not raw:
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            parsed = value

    semantic_type = classify_value(parsed, key)

    if as_json:
        echo_json({"value": parsed, "key": key, "type": str(semantic_type)})
        return
    click.echo(f"{click.style(str(semantic_type), fg='cyan', bold=True)}  {json.dumps(parsed)}")
