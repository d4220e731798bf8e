"""CLI entrypoint: Typer app definition and command registration"""

import typer

from cardbox.cli.commands import inspect_cmd, pack_cmd, unpack_cmd, validate_cmd


app = typer.Typer(name="cardbox", no_args_is_help=True, help="Card container decoding and assembly")

app.command(name="inspect")(inspect_cmd)
app.command(name="validate")(validate_cmd)
app.command(name="unpack")(unpack_cmd)
app.command(name="pack")(pack_cmd)
