"""CLI entrypoint: Typer app definition and command registration"""

import typer

from mdblocks.cli.commands import (
    blocks_cmd,
    breadcrumb_cmd,
    code_cmd,
    headings_cmd,
    images_cmd,
    links_cmd,
    metadata_cmd,
    reduce_cmd,
    render_cmd,
    section_cmd,
    sections_cmd,
    stats_cmd,
    tables_cmd,
    text_cmd,
)


app = typer.Typer(name="mdblocks", no_args_is_help=True, help="Markdown block/section document model")

app.command(name="sections")(sections_cmd)
app.command(name="section")(section_cmd)
app.command(name="headings")(headings_cmd)
app.command(name="breadcrumb")(breadcrumb_cmd)
app.command(name="blocks")(blocks_cmd)
app.command(name="render")(render_cmd)
app.command(name="reduce")(reduce_cmd)
app.command(name="code")(code_cmd)
app.command(name="links")(links_cmd)
app.command(name="images")(images_cmd)
app.command(name="tables")(tables_cmd)
app.command(name="stats")(stats_cmd)
app.command(name="text")(text_cmd)
app.command(name="metadata")(metadata_cmd)
