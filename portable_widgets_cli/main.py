import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer

from portable_widgets import Config, Document, Loader, Manager, StaticContext, WidgetManagerError

# Create the main Typer application object
app = typer.Typer(
    name="portable-widgets",
    help="Render widget state files without a browser.",
    add_completion=False,
)


def _load_context(state_file: Path) -> StaticContext:
    if not state_file.exists():
        print(f"❌ Error: state file not found at '{state_file}'")
        raise typer.Exit(code=1)
    try:
        return StaticContext.from_yaml(state_file)
    except ValueError as e:
        print(f"❌ Error: {e}")
        raise typer.Exit(code=1)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


async def _render(context: StaticContext, model_id: str, config: Config) -> Document:
    document = Document()
    manager = Manager(context, Loader(config), config)
    await manager.render(model_id, document.body)
    return document


@app.command()
def render(
    state_file: Path = typer.Argument(..., help="YAML file with a 'models' mapping."),
    model_id: str = typer.Argument(..., help="Id of the model to render."),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="portable_widgets YAML config."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """
    Renders one widget model and prints the resulting document HTML.
    """
    _setup_logging(verbose)
    context = _load_context(state_file)
    try:
        config = Config(config_file)
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ Error: {e}")
        raise typer.Exit(code=1)
    try:
        document = asyncio.run(_render(context, model_id, config))
    except (WidgetManagerError, ImportError, AttributeError, KeyError) as e:
        # Unknown widget modules and classes surface as import/lookup errors.
        print(f"❌ Error: {e}")
        raise typer.Exit(code=1)
    print(document.to_html())


@app.command()
def models(
    state_file: Path = typer.Argument(..., help="YAML file with a 'models' mapping."),
):
    """
    Lists the models described by a state file.
    """
    context = _load_context(state_file)
    if not context.records:
        print("No models found.")
        return
    for model_id, record in context.records.items():
        version = record.model_module_version or "*"
        print(f"{model_id}\t{record.model_module}@{version}\t{record.model_name}")


if __name__ == "__main__":
    app()
