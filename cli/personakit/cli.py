"""persona-kit CLI.

Inspect, validate, route to and run persona documents.
"""

import logging
from dataclasses import asdict
from pathlib import Path
from typing import Optional

import typer

from cli.personakit.output import (
    console,
    error_console,
    print_config,
    print_error,
    print_info,
    print_json,
    print_persona_detail,
    print_personas,
    print_report,
    print_routing,
    print_success,
    print_validation,
    print_warning,
)
from personas.config import Config, get_config, load_config
from personas.document import PersonaError
from personas.loader import PersonaLoader

app = typer.Typer(
    name="persona-kit",
    help="persona-kit - host and run assistant persona documents",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Path to persona-kit.toml (default: search from current directory)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Load configuration and set up logging."""
    config = load_config(config_file) if config_file else get_config()
    level = logging.DEBUG if verbose else getattr(
        logging, config.run.log_level.upper(), logging.INFO
    )
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = config


def _config(ctx: typer.Context) -> Config:
    return ctx.obj if isinstance(ctx.obj, Config) else get_config()


def get_loader(config: Config) -> PersonaLoader:
    """Get persona loader with discovered personas."""
    loader = PersonaLoader(
        search_dirs=config.personas.search_paths(),
        enabled=config.personas.enabled or None,
        disabled=config.personas.disabled,
        include_builtin=config.personas.include_builtin,
    )
    loader.discover()
    return loader


def _require(loader: PersonaLoader, name: str):
    try:
        return loader.require(name)
    except PersonaError as e:
        print_error(str(e))
        raise typer.Exit(1)


@app.command("list")
def list_personas(ctx: typer.Context) -> None:
    """List discovered personas."""
    loader = get_loader(_config(ctx))
    print_personas(loader.list())
    for path, error in loader.failures.items():
        print_warning(f"Skipped {path}: {error}")


@app.command()
def show(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Persona name"),
) -> None:
    """Show a persona's description, methodology and examples."""
    loader = get_loader(_config(ctx))
    print_persona_detail(_require(loader, name))


@app.command()
def validate(
    ctx: typer.Context,
    targets: Optional[list[str]] = typer.Argument(
        None,
        help="Persona names, files or directories (default: all discovered)",
    ),
) -> None:
    """Validate persona documents.

    Examples:
        persona-kit validate
        persona-kit validate code-quality-enforcer
        persona-kit validate ./personas/my-persona.md
    """
    from personas.validate import validate_path, validate_persona

    loader = get_loader(_config(ctx))
    results = []

    if not targets:
        results.extend(validate_persona(doc) for doc in loader.list())
        results.extend(validate_path(path) for path in loader.failures)
    else:
        for target in targets:
            path = Path(target)
            if path.is_dir():
                results.extend(validate_path(p) for p in sorted(path.glob("*.md")))
            elif path.is_file():
                results.append(validate_path(path))
            else:
                results.append(validate_persona(_require(loader, target)))

    if not results:
        print_info("Nothing to validate.")
        return

    for result in results:
        print_validation(result)

    failed = [r for r in results if not r.is_valid]
    if failed:
        raise typer.Exit(1)


@app.command()
def route(
    ctx: typer.Context,
    request: str = typer.Argument(..., help="The request to route"),
    as_json: bool = typer.Option(False, "--json", help="Print the decision as JSON"),
) -> None:
    """Show which persona a request would be routed to."""
    from routing.router import PersonaRouter

    config = _config(ctx)
    loader = get_loader(config)
    router = PersonaRouter(loader.list(), config.routing)

    if as_json:
        print_json(router.explain_routing(request))
    else:
        print_routing(router.route(request))


@app.command()
def run(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Persona name"),
    target: Path = typer.Argument(..., help="Target file or directory"),
    request: Optional[str] = typer.Option(
        None,
        "--request",
        "-r",
        help="What to ask the persona (default: enforce formatting and lint standards)",
    ),
    pattern: Optional[list[str]] = typer.Option(
        None,
        "--pattern",
        "-p",
        help="File name glob to include (repeatable), e.g. -p '*.py'",
    ),
    apply: bool = typer.Option(
        False,
        "--apply",
        help="Write fixed files (files flagged for review are never written)",
    ),
    backend: Optional[str] = typer.Option(
        None,
        "--backend",
        "-b",
        help="LLM backend: auto|ollama|openai|anthropic|lmstudio",
    ),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Override model name"),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON"),
) -> None:
    """Run a persona on target files.

    Examples:
        persona-kit run code-quality-enforcer ./lib
        persona-kit run code-quality-enforcer ./src -p '*.py' --apply
    """
    from agents import (
        AgentInput,
        PersonaAgent,
        apply_fixes,
        collect_files,
        held_back_paths,
    )
    from llm_backend import backend_from_config
    from schemas.quality_report import QualityReport

    config = _config(ctx)
    persona = _require(get_loader(config), name)

    if not target.exists():
        print_error(f"Target does not exist: {target}")
        raise typer.Exit(1)

    collected = collect_files(
        target,
        patterns=pattern or config.run.file_patterns or None,
        max_bytes=config.run.max_file_bytes,
    )
    for rel, reason in collected.skipped.items():
        print_warning(f"Skipped {rel}: {reason}", stderr=as_json)
    if not collected.files:
        print_error(f"No matching files found in {target}")
        raise typer.Exit(1)

    try:
        llm = backend_from_config(config.llm, kind=backend, model=model)
    except (ValueError, ImportError) as e:
        print_error(f"Could not create LLM backend: {e}")
        raise typer.Exit(1)

    agent = PersonaAgent(
        llm=llm,
        persona=persona,
        model=model,
        temperature=config.llm.temperature,
    )

    status_console = error_console if as_json else console
    with status_console.status(f"Running {persona.name} on {len(collected.files)} file(s)..."):
        output = agent.run(AgentInput(context={
            "request": request,
            "files": collected.files,
        }))

    if not output.success:
        for error in output.errors or ["Unknown error"]:
            print_error(error)
        raise typer.Exit(1)

    report = QualityReport.model_validate(output.data["report"])
    if as_json:
        print_json(report.model_dump(mode="json"))
    else:
        print_report(report)

    # Status lines go to stderr in JSON mode so stdout stays parseable
    if apply:
        for path in apply_fixes(report, collected.root):
            print_success(f"Wrote {path}", stderr=as_json)
        for rel in sorted(held_back_paths(report, collected.root)):
            print_warning(f"Held back {rel}: awaiting human review", stderr=as_json)
    elif report.fixed_files and not as_json:
        print_info(f"{len(report.fixed_files)} file(s) have fixes. Re-run with --apply to write them.")


@app.command("backend")
def show_backend(
    ctx: typer.Context,
    backend: Optional[str] = typer.Option(
        None,
        "--backend",
        "-b",
        help="LLM backend: auto|ollama|openai|anthropic|lmstudio",
    ),
) -> None:
    """Check the LLM backend a run would use."""
    from llm_backend import backend_from_config

    try:
        llm = backend_from_config(_config(ctx).llm, kind=backend)
    except (ValueError, ImportError) as e:
        print_error(f"Could not create LLM backend: {e}")
        raise typer.Exit(1)

    print_info(f"{llm!r}")
    if not llm.is_available():
        print_error("Backend is not responding")
        raise typer.Exit(1)
    print_success("Backend is available")

    try:
        models = llm.list_models()
    except ConnectionError as e:
        print_warning(str(e))
        return
    for name in models:
        console.print(f"  {name}")


@app.command("config")
def show_config(ctx: typer.Context) -> None:
    """Show the effective configuration."""
    print_config(asdict(_config(ctx)))


@app.command()
def version() -> None:
    """Show persona-kit version."""
    from cli.personakit import __version__

    console.print(f"persona-kit v{__version__}")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
