"""CLI entry point for Rolegate."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from rolegate_core.conditions import SUPPORTED_OPERATORS
from rolegate_core.config import RolegateConfig, load_config
from rolegate_core.config.loader import DEFAULT_CONFIG_TEMPLATE
from rolegate_core.engine import AccessRequest, AccessResult, PolicyEngine, create_engine
from rolegate_core.policy import AccessContext, Environment, Permission
from rolegate_core.policy.defaults import SYSTEM_PERMISSIONS
from rolegate_core.policy.loader import PolicyLoadError, load_policy, read_policy
from rolegate_core.registry import RoleCycleError, find_role_cycle

app = typer.Typer(
    name="rolegate",
    help="Evaluate role and attribute based access policies.",
)

config_app = typer.Typer(help="Manage Rolegate configuration.")
app.add_typer(config_app, name="config")

roles_app = typer.Typer(help="Inspect roles.")
app.add_typer(roles_app, name="roles")

permissions_app = typer.Typer(help="Inspect permissions.")
app.add_typer(permissions_app, name="permissions")

# Global state
_config: RolegateConfig | None = None
_policy_files: list[str] = []

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return json.dumps({
            "time": self.formatTime(record),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        })


def _configure_logging(cfg: RolegateConfig) -> None:
    handler = logging.StreamHandler()
    if cfg.log_format == "json":
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    logging.basicConfig(level=_LOG_LEVELS[cfg.log_level], handlers=[handler])


def _get_config() -> RolegateConfig:
    if _config is None:
        return load_config()
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to rolegate.yaml")
    ] = None,
    policy: Annotated[
        list[str] | None,
        typer.Option("--policy", "-p", help="Policy document to load (repeatable)"),
    ] = None,
) -> None:
    """Global options."""
    global _config, _policy_files
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)
    _policy_files = list(policy or [])
    _configure_logging(_config)


def _build_engine() -> PolicyEngine:
    cfg = _get_config()
    try:
        engine = create_engine(cfg)
        for path in _policy_files:
            load_policy(path, engine.store)
    except PolicyLoadError as e:
        rprint(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)
    return engine


def _parse_pairs(pairs: list[str] | None, option: str) -> dict[str, object]:
    """Turn ``key=value`` options into a dict; values are parsed as YAML scalars."""
    result: dict[str, object] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected key=value, got {pair!r}", param_hint=option)
        result[key] = yaml.safe_load(value) if value else ""
    return result


def _display_result(request: AccessRequest, result: AccessResult) -> None:
    status = "[green]GRANTED[/green]" if result.granted else "[red]DENIED[/red]"
    lines = [
        f"[dim]User:[/dim]      {escape(request.user_id)}",
        f"[dim]Request:[/dim]   {escape(request.resource)}:{escape(request.action)}",
        f"[dim]Decision:[/dim]  {status}",
        f"[dim]Reason:[/dim]    {escape(result.reason)}",
    ]
    if result.applied_permissions:
        applied = ", ".join(p.id for p in result.applied_permissions)
        lines.append(f"[dim]Applied:[/dim]   {escape(applied)}")
    for reason in result.deny_reasons:
        lines.append(f"  [red]deny:[/red] {escape(reason)}")
    for warning in result.warnings:
        lines.append(f"  [yellow]warn:[/yellow] {escape(warning)}")
    if result.error:
        lines.append(f"  [red]error:[/red] {escape(result.error)}")
    rprint(Panel(
        "\n".join(lines),
        title="Access Decision",
        border_style="green" if result.granted else "red",
    ))


def _permission_table(title: str, permissions: list[Permission]) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan")
    table.add_column("Resource")
    table.add_column("Action")
    table.add_column("Effect", justify="center")
    table.add_column("Conditions", justify="right")
    for p in sorted(permissions, key=lambda p: p.id):
        effect = "[green]allow[/green]" if p.effect.value == "allow" else "[red]deny[/red]"
        table.add_row(p.id, p.resource, p.action, effect, str(len(p.conditions)))
    return table


@app.command()
def check(
    user: str = typer.Argument(..., help="User id"),
    resource: str = typer.Argument(..., help="Resource name, e.g. documents"),
    action: str = typer.Argument(..., help="Action, e.g. read"),
    attr: Annotated[
        list[str] | None, typer.Option("--attr", help="User attribute key=value")
    ] = None,
    resource_attr: Annotated[
        list[str] | None, typer.Option("--resource-attr", help="Resource attribute key=value")
    ] = None,
    env: Annotated[
        list[str] | None, typer.Option("--env", help="Environment attribute key=value")
    ] = None,
    format: Annotated[
        str, typer.Option("--format", "-f", help="Output format: table or json")
    ] = "table",
) -> None:
    """Decide whether USER may perform ACTION on RESOURCE. Exits 1 on denial."""
    context = AccessContext(
        user_attributes=_parse_pairs(attr, "--attr"),
        resource_attributes=_parse_pairs(resource_attr, "--resource-attr"),
        environment=Environment(**_parse_pairs(env, "--env")),
    )
    request = AccessRequest(user_id=user, resource=resource, action=action, context=context)
    result = _build_engine().check_access(request)

    if format == "json":
        typer.echo(result.model_dump_json(indent=2))
    else:
        _display_result(request, result)

    if not result.granted:
        raise typer.Exit(1)


@app.command()
def effective(
    user: str = typer.Argument(..., help="User id"),
    format: Annotated[
        str, typer.Option("--format", "-f", help="Output format: table or json")
    ] = "table",
) -> None:
    """Show the roles and resolved permissions of USER."""
    result = _build_engine().get_effective_permissions(user)

    if format == "json":
        typer.echo(result.model_dump_json(indent=2))
        return

    if not result.roles:
        rprint(f"[yellow]{escape(user)} holds no roles.[/yellow]")
        return
    rprint(f"[bold]Roles:[/bold] {escape(', '.join(r.id for r in result.roles))}")
    rprint(_permission_table(f"Effective permissions ({len(result.permissions)})", result.permissions))
    rprint(f"[bold]Resources:[/bold] {escape(', '.join(result.resources))}")


@roles_app.command("list")
def roles_list() -> None:
    """List registered roles."""
    engine = _build_engine()
    roles = sorted(engine.roles.list(), key=lambda r: r.id)
    table = Table(title=f"Roles ({len(roles)})")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Parents", style="yellow")
    table.add_column("Permissions", justify="right")
    table.add_column("System", justify="center")
    table.add_column("Active", justify="center")
    for r in roles:
        table.add_row(
            r.id,
            r.name,
            ", ".join(r.parent_roles) if r.parent_roles else "-",
            "*" if r.grants_all else str(len(r.permissions)),
            "yes" if r.is_system_role else "-",
            "yes" if r.is_active else "[red]no[/red]",
        )
    rprint(table)


@permissions_app.command("list")
def permissions_list(
    resource: Annotated[
        str | None, typer.Option("--resource", "-r", help="Only this resource")
    ] = None,
) -> None:
    """List registered permissions."""
    engine = _build_engine()
    permissions = [p for p in engine.permissions.list() if resource is None or p.resource == resource]
    rprint(_permission_table(f"Permissions ({len(permissions)})", permissions))


@app.command()
def validate(
    path: str = typer.Argument(..., help="Policy document to validate"),
) -> None:
    """Validate a policy document without loading it."""
    try:
        document = read_policy(path)
    except PolicyLoadError as e:
        rprint(f"[red]error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    errors: list[str] = []
    warnings: list[str] = []

    cycle = find_role_cycle({r.id: r for r in document.roles})
    if cycle is not None:
        errors.append(str(RoleCycleError(cycle)))

    known = {p.id for p in document.permissions}
    if _get_config().engine.seed_system_roles:
        known |= {p.id for p in SYSTEM_PERMISSIONS}
    for role in document.roles:
        for permission_id in role.permissions:
            if permission_id != "*" and permission_id not in known:
                warnings.append(f"role {role.id}: unknown permission {permission_id}")
    for permission in document.permissions:
        for condition in permission.conditions:
            if condition.operator not in SUPPORTED_OPERATORS:
                warnings.append(
                    f"permission {permission.id}: unknown operator {condition.operator!r} never matches"
                )

    rprint(
        f"[bold]{escape(path)}[/bold]: {len(document.permissions)} permissions, "
        f"{len(document.roles)} roles, {len(document.resources)} resources, "
        f"{len(document.assignments)} assignments"
    )
    for err in errors:
        rprint(f"  [red]error:[/red] {escape(err)}")
    for warn in warnings:
        rprint(f"  [yellow]warn:[/yellow] {escape(warn)}")

    if errors:
        raise typer.Exit(1)


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default rolegate.yaml in current directory."""
    target = Path("rolegate.yaml")
    if target.exists() and not force:
        rprint("[yellow]rolegate.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")
