"""CLI commands for switchclaw."""

import asyncio
import json
from datetime import datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from switchclaw import __logo__, __version__

app = typer.Typer(
    name="switchclaw",
    help=f"{__logo__} switchclaw - chat command router",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} switchclaw v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """switchclaw - chat command router."""
    pass


def _load(config_path: Path | None):
    from switchclaw.config.loader import load_config

    return load_config(config_path)


def _make_runner(config, echo: bool):
    from switchclaw.agent.runner import EchoAgentRunner

    if echo:
        return EchoAgentRunner()

    if not (config.provider.api_key or config.provider.api_base):
        console.print("[red]Error: No API key configured.[/red]")
        console.print("Set provider.apiKey in ~/.switchclaw/config.json or pass --echo")
        raise typer.Exit(1)

    from switchclaw.agent.litellm_runner import LiteLLMAgentRunner

    return LiteLLMAgentRunner.from_config(config)


# ============================================================================
# Reply
# ============================================================================


@app.command()
def reply(
    body: str = typer.Argument(..., help="Message text"),
    sender: str = typer.Option(..., "--from", "-f", help="Sender address (group address for groups)"),
    to: str = typer.Option("", "--to", help="Recipient address"),
    provider: str = typer.Option(None, "--provider", "-p", help="Channel kind, e.g. whatsapp"),
    group: bool = typer.Option(False, "--group", help="Treat the message as a group message"),
    sender_e164: str = typer.Option(None, "--sender-e164", help="Human sender inside a group"),
    sender_id: str = typer.Option(None, "--sender-id", help="Opaque sender id"),
    subject: str = typer.Option(None, "--subject", help="Group subject"),
    members: str = typer.Option(None, "--members", help='Group members, e.g. "Alice (+1), Bob (+2)"'),
    authorized: bool = typer.Option(None, "--authorized/--unauthorized", help="Upstream command trust flag"),
    echo: bool = typer.Option(False, "--echo", help="Echo the prompt instead of calling an LLM"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file path"),
):
    """Route one message and print the reply."""
    from switchclaw.agent.router import ReplyOptions, get_reply_from_config
    from switchclaw.bus.events import IncomingMessage, ReplyPayload

    config = _load(config_path)
    runner = _make_runner(config, echo)
    message = IncomingMessage(
        body=body,
        from_=sender,
        to=to,
        provider=provider,
        chat_type="group" if group else "direct",
        sender_e164=sender_e164,
        sender_id=sender_id,
        group_subject=subject,
        group_members=members,
        command_authorized=authorized,
    )

    async def on_block_reply(payload: ReplyPayload) -> None:
        console.print(f"[dim]block:[/dim] {payload.text}")

    result = asyncio.run(
        get_reply_from_config(message, config, runner, ReplyOptions(on_block_reply=on_block_reply))
    )
    if result is None:
        console.print("[dim](no reply)[/dim]")
        return
    for part in result if isinstance(result, list) else [result]:
        console.print(part.text)


# ============================================================================
# Sessions
# ============================================================================


sessions_app = typer.Typer(help="Inspect the session store")
app.add_typer(sessions_app, name="sessions")


@sessions_app.command("list")
def sessions_list(
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file path"),
):
    """List stored sessions."""
    from switchclaw.session.store import SessionStore

    config = _load(config_path)
    rows = SessionStore(config.store_path).list_sessions()
    if not rows:
        console.print("No sessions.")
        return

    table = Table(title="Sessions")
    table.add_column("Key", style="cyan")
    table.add_column("Send policy")
    table.add_column("Activation")
    table.add_column("Updated")
    for row in rows:
        updated = datetime.fromtimestamp(int(row.get("updatedAt") or 0) / 1000).strftime("%Y-%m-%d %H:%M")
        table.add_row(
            row["key"],
            str(row.get("sendPolicy") or "inherit"),
            str(row.get("groupActivation") or "-"),
            updated,
        )
    console.print(table)


@sessions_app.command("show")
def sessions_show(
    key: str = typer.Argument(..., help="Session key"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file path"),
):
    """Print one stored session as JSON."""
    from switchclaw.session.store import SessionStore

    config = _load(config_path)
    entry = SessionStore(config.store_path).load().get(key)
    if entry is None:
        console.print(f"[red]Session {key} not found[/red]")
        raise typer.Exit(1)
    console.print_json(json.dumps(entry.to_dict()))


@sessions_app.command("delete")
def sessions_delete(
    key: str = typer.Argument(..., help="Session key"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file path"),
):
    """Forget one stored session."""
    from switchclaw.session.store import SessionStore

    config = _load(config_path)
    removed = asyncio.run(SessionStore(config.store_path).delete(key))
    if not removed:
        console.print(f"[red]Session {key} not found[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Deleted session {key}")


if __name__ == "__main__":
    app()
