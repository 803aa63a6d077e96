#!/usr/bin/env python3
"""
NFT Deck CLI entrypoint
"""

import asyncio
import json
import typer
from typing import Optional
from rich.console import Console
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn

from nft_deck import NftDeck, Chain
from nft_deck.models import DEFAULT_CHAIN
from nft_deck.config import config
from nft_deck.exceptions import NftDeckError, RelayBlockedError
from nft_deck.security import RelayGuard
from nft_deck.utils import configure_logging

app = typer.Typer(help="NFT Deck - Multi-chain NFT cards with a guarded media relay")
console = Console()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")):
    configure_logging("DEBUG" if verbose else config.log_level)


@app.command()
def cards(
    wallet: str = typer.Argument(..., help="Wallet address or ENS name"),
    chain: str = typer.Option(DEFAULT_CHAIN.value, help="Network (eth-mainnet, base-mainnet, celo-mainnet, ...)"),
    show_spam: bool = typer.Option(False, "--show-spam", help="Include NFTs flagged as spam"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Output file (JSON)"),
):
    """List the NFTs a wallet owns as cards"""
    try:
        chain_enum = Chain.from_string(chain)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=2)

    async def fetch_cards():
        deck = NftDeck()
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task(f"Fetching NFTs for {wallet}...", total=None)
            response = await deck.get_cards(chain_enum, wallet, hide_spam=not show_spam)
            progress.update(task, completed=True)
        return response

    try:
        response = asyncio.run(fetch_cards())
    except NftDeckError as e:
        console.print(f"[red]{getattr(e, 'hint', None) or e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"\n[bold green]Found {response.count} NFTs on {chain_enum.label}[/bold green]")
    console.print(f"[dim]Resolved address: {response.resolved_address}[/dim]")

    if response.cards:
        table = Table(title=f"NFTs for {wallet}")
        table.add_column("Collection", style="magenta")
        table.add_column("Token ID", style="yellow")
        table.add_column("Name", style="white")
        table.add_column("Artist", style="cyan")

        for card in response.cards[:20]:  # Show first 20
            table.add_row(
                card.collection_name or "Unknown",
                card.token_id[:20] + "..." if len(card.token_id) > 20 else card.token_id,
                card.token_name or "Unnamed",
                card.artist or "",
            )

        console.print(table)

        if response.count > 20:
            console.print(f"\n[dim]... and {response.count - 20} more[/dim]")

    for warning in response.warnings:
        console.print(f"[yellow]Warning: {warning}[/yellow]")

    if output:
        with open(output, "w") as f:
            json.dump(response.to_payload(), f, indent=2)
        console.print(f"\n[green]Saved to {output}[/green]")


@app.command()
def check_url(
    url: str = typer.Argument(..., help="Absolute media URL"),
):
    """Run the media relay guard against a URL without fetching it"""
    async def check():
        return await RelayGuard().check(url)

    try:
        parsed = asyncio.run(check())
    except RelayBlockedError:
        console.print(f"[red]✗ Blocked:[/red] {url}")
        raise typer.Exit(code=1)
    console.print(f"[green]✓ Allowed:[/green] {parsed}")


@app.command()
def serve(
    port: int = typer.Option(config.port, "--port", "-p", help="Port to run the server on"),
    host: str = typer.Option("0.0.0.0", "--host", "-h", help="Host to bind to"),
):
    """Start the cards API and media relay server"""
    import uvicorn
    from nft_deck.web.app import app as web_app

    console.print(f"[bold green]Starting NFT Deck server on {host}:{port}[/bold green]")
    console.print("[dim]Endpoints:[/dim]")
    console.print("  GET /api/nfts?chain=&wallet=&hideSpam=")
    console.print("  GET /api/media?url=")
    console.print("  GET /health")

    uvicorn.run(web_app, host=host, port=port, log_config=None)


if __name__ == "__main__":
    app()
