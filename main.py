"""
Interactive chat demo: streams gateway replies with the rich printer and
keeps the conversation in an in-memory chat store.
"""
import argparse
import asyncio
import logging
from typing import List, Optional

from rich.console import Console

from llmgate import (
    ChatMessage,
    GatewayError,
    InMemoryChatStore,
    RichStreamPrinter,
    build_gateway,
)

console = Console()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Chat through the LLM gateway.")
    parser.add_argument("--secondary", action="store_true", help="use the secondary (Azure) provider")
    parser.add_argument("--model", default=None, help="model override for the selected provider")
    parser.add_argument("--system", default="You are a friendly and knowledgeable assistant.")
    parser.add_argument("--verbose", action="store_true", help="log gateway decisions")
    return parser.parse_args(argv)


async def interactive_conversation(args: argparse.Namespace) -> None:
    gateway = build_gateway()
    store = InMemoryChatStore()
    chat = store.create_chat("Interactive session")
    printer = RichStreamPrinter(title="Assistant", border_style="cyan", console=console)
    system = ChatMessage(role="system", content=args.system)

    while True:
        console.print("\n[bold yellow]You:[/bold yellow]", end=" ")
        user_input = input().strip()

        if user_input.lower() in ["exit", "quit", "bye"]:
            console.print("[green]Goodbye![/green]")
            break
        if not user_input:
            continue

        store.create_message(chat.id, user_input, "user")
        history = [system] + [m.to_message() for m in store.list_messages(chat.id)]

        try:
            result = await printer.print_stream(
                gateway,
                history,
                use_secondary=args.secondary,
                model=args.model,
            )
        except GatewayError as e:
            console.print(f"[bold red]No provider could answer:[/bold red] {e}")
            continue

        store.create_message(chat.id, result.content, "assistant")


async def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    try:
        await interactive_conversation(args)
    except (KeyboardInterrupt, EOFError):
        console.print("\n[yellow]Session ended[/yellow]")


if __name__ == "__main__":
    asyncio.run(main())
