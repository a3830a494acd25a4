"""
Rich printer module for displaying gateway replies in the terminal.
"""
from typing import Any, List, Optional

from rich.console import Console, Group
from rich.live import Live
from rich.markup import escape
from rich.markdown import Markdown
from rich.panel import Panel
from rich.rule import Rule
from rich.text import Text

from .errors import ProviderError
from .gateway import ChatGateway, Conversation
from .types import CompletionResult


class RichStreamPrinter:
    """
    Displays a streaming reply live, one chunk at a time.

    An instance is callable, so it can be handed to `ChatGateway.stream_chat`
    as `on_chunk`; `mark_fallback` fits `on_fallback`. Text streamed before a
    fallback stays visible, struck through above a divider, and the
    fallback's reply is rendered below it.

    Attributes:
        title: Title for the display panel
        code_theme: Theme for code blocks
        inline_code_theme: Theme for inline code
        refresh_rate: Refresh rate for Live display
        show_final_title: Whether to change title to "Final Response" at the end
        border_style: Border style while streaming
        fallback_border_style: Border style once a fallback took over
    """

    def __init__(
        self,
        title: str = "Streaming Response",
        code_theme: str = "coffee",
        inline_code_theme: str = "monokai",
        refresh_rate: int = 30,
        show_final_title: bool = True,
        border_style: str = "blue",
        fallback_border_style: str = "yellow",
        console: Optional[Console] = None,
    ):
        self.title = title
        self.code_theme = code_theme
        self.inline_code_theme = inline_code_theme
        self.refresh_rate = refresh_rate
        self.show_final_title = show_final_title
        self.border_style = border_style
        self.fallback_border_style = fallback_border_style
        self.console = console or Console()
        self._parts: List[str] = []
        self._interrupted_text = ""
        self._fallback_error: Optional[ProviderError] = None
        self._result: Optional[CompletionResult] = None
        self._live: Optional[Live] = None

    def __enter__(self) -> "RichStreamPrinter":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

    def start(self) -> None:
        """Reset state and open the Live display."""
        self._parts = []
        self._interrupted_text = ""
        self._fallback_error = None
        self._result = None
        self._live = Live(
            self._build_panel(is_final=False),
            refresh_per_second=self.refresh_rate,
            console=self.console,
        )
        self._live.start()

    def stop(self) -> None:
        if self._live is not None:
            self._live.stop()
            self._live = None

    def __call__(self, text: str) -> None:
        """Append one chunk and refresh the display."""
        self._parts.append(text)
        self._update_display(is_final=False)

    def mark_fallback(self, error: ProviderError) -> None:
        """Start a new section for the fallback's reply."""
        self._interrupted_text = self.get_full_text()
        self._parts = []
        self._fallback_error = error
        self._update_display(is_final=False)

    def finish(self, result: CompletionResult) -> CompletionResult:
        """Render the final panel for `result` and return it unchanged."""
        self._result = result
        self._update_display(is_final=True)
        return result

    async def print_stream(
        self,
        gateway: ChatGateway,
        messages: Conversation,
        **opts: Any,
    ) -> CompletionResult:
        """
        Stream a reply from `gateway` straight into the display.

        Args:
            gateway: The gateway to call.
            messages: The conversation.
            **opts: Passed to `stream_chat` (use_secondary, model).

        Returns:
            CompletionResult: The final result from the gateway.
        """
        with self:
            result = await gateway.stream_chat(
                messages,
                self,
                on_fallback=self.mark_fallback,
                **opts,
            )
            return self.finish(result)

    def _update_display(self, is_final: bool) -> None:
        if self._live is not None:
            self._live.update(self._build_panel(is_final))

    def _build_panel(self, is_final: bool) -> Panel:
        border = self.fallback_border_style if self._fallback_error else self.border_style
        if is_final and not self._fallback_error:
            border = "green"
        return Panel(
            self._build_content(),
            title=self._build_title(is_final),
            border_style=border,
            padding=(1, 2),
        )

    def _build_title(self, is_final: bool) -> str:
        """Build the panel title."""
        title_parts = []

        if is_final and self.show_final_title:
            title_parts.append("[bold]Final Response[/bold]")
        else:
            title_parts.append(f"[bold]{self.title}[/bold]")

        if is_final and self._result is not None:
            title_parts.append(f"[dim]({escape(self._result.model_label)})[/dim]")
        elif self._fallback_error is not None:
            title_parts.append("[dim](fallback)[/dim]")

        return " ".join(title_parts)

    def _build_content(self) -> Any:
        """Build the panel content."""
        text = self.get_full_text()
        if text.strip():
            body: Any = Markdown(
                text,
                code_theme=self.code_theme,
                inline_code_theme=self.inline_code_theme,
            )
        else:
            body = Text("(waiting for response...)", style="dim italic")

        if self._fallback_error is None:
            return body

        failed = self._fallback_error.provider or "provider"
        renderables: List[Any] = []
        if self._interrupted_text:
            renderables.append(Text(self._interrupted_text, style="dim strike"))
        renderables.append(Rule(f"[yellow]{escape(failed)} failed, switched to fallback[/yellow]"))
        renderables.append(body)
        return Group(*renderables)

    def get_full_text(self) -> str:
        """Get the text assembled since the start, or since the fallback boundary."""
        return "".join(self._parts)

    def get_interrupted_text(self) -> str:
        """Get the text streamed before a fallback took over."""
        return self._interrupted_text

    def get_result(self) -> Optional[CompletionResult]:
        return self._result


class RichPrinter:
    """
    Displays a blocking CompletionResult using rich.

    Attributes:
        title: Title for the display panel
        code_theme: Theme for code blocks
        inline_code_theme: Theme for inline code
        show_model_info: Whether to show the model label in the title
        border_style: Border style for the panel
    """

    def __init__(
        self,
        title: str = "Response",
        code_theme: str = "coffee",
        inline_code_theme: str = "monokai",
        show_model_info: bool = True,
        border_style: str = "green",
        console: Optional[Console] = None,
    ):
        self.title = title
        self.code_theme = code_theme
        self.inline_code_theme = inline_code_theme
        self.show_model_info = show_model_info
        self.border_style = border_style
        self.console = console or Console()
        self._result: Optional[CompletionResult] = None

    def print_result(self, result: CompletionResult) -> CompletionResult:
        """
        Display a chat result with rich formatting.

        Fallback results get a yellow border so degraded service is visible.

        Returns:
            The same result for chaining
        """
        self._result = result

        title_parts = [f"[bold]{self.title}[/bold]"]
        if self.show_model_info and result.model_label:
            title_parts.append(f"[dim]({escape(result.model_label)})[/dim]")

        if result.content.strip():
            content: Any = Markdown(
                result.content,
                code_theme=self.code_theme,
                inline_code_theme=self.inline_code_theme,
            )
        else:
            content = Text("(empty response)", style="dim italic")

        self.console.print(
            Panel(
                content,
                title=" ".join(title_parts),
                border_style="yellow" if result.fallback else self.border_style,
                padding=(1, 2),
            )
        )
        return result

    def get_result(self) -> Optional[CompletionResult]:
        """Get the last printed result."""
        return self._result
