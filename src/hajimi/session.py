# hajimi: Session controller. Owns the active Session, routes slash commands, and drives the streamed exchange with the remote service. Every command failure is reported through the Context and the loop keeps going.

from typing import Callable, Dict, Iterator, List, Optional, Protocol

from .compactor import compact
from .config import USER_PROMPT
from .context import Context
from .editor import ExternalEditorBridge
from .errors import (
    EditorError,
    HajimiError,
    HistoryParseError,
    InputClosed,
    LoadError,
    SaveError,
    StreamError,
    UsageError,
)
from .history import Session, TurnSequence, last_exchange
from .input import InputAccumulator
from .models import ModelInfo, Role, Turn, describe_turn
from .persistence import dumps_history, load_history, parse_history, save_history


class ReplyService(Protocol):
    """What the controller needs from the remote service."""

    def stream_reply(self, ctx: Context, model_id: str, turns: List[Turn]) -> Iterator[str]: ...

    def list_models(self, ctx: Context) -> List[ModelInfo]: ...


class SessionController:
    """
    Interactive chat loop over a single Session.

    The Session is replaced wholesale by model switches, clear, load and history
    edits; a chat exchange appends the user turn and the growing model turn to
    the current history.
    """

    def __init__(
        self,
        ctx: Context,
        service: ReplyService,
        model_id: str,
        editor: Optional[ExternalEditorBridge] = None,
        reader: Optional[InputAccumulator] = None,
        system_prompt: str = "",
    ) -> None:
        self.ctx = ctx
        self.service = service
        self.session = Session.new(model_id)
        self.editor = editor or ExternalEditorBridge(ctx)
        self.reader = reader or InputAccumulator()
        self.system_prompt = system_prompt
        self.commands: Dict[str, Callable[[List[str]], Optional[bool]]] = {
            "/quit": self.cmd_quit,
            "/exit": self.cmd_quit,
            "/model": self.cmd_model,
            "/list": self.cmd_list,
            "/clear": self.cmd_clear,
            "/save": self.cmd_save,
            "/load": self.cmd_load,
            "/history": self.cmd_history,
            "/editor": self.cmd_editor,
            "/help": self.cmd_help,
        }

    # ---------- Commands ----------

    def cmd_help(self, args: List[str]) -> None:
        """Print a list of supported commands and brief descriptions."""
        self.ctx.send_to_user("Commands:")
        self.ctx.send_to_user("/model <name>   - Switch model, keeping the conversation")
        self.ctx.send_to_user("/list           - List available models")
        self.ctx.send_to_user("/clear          - Clear the conversation history")
        self.ctx.send_to_user("/save <path>    - Save the conversation to a JSON file")
        self.ctx.send_to_user("/load <path>    - Replace the conversation with a saved one")
        self.ctx.send_to_user("/history        - Edit the raw conversation in your editor")
        self.ctx.send_to_user("/editor         - Compose the next message in your editor")
        self.ctx.send_to_user("/help           - Show this help")
        self.ctx.send_to_user("/quit, /exit    - Exit")
        self.ctx.send_to_user("End a line with \\ to continue typing on the next line.")

    def cmd_quit(self, args: List[str]) -> bool:
        return True

    def cmd_model(self, args: List[str]) -> None:
        if not args:
            raise UsageError("Usage: /model <model_name>, e.g. /model gemini-2.5-flash")
        new_id = args[0]
        self.session = Session.new(new_id, compact(self.session.history))
        self.ctx.send_to_user(f"Model switched to: {new_id}")

    def cmd_list(self, args: List[str]) -> None:
        """Show models available to the configured API key. Read-only."""
        try:
            models = self.service.list_models(self.ctx)
        except StreamError as e:
            raise HajimiError(f"Could not list models: {e}") from e
        if not models:
            self.ctx.send_to_user("No models available.")
            return
        self.ctx.send_to_user(f"Available models ({len(models)}):")
        for m in models:
            marker = "*" if m.short_name == self.session.model_id else "-"
            line = f"{marker} {m.short_name}"
            if m.display_name:
                line += f" | {m.display_name}"
            if m.description:
                line += f": {m.description}"
            self.ctx.send_to_user(line)

    def cmd_clear(self, args: List[str]) -> None:
        self.session = Session.new(self.session.model_id)
        self.ctx.send_to_user("History cleared.")

    def cmd_save(self, args: List[str]) -> None:
        if not args:
            raise UsageError("Usage: /save <path>")
        path = save_history(args[0], self.session.history)
        self.ctx.send_to_user(f"Saved {len(compact(self.session.history))} turn(s) to {path}")

    def cmd_load(self, args: List[str]) -> None:
        if not args:
            raise UsageError("Usage: /load <path>")
        turns = load_history(args[0])
        self.session = Session.new(self.session.model_id, turns)
        self.ctx.send_to_user(f"Loaded {len(turns)} turn(s) from {args[0]}")
        self._show_last_exchange()

    def cmd_history(self, args: List[str]) -> None:
        """Edit the serialized, compacted history externally; the parsed result replaces the history."""
        original = dumps_history(self.session.history)
        edited = self.editor.edit(original, filename="history.json")
        turns = parse_history(edited)
        self.session = Session.new(self.session.model_id, turns)
        self.ctx.send_to_user(f"History replaced ({len(turns)} turn(s)).")

    def cmd_editor(self, args: List[str]) -> None:
        text = self.editor.edit()
        self.ctx.send_to_user(f"\n{USER_PROMPT.strip()}\n{text}")
        self.chat(text)

    def _show_last_exchange(self) -> None:
        for turn in last_exchange(compact(self.session.history)):
            self.ctx.send_to_user(describe_turn(turn))

    # ---------- Chat ----------

    def chat(self, prompt: str) -> None:
        """
        Send one user turn and stream the reply into a growing model turn.

        On failure or Ctrl-C the partial model turn stays in history as received.
        """
        history = self.session.history
        history.append(Turn.of_text(Role.user, prompt))
        reply: Optional[Turn] = None
        stream = self.service.stream_reply(self.ctx, self.session.model_id, history.to_list())
        self.ctx.send_to_user("\nmodel:")
        try:
            for fragment in stream:
                if reply is None:
                    reply = history.append(Turn(role=Role.model, parts=[]))
                reply.append_text(fragment)
                self.ctx.stream_to_user(fragment)
            self.ctx.stream_to_user("\n")
        except KeyboardInterrupt:
            self.ctx.stream_to_user("\n")
            self.ctx.log("Reply interrupted; partial reply kept in history.")
        finally:
            close = getattr(stream, "close", None)
            if close is not None:
                close()

    # ---------- Dispatch ----------

    def handle_user_input(self, text: str) -> bool:
        """
        Handle one submission: run a known command or send it as a chat turn.

        Returns:
            True when the session should end.
        """
        parts = text.split()
        keyword = parts[0].lower() if parts else ""
        handler = self.commands.get(keyword)
        try:
            if handler is not None:
                return bool(handler(parts[1:]))
            self.chat(text)
        except UsageError as e:
            self.ctx.error_message(str(e))
        except HistoryParseError as e:
            self.ctx.error_message(f"Edited history is invalid; keeping the previous history. {e}")
        except (LoadError, SaveError, EditorError) as e:
            self.ctx.error_message(str(e))
        except StreamError as e:
            self.ctx.stream_to_user("\n")
            self.ctx.error_message(f"Chat request failed: {e}")
            self.ctx.send_to_user("Please retry, or check your network connection and API key.")
        except HajimiError as e:
            self.ctx.error_message(str(e))
        except KeyboardInterrupt:
            # Ctrl-C while the editor or a model listing runs cancels only that command.
            self.ctx.stream_to_user("\n")
            self.ctx.log("Command interrupted.")
        return False

    def banner(self) -> None:
        self.ctx.send_to_user("\nHajimi Chat CLI")
        self.ctx.send_to_user(f"Model: {self.session.model_id}")
        if self.system_prompt:
            self.ctx.send_to_user("System prompt set (✓)")
        self.ctx.send_to_user("Type /help for commands, /quit or /exit to leave.")
        self.ctx.send_to_user("-----------------------------------")

    def run(self) -> None:
        """Start the interactive REPL loop."""
        self.banner()
        while True:
            try:
                text = self.reader.read(USER_PROMPT)
            except InputClosed:
                self.ctx.send_to_user("\nGoodbye.")
                break
            if not text.strip():
                continue
            if self.handle_user_input(text):
                self.ctx.send_to_user("Goodbye.")
                break
