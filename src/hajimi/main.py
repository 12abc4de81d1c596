# hajimi: CLI entrypoint. Loads .env and settings, wires the Gemini client and editor into a SessionController, then starts the REPL.

import pathlib
import sys
from typing import List, Optional

from dotenv import load_dotenv

from .context import Context
from .errors import HajimiError, LoadError


def _usage() -> None:
    print("Usage: hajimi [--model NAME|-m NAME] [--system-prompt PATH|-s PATH] [--load PATH|-l PATH]")
    print("Options:")
    print("  -m, --model NAME           Model to start with (default: GEMINI_MODEL or gemini-2.5-flash)")
    print("  -s, --system-prompt PATH   File holding the system instruction (default: SYSTEM_PROMPT)")
    print("  -l, --load PATH            Load a saved conversation before the first prompt")
    print("Environment:")
    print("  GEMINI_API_KEY, GEMINI_MODEL, GEMINI_BASE_URL, SYSTEM_PROMPT, HAJIMI_EDITOR/EDITOR")


def read_system_prompt(path: Optional[str]) -> str:
    """Return the system instruction text from path ('' when path is empty)."""
    if not path:
        return ""
    p = pathlib.Path(path).expanduser()
    try:
        return p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise HajimiError(f"could not read system prompt {p}: {e}") from e


def main(argv: Optional[List[str]] = None) -> None:
    """
    Hajimi CLI entrypoint.

    Usage:
        hajimi [--model NAME|-m NAME] [--system-prompt PATH|-s PATH] [--load PATH|-l PATH]

    Notes:
        - GEMINI_API_KEY must be set in the environment, in ./.env, or in settings.yaml.
        - Settings are read from ./.hajimi/settings.yaml, then ~/.hajimi/settings.yaml.
    """
    args = sys.argv[1:] if argv is None else list(argv)

    # Help handling (recognized anywhere in argv)
    if any(a in ("-h", "--help") for a in args):
        _usage()
        return

    # hajimi: Minimal flag parsing; supports "--flag VALUE", "--flag=VALUE" and the short forms.
    flags = {"-m": "model", "--model": "model", "-s": "system_prompt", "--system-prompt": "system_prompt", "-l": "load", "--load": "load"}
    opts = {"model": None, "system_prompt": None, "load": None}
    i = 0
    while i < len(args):
        a = args[i]
        if "=" in a and a.split("=", 1)[0] in flags:
            name, value = a.split("=", 1)
            opts[flags[name]] = value
            i += 1
            continue
        if a in flags:
            if i + 1 >= len(args):
                print(f"error: {a} requires an argument")
                sys.exit(2)
            opts[flags[a]] = args[i + 1]
            i += 2
            continue
        print(f"error: unknown argument: {a}")
        sys.exit(2)

    root = pathlib.Path(".").resolve()

    # .env must be loaded before config reads the environment.
    load_dotenv(root / ".env", override=False)
    from . import config
    from .client import GeminiClient
    from .editor import ExternalEditorBridge
    from .session import SessionController
    from .settings import load_settings

    settings = load_settings(root)
    ctx = Context(root, settings=settings)

    try:
        system_prompt = read_system_prompt(opts["system_prompt"] or settings.get("system_prompt") or config.SYSTEM_PROMPT)
        client = GeminiClient(model=opts["model"], settings=settings, system_prompt=system_prompt)
    except HajimiError as e:
        ctx.error_message(str(e))
        sys.exit(1)

    editor = ExternalEditorBridge(ctx, command=settings.get("editor") or config.EDITOR)
    controller = SessionController(ctx, client, client.model, editor=editor, system_prompt=system_prompt)
    if opts["load"]:
        try:
            controller.cmd_load([opts["load"]])
        except LoadError as e:
            ctx.error_message(str(e))
    controller.run()


if __name__ == "__main__":
    main()
