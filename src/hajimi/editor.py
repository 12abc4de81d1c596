# hajimi: External editor bridge. Every invocation gets its own scratch directory which is removed on all exit paths; cleanup failures are logged, never raised.

import pathlib
import shlex
import shutil
import subprocess
import tempfile
from typing import List, Optional

from .config import EDITOR
from .context import Context
from .errors import EditorError


class ExternalEditorBridge:
    """
    Hand a scratch text file to an external editor and return what the user saved.

    The editor command is a shell-style string (e.g. "code --wait"); the scratch
    file path is appended as the last argument. The editor inherits the terminal's
    stdin/stdout/stderr and the call blocks until it exits.
    """

    def __init__(self, ctx: Context, command: Optional[str] = None, filename: str = "hajimi.md") -> None:
        self.ctx = ctx
        self.command = (command or EDITOR).strip()
        self.filename = filename

    def _argv(self, path: pathlib.Path) -> List[str]:
        try:
            argv = shlex.split(self.command)
        except ValueError as e:
            raise EditorError(f"invalid editor command {self.command!r}: {e}") from e
        if not argv:
            raise EditorError("no editor configured (set HAJIMI_EDITOR or EDITOR)")
        return argv + [str(path)]

    def _cleanup(self, scratch: pathlib.Path) -> None:
        try:
            shutil.rmtree(scratch)
        except OSError as e:
            self.ctx.log(f"Could not remove editor scratch directory {scratch}: {e}")

    def edit(self, initial_content: Optional[str] = None, filename: Optional[str] = None) -> str:
        """
        Open the editor and return the file's final contents with trailing whitespace trimmed.

        Args:
            initial_content: Text to pre-fill the file with. When None the file is not
                created up front and the editor starts on a new, empty buffer.
            filename: Scratch file name; its suffix lets editors pick a syntax mode.

        Raises:
            EditorError: If the scratch area cannot be created, the editor cannot be
                launched or exits non-zero, or the file cannot be read back.
        """
        try:
            scratch = pathlib.Path(tempfile.mkdtemp(prefix="hajimi-"))
        except OSError as e:
            raise EditorError(f"could not create scratch directory: {e}") from e
        try:
            path = scratch / (filename or self.filename)
            if initial_content is not None:
                try:
                    path.write_text(initial_content, encoding="utf-8")
                except OSError as e:
                    raise EditorError(f"could not write scratch file: {e}") from e
            argv = self._argv(path)
            try:
                proc = subprocess.run(argv)
            except OSError as e:
                raise EditorError(f"could not launch editor {argv[0]!r}: {e}") from e
            if proc.returncode != 0:
                raise EditorError(f"editor {argv[0]!r} exited with status {proc.returncode}")
            try:
                return path.read_text(encoding="utf-8").rstrip()
            except FileNotFoundError as e:
                raise EditorError("editor exited without saving the file") from e
            except (OSError, UnicodeDecodeError) as e:
                raise EditorError(f"could not read edited file: {e}") from e
        finally:
            self._cleanup(scratch)
