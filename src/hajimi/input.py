# hajimi: Multi-line input with backslash continuation. The line reader is injectable so the session loop can be driven by scripted input in tests.

from typing import Callable, Optional

from .config import CONTINUATION_MARKER, CONTINUATION_PROMPT
from .errors import InputClosed


class InputAccumulator:
    """
    Assemble one logical submission from raw lines.

    A line ending with the continuation marker has the marker stripped and is
    followed by a newline; reading then continues with the short continuation
    prompt. The first line without the marker ends the submission.
    """

    def __init__(
        self,
        read_line: Optional[Callable[[str], str]] = None,
        marker: str = CONTINUATION_MARKER,
        continuation_prompt: str = CONTINUATION_PROMPT,
    ) -> None:
        self.read_line = read_line or input
        self.marker = marker
        self.continuation_prompt = continuation_prompt
        self._closed = False

    def read(self, prompt: str) -> str:
        """
        Read one submission.

        Raises:
            InputClosed: When the source is exhausted before any line of a new
                submission was read. If it runs dry mid-continuation, the partial
                text is returned and the next call raises. Ctrl-C at the prompt
                closes the source the same way.
        """
        if self._closed:
            raise InputClosed()
        buf = ""
        current = prompt
        pending = False
        while True:
            try:
                line = self.read_line(current)
            except EOFError:
                self._closed = True
                if not pending:
                    raise InputClosed()
                return buf[:-1] if buf.endswith("\n") else buf
            except KeyboardInterrupt:
                # Ctrl-C at the prompt ends the session; any partial submission is dropped.
                self._closed = True
                raise InputClosed()
            if line.endswith(self.marker):
                buf += line[: -len(self.marker)] + "\n"
                current = self.continuation_prompt
                pending = True
                continue
            return buf + line
