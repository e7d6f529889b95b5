"""
Funge VM - Console peripheral (output sink + input source)

The only observable side effects of a Funge program besides rewriting
its own space are the characters it prints and the input it consumes.

Output:
  Every emitted character lands in tx_buffer for programmatic
  inspection. If an output stream is attached (stdout for the CLI), it is
  written through as well and flushed on newline.

Input:
  Text pushed with inject_input() is consumed first. When that queue is
  empty and an input stream is attached, one line at a time is pulled
  from it. No stream and an empty queue means EOF, and the `~`/`&`
  instructions reflect.

Simplifications:
  - Output never blocks from the VM's point of view
  - Values outside the Unicode range, and lone surrogates, print as
    U+FFFD so any UTF-8 stream can take them
"""

from collections import deque
from typing import Optional, TextIO

REPLACEMENT_CHAR = '�'
DIGITS = '0123456789'


def code_to_char(code: int) -> str:
    if 0 <= code <= 0x10FFFF and not 0xD800 <= code <= 0xDFFF:
        return chr(code)
    return REPLACEMENT_CHAR


class Console:
    """Buffered character I/O for the emulator."""

    def __init__(self, output: Optional[TextIO] = None,
                 input_stream: Optional[TextIO] = None):
        self._output = output
        self._input = input_stream

        # TX buffer: everything the program printed
        self.tx_buffer: list = []

        # RX queue: characters waiting to be read
        self._rx_queue: deque = deque()
        self._eof = False

    # --- Output ---

    def emit(self, code: int) -> None:
        ch = code_to_char(code)
        self.tx_buffer.append(ch)
        if self._output is not None:
            self._output.write(ch)
            if ch == '\n':
                self._output.flush()

    def emit_text(self, text: str) -> None:
        for ch in text:
            self.emit(ord(ch))

    @property
    def output(self) -> str:
        """Everything emitted so far, as one string."""
        return ''.join(self.tx_buffer)

    def flush(self):
        if self._output is not None:
            self._output.flush()

    # --- Input ---

    def inject_input(self, text: str):
        """Queue text to be read by `~` and `&`."""
        self._rx_queue.extend(text)

    def _fill(self) -> bool:
        """Make sure at least one character is queued. False at EOF."""
        if self._rx_queue:
            return True
        if self._input is None or self._eof:
            return False
        line = self._input.readline()
        if not line:
            self._eof = True
            return False
        self._rx_queue.extend(line)
        return True

    def read_char(self) -> Optional[int]:
        """`~` - next character code, or None at EOF."""
        if not self._fill():
            return None
        return ord(self._rx_queue.popleft())

    def read_int(self) -> Optional[int]:
        """`&` - next decimal integer, or None at EOF.

        Skips anything before the first digit (a '-' directly in front of
        it makes the number negative) and consumes digits up to the first
        non-digit, which is left in the queue.
        """
        negative = False
        while True:
            if not self._fill():
                return None
            ch = self._rx_queue[0]
            if ch in DIGITS:
                break
            self._rx_queue.popleft()
            negative = ch == '-'
        digits = []
        while self._fill() and self._rx_queue[0] in DIGITS:
            digits.append(self._rx_queue.popleft())
        value = int(''.join(digits))
        return -value if negative else value

    def reset(self):
        self.tx_buffer.clear()
        self._rx_queue.clear()
        self._eof = False
