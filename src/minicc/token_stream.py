"""
Token Stream with Bounded Pushback
==================================

Sits between the lexer and the parser. The parser pulls tokens one at a
time; when it needs to look further ahead than its current/peek pair
(deciding whether ``int name`` starts a function), it pulls an extra
token and pushes it back. Pushed-back tokens are returned before the
lexer is asked for anything new, so the lexer never has to rewind.

    lexer -> TokenStream(pushback queue) -> parser
"""

from collections import deque

from minicc.errors import InternalCompilerError
from minicc.lexer import CLexer, CToken


class TokenStream:
    """
    Pull-based token source with a small pushback queue.

    Attributes:
        max_pushback: Deepest pushback allowed before it is treated as
            a parser bug
    """

    MAX_PUSHBACK = 3

    def __init__(self, lexer: CLexer, max_pushback: int = MAX_PUSHBACK):
        self._lexer = lexer
        self._pushback: deque[CToken] = deque()
        self.max_pushback = max_pushback
        self.tokens_read = 0

    def next(self) -> CToken:
        """Return the next token, preferring pushed-back tokens."""
        if self._pushback:
            return self._pushback.popleft()
        self.tokens_read += 1
        return self._lexer.next_token()

    def push_back(self, token: CToken) -> None:
        """
        Return a token to the front of the stream.

        Tokens pushed back in a row are handed out again most recent
        first, exactly undoing the corresponding next() calls.

        Raises:
            InternalCompilerError: If the queue is already full
        """
        if len(self._pushback) >= self.max_pushback:
            raise InternalCompilerError(
                f"token pushback exceeded depth {self.max_pushback}",
                location=token.location,
            )
        self._pushback.appendleft(token)

    def pending(self) -> int:
        """Number of tokens currently held in the pushback queue."""
        return len(self._pushback)
