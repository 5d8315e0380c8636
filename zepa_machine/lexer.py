"""
ZEPA Assembly Tokenizer / Loader.

Turns source text into ordered token lists, one per instruction line:

    MV W1, #5      ; load 5   ->  ['MV', 'W1', '#5']
    loop:                     ->  (dropped, label-only line)
    ; comment                 ->  (dropped)

No semantic validation happens here; the assembler decides whether a token
list is a legal instruction.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Union
import logging

from .errors import AssemblyIOError

__all__ = ['SourceLine', 'tokenize_line', 'tokenize', 'load_file']

log = logging.getLogger(__name__)


@dataclass
class SourceLine:
    """Tokenized instruction line, with its position in the source."""
    tokens: List[str] = field(default_factory=list)
    line_num: int = 0
    raw: str = ""

    @property
    def mnemonic(self) -> str:
        return self.tokens[0].upper() if self.tokens else ""

    @property
    def operands(self) -> List[str]:
        return self.tokens[1:]


def tokenize_line(line: str) -> List[str]:
    """Split one source line into [mnemonic, operand, ...].

    Returns an empty list for blank, comment-only and label-only lines.
    """
    text = line.strip()

    semi_pos = text.find(';')
    if semi_pos >= 0:
        text = text[:semi_pos].strip()

    # Label lines are accepted but carry no code
    if text.endswith(':'):
        return []

    return text.replace(',', ' ').split()


def tokenize(source: str) -> List[SourceLine]:
    """Tokenize a whole program, keeping source order and line numbers.

    Only LF ends a line (a trailing CR is dropped), so line numbers match
    what an editor shows.
    """
    lines = []
    for i, raw in enumerate(source.split('\n'), 1):
        raw = raw.rstrip('\r')
        tokens = tokenize_line(raw)
        if tokens:
            lines.append(SourceLine(tokens=tokens, line_num=i, raw=raw.strip()))
    return lines


def load_file(path: Union[str, Path]) -> List[SourceLine]:
    """Read a UTF-8 assembly file and tokenize it."""
    p = Path(path)
    try:
        source = p.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise AssemblyIOError(f"Cannot read '{p}': {e}") from e
    log.debug("Loaded %s (%d chars)", p, len(source))
    return tokenize(source)
