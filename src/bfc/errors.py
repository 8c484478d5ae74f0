from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional


class LoopImbalance(enum.Enum):
    MISSING_OPEN = 'MissingOpen'
    MISSING_CLOSE = 'MissingClose'


def _build_context(source: str, address: int, *, context: int = 16) -> str:
    # Two-line excerpt of the filtered program with a caret under `address`.
    start = max(0, address - context)
    end = min(len(source), address + context + 1)
    prefix = '...' if start > 0 else ''
    suffix = '...' if end < len(source) else ''
    excerpt = f"{prefix}{source[start:end]}{suffix}"
    caret = ' ' * (len(prefix) + address - start) + '^'
    return f"  {excerpt}\n  {caret}"


def _hint_for(kind: str, *, imbalance: Optional[LoopImbalance] = None) -> Optional[str]:
    if kind == 'loops':
        if imbalance is LoopImbalance.MISSING_CLOSE:
            return 'Every "[" needs a matching "]" later in the program.'
        if imbalance is LoopImbalance.MISSING_OPEN:
            return 'A "]" appears without a "[" before it.'
        return None
    if kind == 'bounds':
        return 'Increase the tape size (-n) or check for a runaway "<" / ">" loop.'
    return None


@dataclass
class BFError(Exception):
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass
class BFIOError(BFError):
    path: Optional[str] = None


@dataclass
class BFAllocationError(BFError):
    pass


@dataclass
class UnbalancedLoopsError(BFError):
    kind: LoopImbalance
    opens: int
    closes: int
    address: int


@dataclass
class TapeBoundsError(BFError):
    address: int
    pointer: int
    tape_size: int


@dataclass
class ToolchainError(BFError):
    returncode: Optional[int] = None
    stderr: str = ''


@dataclass
class ToolchainNotFoundError(ToolchainError):
    compiler: str = ''


def make_loop_error(*, kind: LoopImbalance, opens: int, closes: int, address: int,
                    source: str = '') -> UnbalancedLoopsError:
    ctx = f"\n{_build_context(source, address)}" if source else ''
    hint = _hint_for('loops', imbalance=kind)
    hint_block = f"\nHint: {hint}" if hint else ''
    return UnbalancedLoopsError(
        message=(f"UnbalancedLoops ({kind.value}): {opens} '[' vs {closes} ']' "
                 f"(address {address}){ctx}{hint_block}"),
        kind=kind,
        opens=opens,
        closes=closes,
        address=address,
    )


def make_bounds_error(*, address: int, pointer: int, tape_size: int,
                      source: str = '') -> TapeBoundsError:
    ctx = f"\n{_build_context(source, address)}" if source else ''
    hint = _hint_for('bounds')
    hint_block = f"\nHint: {hint}" if hint else ''
    return TapeBoundsError(
        message=(f"TapeBoundsExceeded: data pointer moved to {pointer}, outside "
                 f"[0, {tape_size}) (address {address}){ctx}{hint_block}"),
        address=address,
        pointer=pointer,
        tape_size=tape_size,
    )
