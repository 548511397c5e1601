"""Edit scripts between two strings.

Three strategies are available:

- ``char``: longest common subsequence over characters.
- ``word``: the same LCS over tokens, where runs of whitespace are tokens of
  their own, so whitespace is compared atomically.
- ``position``: a linear pass comparing characters at the same index. Cheap,
  but a single shifted character makes every later position differ.

Every strategy returns a merged script: no two adjacent operations share a
kind. Applying the ``equal`` and ``insert`` texts in order rebuilds the new
string; applying ``equal`` and ``delete`` rebuilds the old one.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Literal, Sequence

DiffKind = Literal["equal", "insert", "delete"]

_WHITESPACE_SPLIT = re.compile(r"(\s+)")


@dataclass
class DiffOperation:
    kind: DiffKind
    text: str

    def to_dict(self) -> dict[str, str]:
        return {"type": self.kind, "text": self.text}


def _merge(operations: list[DiffOperation]) -> list[DiffOperation]:
    """Concatenate adjacent operations of the same kind, dropping empty ones."""
    merged: list[DiffOperation] = []
    for op in operations:
        if not op.text:
            continue
        if merged and merged[-1].kind == op.kind:
            merged[-1] = DiffOperation(op.kind, merged[-1].text + op.text)
        else:
            merged.append(DiffOperation(op.kind, op.text))
    return merged


def _lcs_diff(old: Sequence[str], new: Sequence[str]) -> list[DiffOperation]:
    """Diff two token sequences with an O(m*n) LCS table.

    On ties while backtracking an insert step is taken before a delete step,
    which yields delete-before-insert order in the final script.
    """
    m, n = len(old), len(new)
    dp = [[0] * (n + 1) for _ in range(m + 1)]
    for i in range(1, m + 1):
        for j in range(1, n + 1):
            if old[i - 1] == new[j - 1]:
                dp[i][j] = dp[i - 1][j - 1] + 1
            else:
                dp[i][j] = max(dp[i - 1][j], dp[i][j - 1])

    i, j = m, n
    reversed_ops: list[DiffOperation] = []
    while i > 0 or j > 0:
        if i > 0 and j > 0 and old[i - 1] == new[j - 1]:
            reversed_ops.append(DiffOperation("equal", old[i - 1]))
            i -= 1
            j -= 1
        elif j > 0 and (i == 0 or dp[i][j - 1] >= dp[i - 1][j]):
            reversed_ops.append(DiffOperation("insert", new[j - 1]))
            j -= 1
        else:
            reversed_ops.append(DiffOperation("delete", old[i - 1]))
            i -= 1

    reversed_ops.reverse()
    return _merge(reversed_ops)


def tokenize(text: str) -> list[str]:
    """Split text into words and whitespace runs; joining the tokens gives back the text."""
    return [token for token in _WHITESPACE_SPLIT.split(text) if token]


def char_diff(old: str, new: str) -> list[DiffOperation]:
    return _lcs_diff(old, new)


def word_diff(old: str, new: str) -> list[DiffOperation]:
    return _lcs_diff(tokenize(old), tokenize(new))


def position_diff(old: str, new: str) -> list[DiffOperation]:
    """Compare characters index by index.

    A mismatch at an index becomes delete(old char) + insert(new char); any
    length excess is emitted as a trailing delete or insert.
    """
    ops: list[DiffOperation] = []
    common = min(len(old), len(new))
    for idx in range(common):
        if old[idx] == new[idx]:
            ops.append(DiffOperation("equal", old[idx]))
        else:
            ops.append(DiffOperation("delete", old[idx]))
            ops.append(DiffOperation("insert", new[idx]))
    if len(old) > common:
        ops.append(DiffOperation("delete", old[common:]))
    elif len(new) > common:
        ops.append(DiffOperation("insert", new[common:]))
    return _merge(ops)


STRATEGIES: dict[str, Callable[[str, str], list[DiffOperation]]] = {
    "char": char_diff,
    "word": word_diff,
    "position": position_diff,
}


def absorb_whitespace_equalities(operations: list[DiffOperation]) -> list[DiffOperation]:
    """Fold whitespace-only equal segments that sit between two changes.

    Each change region is emitted as one delete followed by one insert, so
    ``quick fox -> lazy dog`` reads as a single replacement instead of two.
    """
    regions: list[list[DiffOperation]] = []
    for idx, op in enumerate(operations):
        absorbable = (
            op.kind == "equal"
            and op.text.isspace()
            and 0 < idx < len(operations) - 1
            and operations[idx - 1].kind != "equal"
            and operations[idx + 1].kind != "equal"
        )
        if op.kind == "equal" and not absorbable:
            regions.append([op])
        elif regions and regions[-1][0].kind != "equal":
            regions[-1].append(op)
        else:
            regions.append([op])

    result: list[DiffOperation] = []
    for region in regions:
        if region[0].kind == "equal":
            result.extend(region)
            continue
        deleted = "".join(op.text for op in region if op.kind in ("delete", "equal"))
        inserted = "".join(op.text for op in region if op.kind in ("insert", "equal"))
        result.append(DiffOperation("delete", deleted))
        result.append(DiffOperation("insert", inserted))
    return _merge(result)


def compute_diff(old: str, new: str, strategy: str = "word", cleanup: bool = True) -> list[DiffOperation]:
    """Diff with the named strategy.

    With ``cleanup`` the word and char scripts are passed through
    :func:`absorb_whitespace_equalities`.
    """
    try:
        differ = STRATEGIES[strategy]
    except KeyError:
        raise ValueError(f"Unknown diff strategy: {strategy}") from None
    operations = differ(old, new)
    if cleanup and strategy != "position":
        operations = absorb_whitespace_equalities(operations)
    return operations


def apply_forward(operations: list[DiffOperation]) -> str:
    """Rebuild the new text from a script."""
    return "".join(op.text for op in operations if op.kind != "delete")


def apply_inverse(operations: list[DiffOperation]) -> str:
    """Rebuild the old text from a script."""
    return "".join(op.text for op in operations if op.kind != "insert")
