"""
Line-level diff between two blob contents.

Uses histogram diff: inside a changed region the common line with the
fewest occurrences on the old side becomes the split point, and both halves
are diffed again. When every common line of a region occurs more than
``MAX_CHAIN_LENGTH`` times the region is handed to Myers' O(ND) algorithm.

Lines are compared byte for byte, line terminator included. The final line
of a blob without a trailing newline is still a line.
"""

from __future__ import annotations

from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

from commit_ingest.entities import Edit

MAX_CHAIN_LENGTH = 64


class Region(NamedTuple):
    """Half-open line ranges ``[begin_a, end_a)`` / ``[begin_b, end_b)``."""

    begin_a: int
    end_a: int
    begin_b: int
    end_b: int

    @property
    def length_a(self) -> int:
        return self.end_a - self.begin_a

    @property
    def length_b(self) -> int:
        return self.end_b - self.begin_b

    @property
    def is_empty(self) -> bool:
        return self.length_a == 0 and self.length_b == 0

    @property
    def is_insert(self) -> bool:
        return self.length_a == 0 and self.length_b > 0

    @property
    def is_delete(self) -> bool:
        return self.length_a > 0 and self.length_b == 0

    def before(self, cut: "Region") -> "Region":
        return Region(self.begin_a, cut.begin_a, self.begin_b, cut.begin_b)

    def after(self, cut: "Region") -> "Region":
        return Region(cut.end_a, self.end_a, cut.end_b, self.end_b)

    def shifted(self, amount: int) -> "Region":
        return Region(
            self.begin_a + amount,
            self.end_a + amount,
            self.begin_b + amount,
            self.end_b + amount,
        )


def split_lines(content: bytes) -> List[bytes]:
    """Split raw content into lines, keeping each ``\\n`` terminator."""
    if not content:
        return []
    parts = content.split(b"\n")
    lines = [part + b"\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def decode_line(line: bytes) -> str:
    """Line text without its ``\\n``; UTF-8 first, ISO-8859-1 otherwise."""
    if line.endswith(b"\n"):
        line = line[:-1]
    try:
        return line.decode("utf-8")
    except UnicodeDecodeError:
        return line.decode("iso-8859-1")


def reduce_common_start_end(
    a: Sequence[bytes], b: Sequence[bytes], region: Region
) -> Region:
    begin_a, end_a, begin_b, end_b = region
    while begin_a < end_a and begin_b < end_b and a[begin_a] == b[begin_b]:
        begin_a += 1
        begin_b += 1
    while begin_a < end_a and begin_b < end_b and a[end_a - 1] == b[end_b - 1]:
        end_a -= 1
        end_b -= 1
    return Region(begin_a, end_a, begin_b, end_b)


class _HistogramIndex:
    """Occurrence index of the old side of one region."""

    def __init__(
        self,
        a: Sequence[bytes],
        b: Sequence[bytes],
        region: Region,
        max_chain_length: int,
    ):
        self.a = a
        self.b = b
        self.region = region
        self.max_chain_length = max_chain_length

        # Positions of each line in ascending order; a chain's length is the
        # line's occurrence count within the region.
        self.positions: Dict[bytes, List[int]] = {}
        for ptr in range(region.begin_a, region.end_a):
            self.positions.setdefault(a[ptr], []).append(ptr)

        self.lcs = Region(0, 0, 0, 0)
        self.cnt = max_chain_length + 1
        self.has_common = False

    def occurrences(self, line: bytes) -> int:
        return len(self.positions[line])

    def find_longest_common_sequence(self) -> Optional[Region]:
        """
        Best split region, an empty region when nothing is common, or None
        when all common lines are too frequent to choose from.
        """
        b_ptr = self.region.begin_b
        while b_ptr < self.region.end_b:
            b_ptr = self._try_longest_common_sequence(b_ptr)
        if self.has_common and self.max_chain_length < self.cnt:
            return None
        return self.lcs

    def _try_longest_common_sequence(self, b_ptr: int) -> int:
        a, b, region = self.a, self.b, self.region
        b_next = b_ptr + 1
        chain = self.positions.get(b[b_ptr])
        if chain is None:
            return b_next

        self.has_common = True
        total = len(chain)
        if total > self.cnt:
            return b_next

        idx = 0
        while True:
            as_ = chain[idx]
            bs = b_ptr
            ae = as_ + 1
            be = bs + 1
            rc = total

            while region.begin_a < as_ and region.begin_b < bs and a[as_ - 1] == b[bs - 1]:
                as_ -= 1
                bs -= 1
                if 1 < rc:
                    rc = min(rc, self.occurrences(a[as_]))
            while ae < region.end_a and be < region.end_b and a[ae] == b[be]:
                if 1 < rc:
                    rc = min(rc, self.occurrences(a[ae]))
                ae += 1
                be += 1

            if b_next < be:
                b_next = be
            if self.lcs.length_a < ae - as_ or rc < self.cnt:
                self.lcs = Region(as_, ae, bs, be)
                self.cnt = rc

            # Skip locations already covered by the sequence just examined
            idx += 1
            while idx < total and chain[idx] < ae:
                idx += 1
            if idx >= total:
                break
        return b_next


def _bisect(
    a: Sequence[bytes], alo: int, ahi: int, b: Sequence[bytes], blo: int, bhi: int
) -> Optional[Tuple[int, int]]:
    """Myers middle-snake search; returns a split point or None if nothing matches."""
    n = ahi - alo
    m = bhi - blo
    max_d = (n + m + 1) // 2
    v_offset = max_d
    v_length = 2 * max_d + 2
    v1 = [-1] * v_length
    v1[v_offset + 1] = 0
    v2 = list(v1)
    delta = n - m
    front = delta % 2 != 0
    k1start = k1end = k2start = k2end = 0

    for d in range(max_d):
        for k1 in range(-d + k1start, d + 1 - k1end, 2):
            k1_offset = v_offset + k1
            if k1 == -d or (k1 != d and v1[k1_offset - 1] < v1[k1_offset + 1]):
                x1 = v1[k1_offset + 1]
            else:
                x1 = v1[k1_offset - 1] + 1
            y1 = x1 - k1
            while x1 < n and y1 < m and a[alo + x1] == b[blo + y1]:
                x1 += 1
                y1 += 1
            v1[k1_offset] = x1
            if x1 > n:
                k1end += 2
            elif y1 > m:
                k1start += 2
            elif front:
                k2_offset = v_offset + delta - k1
                if 0 <= k2_offset < v_length and v2[k2_offset] != -1:
                    if x1 >= n - v2[k2_offset]:
                        return alo + x1, blo + y1

        for k2 in range(-d + k2start, d + 1 - k2end, 2):
            k2_offset = v_offset + k2
            if k2 == -d or (k2 != d and v2[k2_offset - 1] < v2[k2_offset + 1]):
                x2 = v2[k2_offset + 1]
            else:
                x2 = v2[k2_offset - 1] + 1
            y2 = x2 - k2
            while x2 < n and y2 < m and a[ahi - 1 - x2] == b[bhi - 1 - y2]:
                x2 += 1
                y2 += 1
            v2[k2_offset] = x2
            if x2 > n:
                k2end += 2
            elif y2 > m:
                k2start += 2
            elif not front:
                k1_offset = v_offset + delta - k2
                if 0 <= k1_offset < v_length and v1[k1_offset] != -1:
                    x1 = v1[k1_offset]
                    y1 = v_offset + x1 - k1_offset
                    if x1 >= n - x2:
                        return alo + x1, blo + y1
    return None


def _myers_matches(
    a: Sequence[bytes],
    alo: int,
    ahi: int,
    b: Sequence[bytes],
    blo: int,
    bhi: int,
    out: List[Tuple[int, int]],
) -> None:
    while alo < ahi and blo < bhi and a[alo] == b[blo]:
        out.append((alo, blo))
        alo += 1
        blo += 1
    tail: List[Tuple[int, int]] = []
    while alo < ahi and blo < bhi and a[ahi - 1] == b[bhi - 1]:
        ahi -= 1
        bhi -= 1
        tail.append((ahi, bhi))

    if alo < ahi and blo < bhi:
        split = _bisect(a, alo, ahi, b, blo, bhi)
        if split is not None:
            x, y = split
            _myers_matches(a, alo, x, b, blo, y, out)
            _myers_matches(a, x, ahi, b, y, bhi, out)

    out.extend(reversed(tail))


def myers_regions(a: Sequence[bytes], b: Sequence[bytes], region: Region) -> List[Region]:
    """Edit regions of ``region`` computed with Myers' algorithm."""
    matches: List[Tuple[int, int]] = []
    _myers_matches(a, region.begin_a, region.end_a, b, region.begin_b, region.end_b, matches)
    matches.append((region.end_a, region.end_b))

    regions: List[Region] = []
    pa, pb = region.begin_a, region.begin_b
    for ma, mb in matches:
        if ma > pa or mb > pb:
            regions.append(Region(pa, ma, pb, mb))
        pa, pb = ma + 1, mb + 1
    return regions


class HistogramDiff:
    def __init__(self, max_chain_length: int = MAX_CHAIN_LENGTH):
        self.max_chain_length = max_chain_length

    def diff(self, a: Sequence[bytes], b: Sequence[bytes]) -> List[Region]:
        region = reduce_common_start_end(a, b, Region(0, len(a), 0, len(b)))
        if region.is_empty:
            return []
        if region.is_insert or region.is_delete:
            return [region]
        if region.length_a == 1 and region.length_b == 1:
            return [region]
        return _normalize(a, b, self._diff_non_common(a, b, region))

    def _diff_non_common(
        self, a: Sequence[bytes], b: Sequence[bytes], region: Region
    ) -> List[Region]:
        edits: List[Region] = []
        # Stack of pending regions; "before" is pushed last so edits come out in order
        pending = [region]
        while pending:
            r = pending.pop()
            if r.is_empty:
                continue
            if r.is_insert or r.is_delete or (r.length_a == 1 and r.length_b == 1):
                edits.append(r)
                continue

            lcs = _HistogramIndex(a, b, r, self.max_chain_length).find_longest_common_sequence()
            if lcs is None:
                edits.extend(myers_regions(a, b, r))
            elif lcs.length_a == 0:
                edits.append(r)
            else:
                pending.append(r.after(lcs))
                pending.append(r.before(lcs))
        return edits


def _normalize(a: Sequence[bytes], b: Sequence[bytes], edits: List[Region]) -> List[Region]:
    """Slide pure insertions and deletions as far down as they can go."""
    result = list(edits)
    prev: Optional[Region] = None
    for i in range(len(result) - 1, -1, -1):
        cur = result[i]
        max_a = len(a) if prev is None else prev.begin_a
        max_b = len(b) if prev is None else prev.begin_b
        if cur.is_insert:
            while cur.end_a < max_a and cur.end_b < max_b and b[cur.begin_b] == b[cur.end_b]:
                cur = cur.shifted(1)
        elif cur.is_delete:
            while cur.end_a < max_a and cur.end_b < max_b and a[cur.begin_a] == a[cur.end_a]:
                cur = cur.shifted(1)
        result[i] = cur
        prev = cur
    return result


class LineDiffEngine:
    """Turns two blob contents into an ordered list of line edits."""

    def __init__(self, max_chain_length: int = MAX_CHAIN_LENGTH):
        self.algorithm = HistogramDiff(max_chain_length)

    def diff(self, old_content: bytes, new_content: bytes) -> List[Edit]:
        a = split_lines(old_content)
        b = split_lines(new_content)
        return [
            Edit(
                removed=[(decode_line(a[i]), i) for i in range(r.begin_a, r.end_a)],
                added=[(decode_line(b[i]), i) for i in range(r.begin_b, r.end_b)],
            )
            for r in self.algorithm.diff(a, b)
        ]
