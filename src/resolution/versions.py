"""Maven version range semantics for transitive dependency versions."""

from __future__ import annotations

from typing import List, Optional

from packaging import version


def is_range(spec: Optional[str]) -> bool:
    """True when spec uses Maven bracket range notation."""
    if not spec:
        return False
    spec = spec.strip()
    return spec.startswith("[") or spec.startswith("(")


def _parse(v: str) -> Optional[version.Version]:
    try:
        return version.Version(v)
    except version.InvalidVersion:
        return None


def pick_highest(candidates: List[str]) -> Optional[str]:
    """Pick the highest stable (non-SNAPSHOT) parseable version."""
    stable = [v for v in candidates if not v.endswith("-SNAPSHOT")]
    parsed = [(p, v) for v in stable for p in [_parse(v)] if p is not None]
    if not parsed:
        return None
    parsed.sort(key=lambda pv: pv[0], reverse=True)
    return parsed[0][1]


def pick_range(range_spec: str, candidates: List[str]) -> Optional[str]:
    """Apply a Maven version range and pick the highest matching version."""
    return pick_highest(filter_by_range(range_spec, candidates))


def filter_by_range(range_spec: str, candidates: List[str]) -> List[str]:
    """Filter candidates by Maven version range specification."""
    range_spec = range_spec.strip()

    if not any(char in range_spec for char in "[()]"):
        return [range_spec] if range_spec in candidates else []

    ranges = _split_ranges(range_spec)
    if len(ranges) == 1:
        return _parse_bracket_range(ranges[0], candidates)

    # Union of each range, keeping candidate order
    matched = set()
    for r in ranges:
        matched.update(_parse_bracket_range(r, candidates))
    return [v for v in candidates if v in matched]


def _split_ranges(range_spec: str) -> List[str]:
    """Split "[1.0,2.0),[3.0,4.0]" into its bracketed parts."""
    ranges = []
    current = ""
    depth = 0
    for char in range_spec:
        if char in "[(":
            if depth == 0:
                current = ""
            depth += 1
            current += char
        elif char in "])":
            depth -= 1
            current += char
            if depth == 0:
                ranges.append(current)
                current = ""
        elif depth > 0:
            current += char
    return ranges


def _parse_bracket_range(range_spec: str, candidates: List[str]) -> List[str]:
    """Parse a single range like [1.0,2.0), (1.0,], or [1.2]."""
    inner = range_spec[1:-1] if len(range_spec) >= 2 else ""
    parts = inner.split(",") if "," in inner else [inner]

    # [1.2] pins an exact version
    if len(parts) == 1:
        base = parts[0].strip()
        return [v for v in candidates if v == base] if base else []

    lower_str, upper_str = parts[0].strip(), parts[1].strip()
    lower_inclusive = range_spec.startswith("[")
    upper_inclusive = range_spec.endswith("]")
    lower_ver = _parse(lower_str) if lower_str else None
    upper_ver = _parse(upper_str) if upper_str else None

    matching = []
    for v in candidates:
        ver = _parse(v)
        if ver is None:
            continue

        if lower_ver is not None:
            if lower_inclusive and ver < lower_ver:
                continue
            if not lower_inclusive and ver <= lower_ver:
                continue

        if upper_ver is not None:
            if upper_inclusive and ver > upper_ver:
                continue
            if not upper_inclusive and ver >= upper_ver:
                continue

        matching.append(v)

    return matching
