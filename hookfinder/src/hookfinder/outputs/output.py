import json
from typing import Optional, Sequence, Union

from hookfinder.src.hookfinder.indexer import JavaIndexer
from hookfinder.src.hookfinder.models.descriptors import MethodDescriptor
from hookfinder.src.hookfinder.models.resolution import NotFound, ResolutionResult, SignalMatch

Resolution = Union[ResolutionResult, NotFound]


# --- Pretty printing & JSON export ------------------------------------------

def print_summary(indexer: JavaIndexer, resolution: Resolution, identifier_type: Optional[str],
                  signals: Sequence[SignalMatch]):
    """
    Human-friendly printout of what resolved and how.
    """
    print("\n=== INDEX ===")
    print(f" - {len(indexer.packages)} packages, {len(indexer.classes)} classes, {indexer.method_count} methods")

    print(f"\n=== {resolution.target.upper()} ===")
    if isinstance(resolution, ResolutionResult):
        print(f"  resolved via '{resolution.strategy}' on {resolution.owning_type}")
        print(f"  - primary:   {resolution.primary}")
        if resolution.companion is not None:
            print(f"  - companion: {resolution.companion}")
        if identifier_type:
            print(f"  - id type:   {identifier_type}")
    else:
        print("  not found")
        for failure in resolution.attempts:
            print(f"  - {failure.source}: {failure.message}")

    print("\n=== STORY SIGNALS ===")
    if not signals:
        print("  none")
    for match in signals:
        where = f" [#{match.ordinal}]" if match.ordinal is not None else ""
        print(f"  - {match.signal.category:<8} {match.strategy:<13} {match.method}{where}")


def _method(d: Optional[MethodDescriptor]) -> Optional[dict]:
    if d is None:
        return None
    return {
        "owningType": d.owning_type,
        "name": d.name,
        "returnType": d.return_type,
        "paramTypes": list(d.param_types),
    }


def to_json(resolution: Resolution, identifier_type: Optional[str], signals: Sequence[SignalMatch]) -> str:
    """
    Serializes the resolution report; enough to re-install hooks without re-indexing.
    """
    if isinstance(resolution, ResolutionResult):
        target = {
            "target": resolution.target,
            "found": True,
            "strategy": resolution.strategy,
            "owningType": resolution.owning_type,
            "primary": _method(resolution.primary),
            "companion": _method(resolution.companion),
            "identifierType": identifier_type,
        }
    else:
        target = {
            "target": resolution.target,
            "found": False,
            "attempts": [{"strategy": f.source, "message": f.message} for f in resolution.attempts],
        }
    out = {
        "targets": [target],
        "storySignals": [
            {
                "category": m.signal.category,
                "strategy": m.strategy,
                "ordinal": m.ordinal,
                "method": _method(m.method),
            } for m in signals
        ],
    }
    return json.dumps(out, indent=2, ensure_ascii=False)
