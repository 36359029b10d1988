"""Levenshtein-based string similarity."""


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance with unit insertion, deletion and substitution cost."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            cost = 0 if ca == cb else 1
            current.append(
                min(
                    previous[j] + 1,         # deletion
                    current[j - 1] + 1,      # insertion
                    previous[j - 1] + cost,  # substitution
                )
            )
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """
    Similarity in [0, 1]: 1.0 for equal strings, 0.0 when exactly one is empty.

    Case-sensitive; callers lowercase first.
    """
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    return 1.0 - levenshtein_distance(a, b) / max(len(a), len(b))
