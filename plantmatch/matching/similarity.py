"""
String similarity for plant names.

Dice coefficient over character bigrams: whitespace is removed, both
strings are split into overlapping two-character pieces and the score is
2 * |shared bigrams| / (|bigrams(a)| + |bigrams(b)|), counting repeated
bigrams as a multiset.
"""

from collections import Counter


def compare_two_strings(first: str, second: str) -> float:
    """
    Bigram Dice similarity in [0, 1].

    Identical strings score 1.0. Strings shorter than two characters
    (after removing whitespace) cannot form bigrams and score 0.0 unless
    identical.
    """
    first = "".join(first.split())
    second = "".join(second.split())

    if first == second:
        return 1.0
    if len(first) < 2 or len(second) < 2:
        return 0.0

    first_bigrams = Counter(first[i:i + 2] for i in range(len(first) - 1))
    second_bigrams = Counter(second[i:i + 2] for i in range(len(second) - 1))
    intersection = sum((first_bigrams & second_bigrams).values())

    return (2.0 * intersection) / (len(first) + len(second) - 2)
