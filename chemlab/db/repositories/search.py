"""SQL fragments shared by the name search queries."""

import re
from typing import Any, List, Sequence, Tuple


NORMALIZED_NAME_SQL = "regexp_replace(lower(name), '[^a-z0-9]', '', 'g')"


def normalize_name(name: str) -> str:
    """Lower-case and strip everything except letters and digits."""
    return re.sub(r"[^a-z0-9]", "", name.lower())


def tokenize(term: str) -> List[str]:
    """Split a search term into lower-case alphanumeric tokens."""
    return re.findall(r"[a-z0-9]+", term.lower())


def ranked_token_clause(tokens: Sequence[str], columns: Sequence[str]) -> Tuple[str, str, List[Any], List[Any]]:
    """
    Build a word-prefix match over several columns.

    Every token must start a word in one of the columns. Matches in the
    first column score higher than matches elsewhere.

    Args:
        tokens: Search tokens
        columns: Columns to match, the first one being the name column

    Returns:
        (score expression, where clause, score params, where params)
    """
    score_parts = []
    where_parts = []
    score_params: List[Any] = []
    where_params: List[Any] = []

    for token in tokens:
        per_column = []
        for column in columns:
            per_column.append(
                f"(lower(coalesce({column}, '')) LIKE ? OR lower(coalesce({column}, '')) LIKE ?)"
            )
            where_params.extend([f"{token}%", f"% {token}%"])
        where_parts.append("(" + " OR ".join(per_column) + ")")

        name_column = columns[0]
        score_parts.append(
            f"CASE WHEN lower({name_column}) = ? THEN 4 "
            f"WHEN lower({name_column}) LIKE ? THEN 2 "
            f"WHEN lower({name_column}) LIKE ? THEN 1 ELSE 0 END"
        )
        score_params.extend([token, f"{token}%", f"%{token}%"])

    return " + ".join(score_parts), " AND ".join(where_parts), score_params, where_params
