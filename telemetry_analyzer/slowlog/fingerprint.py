# telemetry_analyzer/slowlog/fingerprint.py - Query fingerprinting
"""
Query fingerprinting and normalization.

Converts SQL statements into canonical patterns by replacing literals with
placeholders, so structurally identical queries group together.
"""

import re


BLOCK_COMMENT = re.compile(r'/\*.*?\*/', re.DOTALL)
LINE_COMMENT = re.compile(r'(?:--|#)[^\n]*')
SINGLE_QUOTED = re.compile(r"'(?:[^'\\]|\\.|'')*'")
DOUBLE_QUOTED = re.compile(r'"(?:[^"\\]|\\.|"")*"')
HEX_LITERAL = re.compile(r'\b0x[0-9a-f]+\b')
SIGNED_NUMBER = re.compile(r'([=<>(,]\s*)-(?=\d)')
NUMBER_LITERAL = re.compile(r'(?<![\w.])\d+(?:\.\d+)?(?:e[-+]?\d+)?\b')
WHITESPACE = re.compile(r'\s+')
PLACEHOLDER_LIST = r'\(\s*\?(?:\s*,\s*\?)*\s*\)'
IN_LIST = re.compile(r'\bin\s*' + PLACEHOLDER_LIST)
VALUES_LIST = re.compile(r'\bvalues?\s*' + PLACEHOLDER_LIST + r'(?:\s*,\s*' + PLACEHOLDER_LIST + r')*')
LIMIT_CLAUSE = re.compile(r'\blimit \?(?:\s*,\s*\?|\s+offset\s+\?)?')


def fingerprint_query(sql: str) -> str:
    """
    Normalize a SQL statement into its fingerprint.

    Examples:
        "SELECT * FROM users WHERE id = 123"
        -> "select * from users where id = ?"

        "SELECT a FROM t WHERE b IN (1, 2, 3) LIMIT 10, 20"
        -> "select a from t where b in(?+) limit ?"

    Args:
        sql: Original SQL statement

    Returns:
        Fingerprint text
    """
    if isinstance(sql, bytes):
        sql = sql.decode('utf-8', errors='replace')

    if not sql:
        return ""

    normalized = BLOCK_COMMENT.sub(' ', sql)

    # Quoted literals before line comments so "--" inside a string survives
    normalized = SINGLE_QUOTED.sub('?', normalized)
    normalized = DOUBLE_QUOTED.sub('?', normalized)
    normalized = LINE_COMMENT.sub(' ', normalized)

    normalized = normalized.lower()
    normalized = HEX_LITERAL.sub('?', normalized)
    normalized = SIGNED_NUMBER.sub(r'\1', normalized)
    normalized = NUMBER_LITERAL.sub('?', normalized)
    normalized = WHITESPACE.sub(' ', normalized).strip()

    normalized = IN_LIST.sub('in(?+)', normalized)
    normalized = VALUES_LIST.sub('values(?+)', normalized)
    normalized = LIMIT_CLAUSE.sub('limit ?', normalized)

    return normalized.rstrip('; ')
