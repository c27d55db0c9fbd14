# --- Tree-sitter plumbing ----------------------------------------------------

COMMENT_NODE_TYPES = ("line_comment", "block_comment")


def node_text(source_bytes: bytes, node) -> str:
    """
    Converts a node's [start_byte:end_byte] into the corresponding string.
    Tree-sitter nodes only store byte offsets, so we slice the original source.
    """
    return source_bytes[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


def node_point(node) -> tuple[int, int]:
    """
    Returns the (line, column) of a node's start in 0-based coordinates.
    """
    return (node.start_point[0], node.start_point[1])


def named_children(node) -> list:
    """Named children minus comments (comments are 'extras' and can show up anywhere)."""
    return [c for c in node.named_children if c.type not in COMMENT_NODE_TYPES]


def string_literal_value(source_bytes: bytes, node) -> str:
    """
    Strips the quotes off a `string_literal` node. Escapes are kept as written,
    which is what we want for matching keys like "ERROR_INSERT_EXPIRED_URL".
    """
    raw = node_text(source_bytes, node)
    if raw.startswith('"""') and raw.endswith('"""') and len(raw) >= 6:
        return raw[3:-3]
    if len(raw) >= 2 and raw[0] == '"' and raw[-1] == '"':
        return raw[1:-1]
    return raw
