from sqlalchemy.sql import ColumnElement

LIKE_ESCAPE = "\\"


def escape_like(value: str) -> str:
    """Make ``%`` and ``_`` in user input match literally"""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )


def contains(column, value: str) -> ColumnElement:
    """Case-insensitive substring filter on ``column``"""
    return column.ilike(f"%{escape_like(value)}%", escape=LIKE_ESCAPE)
