"""
Translation of ``:name`` placeholders to DB-API paramstyles
"""
import re
from typing import Any, Dict, List, Mapping, Match, Optional, Pattern, Tuple, Union

from schema_crud.core.exceptions import UnknownParameter

PYFORMAT = 'pyformat'
QMARK = 'qmark'
NAMED = 'named'

# Quoted literals/identifiers are copied through; a placeholder is a colon
# not preceded by another colon or a word character (skips ``::int`` casts
# and ``10:30`` style text).
_PLACEHOLDER = r"""|(?<![:\w]):([A-Za-z_]\w*)|(%)"""
_TOKEN = re.compile(
    r"""('(?:[^']|'')*'|"(?:[^"]|"")*"|`[^`]*`|\[[^\]]*\])""" + _PLACEHOLDER
)
# MySQL also ends no string at a backslash-escaped quote: 'It\'s'
_BACKSLASH_TOKEN = re.compile(
    r"""('(?:\\.|''|[^'\\])*'|"(?:\\.|""|[^"\\])*"|`[^`]*`)""" + _PLACEHOLDER,
    re.DOTALL
)


def _pattern(backslash_escapes: bool) -> Pattern:
    return _BACKSLASH_TOKEN if backslash_escapes else _TOKEN


def parameter_names(sql: str, backslash_escapes: bool = False) -> List[str]:
    """Distinct placeholder names in order of first appearance"""
    names: List[str] = []
    for match in _pattern(backslash_escapes).finditer(sql):
        name = match.group(2)
        if name and name not in names:
            names.append(name)
    return names


def compile_named(sql: str, style: str, backslash_escapes: bool = False) -> Tuple[str, List[str]]:
    """
    Rewrite ``:name`` placeholders for a driver

    Args:
        sql: Statement with ``:name`` placeholders
        style: One of PYFORMAT, QMARK, NAMED
        backslash_escapes: String literals may contain ``\\'`` (MySQL)

    Returns:
        Tuple of (driver SQL, placeholder names in order of appearance,
        repeats included)
    """
    order: List[str] = []

    def _replace(match: Match) -> str:
        quoted, name, percent = match.groups()
        if quoted is not None:
            return quoted.replace('%', '%%') if style == PYFORMAT else quoted
        if percent is not None:
            return '%%' if style == PYFORMAT else percent
        order.append(name)
        if style == PYFORMAT:
            return f"%({name})s"
        if style == QMARK:
            return '?'
        return f":{name}"

    compiled = _pattern(backslash_escapes).sub(_replace, sql)
    # Drivers only interpret '%' when parameters are passed
    if not order:
        return sql, order
    return compiled, order


def bind(order: List[str], params: Mapping[str, Any], style: str,
         sql: Optional[str] = None) -> Union[Dict[str, Any], List[Any]]:
    """
    Arrange parameter values the way the driver expects them

    Raises:
        UnknownParameter: a placeholder has no value in ``params``
    """
    for name in order:
        if name not in params:
            raise UnknownParameter(name, sql)
    if style == QMARK:
        return [params[name] for name in order]
    return {name: params[name] for name in order}
