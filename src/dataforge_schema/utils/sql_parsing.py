"""
SQL Text Parsing - Recover DDL details that catalogs do not expose

SQLite keeps constraint names, CHECK bodies and AUTOINCREMENT only in the
original CREATE TABLE text stored in sqlite_master. SQL Server and SQLite
return view definitions as full CREATE VIEW statements.

Tokenizing is delegated to sqlparse (quoted identifiers, string literals,
comments); this module only tracks parenthesis depth and keyword sequences.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from sqlparse import lexer
from sqlparse import tokens as T

from .identifiers import unquote_identifier

import logging
logger = logging.getLogger(__name__)

_Token = Tuple[object, str, int]  # (ttype, value, offset in source)

_COLUMN_STOP_WORDS = {
    "CONSTRAINT", "PRIMARY", "NOT", "NULL", "UNIQUE", "CHECK", "DEFAULT",
    "REFERENCES", "COLLATE", "GENERATED", "AS", "AUTOINCREMENT",
}

_TABLE_CONSTRAINT_WORDS = {"CONSTRAINT", "PRIMARY", "UNIQUE", "CHECK", "FOREIGN"}


@dataclass
class ParsedConstraint:
    """A constraint clause found in CREATE TABLE text."""
    kind: str                           # PRIMARY KEY, UNIQUE, CHECK, FOREIGN KEY
    name: Optional[str] = None
    columns: List[str] = field(default_factory=list)
    expression: Optional[str] = None    # CHECK body without the outer parentheses
    referenced_table: Optional[str] = None
    referenced_columns: List[str] = field(default_factory=list)
    on_delete: Optional[str] = None
    on_update: Optional[str] = None
    column_level: bool = False


@dataclass
class ParsedColumn:
    """A column definition found in CREATE TABLE text."""
    name: str
    type_text: str = ""
    autoincrement: bool = False
    constraints: List[ParsedConstraint] = field(default_factory=list)


@dataclass
class ParsedCreateTable:
    """Structured view of a CREATE TABLE statement."""
    table_name: str
    columns: List[ParsedColumn] = field(default_factory=list)
    constraints: List[ParsedConstraint] = field(default_factory=list)

    def all_constraints(self) -> List[ParsedConstraint]:
        """Table-level and column-level constraints, in source order."""
        result = []
        for column in self.columns:
            result.extend(column.constraints)
        result.extend(self.constraints)
        return result

    def get_column(self, name: str) -> Optional[ParsedColumn]:
        for column in self.columns:
            if column.name.lower() == name.lower():
                return column
        return None


def _tokenize(sql: str) -> List[_Token]:
    result = []
    offset = 0
    for ttype, value in lexer.tokenize(sql):
        result.append((ttype, value, offset))
        offset += len(value)
    return result


def _is_noise(ttype) -> bool:
    return ttype in T.Whitespace or ttype in T.Comment


def _is_punct(token: _Token, char: str) -> bool:
    return token[0] in T.Punctuation and token[1] == char


class _Clause:
    """Token slice with a word index and parenthesis matching."""

    def __init__(self, sql: str, tokens: List[_Token]):
        self.sql = sql
        self.tokens = tokens
        self.words: List[Tuple[str, int, str]] = []  # (UPPER, token index, text)
        for idx, (ttype, value, _) in enumerate(tokens):
            if _is_noise(ttype):
                continue
            if ttype in T.Keyword and re.search(r"\s", value):
                # sqlparse lexes some phrases ("NOT NULL") as one keyword
                for part in value.split():
                    self.words.append((part.upper(), idx, part))
            else:
                self.words.append((value.upper(), idx, value))

        self.closing: Dict[int, int] = {}
        stack = []
        for idx, token in enumerate(tokens):
            if _is_punct(token, "("):
                stack.append(idx)
            elif _is_punct(token, ")") and stack:
                self.closing[stack.pop()] = idx

    def word(self, pos: int) -> str:
        return self.words[pos][0] if 0 <= pos < len(self.words) else ""

    def text(self, pos: int) -> str:
        return self.words[pos][2] if 0 <= pos < len(self.words) else ""

    def source(self, start_tok: int, end_tok: int) -> str:
        """Original text from token start_tok up to (excluding) end_tok."""
        start = self.tokens[start_tok][2]
        end = self.tokens[end_tok][2] if end_tok < len(self.tokens) else len(self.sql)
        return self.sql[start:end].strip()

    def word_pos_of_token(self, tok_idx: int) -> int:
        for pos, (_, idx, _) in enumerate(self.words):
            if idx >= tok_idx:
                return pos
        return len(self.words)

    def group_after(self, pos: int) -> Tuple[Optional[str], int]:
        """
        Return the text inside the parenthesis group starting at word pos,
        and the word position following the group.
        """
        if self.word(pos) != "(":
            return None, pos
        open_idx = self.words[pos][1]
        close_idx = self.closing.get(open_idx)
        if close_idx is None:
            return self.source(open_idx + 1, len(self.tokens)), len(self.words)
        return self.source(open_idx + 1, close_idx), self.word_pos_of_token(close_idx + 1)


def _split_top_level(sql: str, tokens: List[_Token]) -> List[List[_Token]]:
    """Split tokens on commas that are not nested in parentheses."""
    items = []
    current: List[_Token] = []
    depth = 0
    for token in tokens:
        if _is_punct(token, "("):
            depth += 1
        elif _is_punct(token, ")"):
            depth -= 1
        elif _is_punct(token, ",") and depth == 0:
            items.append(current)
            current = []
            continue
        current.append(token)
    items.append(current)
    return [item for item in items if any(not _is_noise(t[0]) for t in item)]


def split_column_list(text: str) -> List[str]:
    """Parse "(a, "b" DESC, c COLLATE NOCASE)" contents into bare column names."""
    tokens = _tokenize(text)
    names = []
    for item in _split_top_level(text, tokens):
        words = [t for t in item if not _is_noise(t[0])]
        if words:
            names.append(unquote_identifier(words[0][1]))
    return names


def _parse_action(clause: _Clause, pos: int) -> Tuple[str, int]:
    first = clause.word(pos)
    if first in ("SET", "NO"):
        return f"{first} {clause.word(pos + 1)}", pos + 2
    return first, pos + 1


def _parse_references(clause: _Clause, pos: int, constraint: ParsedConstraint) -> int:
    """Parse 'REFERENCES tbl [(cols)] [ON DELETE x] [ON UPDATE y]' from word pos (after REFERENCES)."""
    constraint.referenced_table = unquote_identifier(clause.text(pos))
    pos += 1
    # Schema-qualified reference: "main"."parent"
    while clause.word(pos) == "." and pos + 1 < len(clause.words):
        constraint.referenced_table = unquote_identifier(clause.text(pos + 1))
        pos += 2
    inner, pos = clause.group_after(pos)
    if inner is not None:
        constraint.referenced_columns = split_column_list(inner)
    while clause.word(pos) == "ON":
        event = clause.word(pos + 1)
        action, pos = _parse_action(clause, pos + 2)
        if event == "DELETE":
            constraint.on_delete = action
        elif event == "UPDATE":
            constraint.on_update = action
    return pos


def _parse_table_constraint(clause: _Clause) -> Optional[ParsedConstraint]:
    pos = 0
    name = None
    if clause.word(pos) == "CONSTRAINT":
        name = unquote_identifier(clause.text(pos + 1))
        pos += 2

    keyword = clause.word(pos)
    if keyword == "PRIMARY":
        inner, _ = clause.group_after(pos + 2)
        return ParsedConstraint("PRIMARY KEY", name, split_column_list(inner or ""))
    if keyword == "UNIQUE":
        inner, _ = clause.group_after(pos + 1)
        return ParsedConstraint("UNIQUE", name, split_column_list(inner or ""))
    if keyword == "CHECK":
        inner, _ = clause.group_after(pos + 1)
        return ParsedConstraint("CHECK", name, expression=inner)
    if keyword == "FOREIGN":
        inner, pos = clause.group_after(pos + 2)
        constraint = ParsedConstraint("FOREIGN KEY", name, split_column_list(inner or ""))
        if clause.word(pos) == "REFERENCES":
            _parse_references(clause, pos + 1, constraint)
        return constraint

    logger.debug(f"Unrecognized table constraint: {clause.source(0, len(clause.tokens))}")
    return None


def _parse_column(clause: _Clause) -> ParsedColumn:
    column = ParsedColumn(name=unquote_identifier(clause.text(0)))

    # Type text runs until the first constraint keyword at depth 0
    pos = 1
    while pos < len(clause.words) and clause.word(pos) not in _COLUMN_STOP_WORDS:
        if clause.word(pos) == "(":
            _, pos = clause.group_after(pos)
        else:
            pos += 1
    if pos > 1:
        end_tok = clause.words[pos][1] if pos < len(clause.words) else len(clause.tokens)
        column.type_text = clause.source(clause.words[1][1], end_tok)

    pending_name = None
    while pos < len(clause.words):
        word = clause.word(pos)
        if word == "CONSTRAINT":
            pending_name = unquote_identifier(clause.text(pos + 1))
            pos += 2
            continue
        if word == "PRIMARY" and clause.word(pos + 1) == "KEY":
            column.constraints.append(
                ParsedConstraint("PRIMARY KEY", pending_name, [column.name], column_level=True))
            pending_name = None
            pos += 2
            continue
        if word == "AUTOINCREMENT":
            column.autoincrement = True
        elif word == "UNIQUE":
            column.constraints.append(
                ParsedConstraint("UNIQUE", pending_name, [column.name], column_level=True))
            pending_name = None
        elif word == "CHECK":
            inner, pos = clause.group_after(pos + 1)
            column.constraints.append(ParsedConstraint(
                "CHECK", pending_name, [column.name], expression=inner, column_level=True))
            pending_name = None
            continue
        elif word == "REFERENCES":
            constraint = ParsedConstraint("FOREIGN KEY", pending_name, [column.name], column_level=True)
            pos = _parse_references(clause, pos + 1, constraint)
            column.constraints.append(constraint)
            pending_name = None
            continue
        elif word == "DEFAULT":
            pending_name = None
            if clause.word(pos + 1) == "(":
                _, pos = clause.group_after(pos + 1)
                continue
            pos += 2
            continue
        elif word == "(":
            _, pos = clause.group_after(pos)
            continue
        pos += 1

    return column


def _find_body(tokens: List[_Token]) -> Tuple[int, int]:
    """Token indices of the outer '(' and its matching ')'."""
    depth = 0
    start = None
    for idx, token in enumerate(tokens):
        if _is_punct(token, "("):
            if depth == 0 and start is None:
                start = idx
            depth += 1
        elif _is_punct(token, ")"):
            depth -= 1
            if depth == 0 and start is not None:
                return start, idx
    return -1, -1


def parse_create_table(sql: str) -> Optional[ParsedCreateTable]:
    """
    Parse a CREATE TABLE statement.

    Args:
        sql: CREATE TABLE text (as stored in sqlite_master.sql)

    Returns:
        ParsedCreateTable, or None when the text has no column body
        (e.g. CREATE TABLE ... AS SELECT)
    """
    if not sql:
        return None
    tokens = _tokenize(sql)
    start, end = _find_body(tokens)
    if start < 0:
        return None

    header = _Clause(sql, tokens[:start])
    name_words = [w for w in header.words if w[0] not in ("CREATE", "TEMP", "TEMPORARY", "TABLE", "IF", "NOT", "EXISTS")]
    name_parts = [w[2] for w in name_words if w[0] != "."]
    table_name = unquote_identifier(name_parts[-1]) if name_parts else ""

    parsed = ParsedCreateTable(table_name=table_name)
    for item in _split_top_level(sql, tokens[start + 1:end]):
        clause = _Clause(sql, item)
        if not clause.words:
            continue
        if clause.word(0) in _TABLE_CONSTRAINT_WORDS and not clause.text(0).startswith(('"', "[", "`")):
            constraint = _parse_table_constraint(clause)
            if constraint is not None:
                parsed.constraints.append(constraint)
        else:
            parsed.columns.append(_parse_column(clause))
    return parsed


def strip_view_definition(sql: Optional[str]) -> Optional[str]:
    """
    Reduce 'CREATE VIEW name [WITH ...] AS SELECT ...' to the SELECT text.

    Text without a top-level AS keyword is returned stripped but unchanged.
    """
    if sql is None:
        return None
    tokens = _tokenize(sql)
    clause = _Clause(sql, tokens)
    if clause.word(0) not in ("CREATE", "ALTER"):
        return sql.strip()
    depth = 0
    for ttype, value, offset in tokens:
        if ttype in T.Punctuation and value == "(":
            depth += 1
        elif ttype in T.Punctuation and value == ")":
            depth -= 1
        elif depth == 0 and ttype in T.Keyword and value.upper() == "AS":
            return sql[offset + len(value):].strip().rstrip(";").strip()
    return sql.strip()
