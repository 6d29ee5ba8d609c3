"""Row-level-security patch for the conversational memory tables.

The chat service stores memories server-side; with the default per-user RLS
policies those inserts are rejected because the server does not run as the
end user. The patch replaces the policies on the two memory tables with a
set that keeps per-user access and adds a server-side policy, then grants the
API roles access.

This module only *builds* and *splits* SQL. Executing it is the job of
`adapters.supabase_rpc`, through an administrative channel, once.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Sequence

DEFAULT_ROLES: tuple[str, ...] = ("anon", "authenticated", "service_role")


def quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


@dataclass(frozen=True)
class Policy:
    name: str
    command: str = "ALL"
    using: str | None = None
    with_check: str | None = None

    def create_sql(self, table: str) -> str:
        parts = [f"CREATE POLICY {quote_ident(self.name)} ON {table} FOR {self.command.upper()}"]
        if self.using is not None:
            parts.append(f"USING ({self.using})")
        if self.with_check is not None:
            parts.append(f"WITH CHECK ({self.with_check})")
        return " ".join(parts) + ";"


@dataclass(frozen=True)
class PolicyTable:
    name: str
    drop_policies: tuple[str, ...] = ()
    policies: tuple[Policy, ...] = field(default_factory=tuple)


CONVERSATION_MEMORY = PolicyTable(
    name="conversation_memory",
    drop_policies=(
        "Users can only access their own memories",
        "Users can view their own memories",
        "Users can insert their own memories",
        "Users can update their own memories",
        "Users can delete their own memories",
        "Users can view their own conversation memory",
        "Users can manage their own conversation memory",
        "Allow server-side conversation memory operations",
        "Users can read their own conversation memories",
        "Allow public read for memory context",
        "Authenticated users can manage their memories",
    ),
    policies=(
        Policy(
            "Users can read their own conversation memories",
            command="SELECT",
            using="user_id = auth.uid() OR user_id IS NULL",
        ),
        Policy(
            "Allow server-side conversation memory operations",
            using="true",
            with_check="true",
        ),
        Policy(
            "Allow public read for memory context",
            command="SELECT",
            using="true",
        ),
        Policy(
            "Authenticated users can manage their memories",
            using="auth.uid() = user_id",
            with_check="auth.uid() = user_id",
        ),
    ),
)

STUDY_CHAT_MEMORY = PolicyTable(
    name="study_chat_memory",
    drop_policies=(
        "Users can read their own study chat memories",
        "Users can manage their own study chat memories",
    ),
    policies=(
        Policy(
            "Users can read their own study chat memories",
            command="SELECT",
            using="user_id = auth.uid() OR user_id IS NULL",
        ),
        Policy(
            "Users can manage their own study chat memories",
            using="auth.uid() = user_id",
            with_check="auth.uid() = user_id",
        ),
    ),
)

DEFAULT_TABLES: tuple[PolicyTable, ...] = (CONVERSATION_MEMORY, STUDY_CHAT_MEMORY)


def build_rls_statements(
    tables: Iterable[PolicyTable] = DEFAULT_TABLES,
    roles: Sequence[str] = DEFAULT_ROLES,
) -> list[str]:
    """Drop, recreate, enable and grant, table by table, then schema usage."""

    role_list = ", ".join(roles)
    statements: list[str] = []
    for table in tables:
        for name in table.drop_policies:
            statements.append(f"DROP POLICY IF EXISTS {quote_ident(name)} ON {table.name};")
        for policy in table.policies:
            statements.append(policy.create_sql(table.name))
        statements.append(f"ALTER TABLE {table.name} ENABLE ROW LEVEL SECURITY;")
        if role_list:
            statements.append(f"GRANT ALL ON {table.name} TO {role_list};")
    if role_list:
        statements.append(f"GRANT USAGE ON SCHEMA public TO {role_list};")
    return statements


def render_sql(statements: Iterable[str], *, header: str | None = None) -> str:
    lines: list[str] = []
    if header:
        lines.extend(f"-- {line}".rstrip() for line in header.splitlines())
        lines.append("")
    lines.extend(statements)
    return "\n".join(lines) + "\n"


_DOLLAR_TAG = re.compile(r"\$(?:[A-Za-z_][A-Za-z0-9_]*)?\$")


def split_sql_statements(text: str) -> list[str]:
    """Split a SQL script into statements.

    `--` and `/* */` comments are dropped. Semicolons inside '...' literals,
    "..." identifiers and dollar-quoted bodies ($$...$$, $fn$...$fn$) do not
    split. Each returned statement ends with a semicolon; empty statements
    are skipped.
    """

    statements: list[str] = []
    buf: list[str] = []
    quote: str | None = None
    i = 0
    n = len(text)

    def flush() -> None:
        stmt = "".join(buf).strip()
        buf.clear()
        if stmt:
            statements.append(stmt + ";")

    while i < n:
        ch = text[i]
        if quote is None:
            if text.startswith("--", i):
                end = text.find("\n", i)
                i = n if end == -1 else end
                continue
            if text.startswith("/*", i):
                end = text.find("*/", i + 2)
                i = n if end == -1 else end + 2
                buf.append(" ")
                continue
            if ch == "$":
                tag = _DOLLAR_TAG.match(text, i)
                if tag:
                    quote = tag.group(0)
                    buf.append(quote)
                    i = tag.end()
                    continue
            if ch in ("'", '"'):
                quote = ch
            elif ch == ";":
                flush()
                i += 1
                continue
        elif quote.startswith("$"):
            if text.startswith(quote, i):
                buf.append(quote)
                i += len(quote)
                quote = None
                continue
        elif ch == quote:
            # A doubled quote re-opens immediately on the next character.
            quote = None
        buf.append(ch)
        i += 1

    flush()
    return statements
