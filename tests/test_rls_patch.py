from core.services.rls_patch import (
    CONVERSATION_MEMORY,
    DEFAULT_TABLES,
    Policy,
    build_rls_statements,
    quote_ident,
    render_sql,
    split_sql_statements,
)


def test_statements_cover_both_tables():
    statements = build_rls_statements()
    assert statements[0].startswith('DROP POLICY IF EXISTS "Users can only access their own memories" ON conversation_memory')
    assert statements[-1] == "GRANT USAGE ON SCHEMA public TO anon, authenticated, service_role;"
    for table in DEFAULT_TABLES:
        assert f"ALTER TABLE {table.name} ENABLE ROW LEVEL SECURITY;" in statements
        assert f"GRANT ALL ON {table.name} TO anon, authenticated, service_role;" in statements
    assert all(s.endswith(";") for s in statements)


def test_drops_precede_creates_per_table():
    statements = build_rls_statements([CONVERSATION_MEMORY])
    first_create = next(i for i, s in enumerate(statements) if s.startswith("CREATE POLICY"))
    last_drop = max(i for i, s in enumerate(statements) if s.startswith("DROP POLICY"))
    assert last_drop < first_create


def test_server_side_policy_sql():
    sql = Policy("Allow server-side conversation memory operations", using="true", with_check="true").create_sql(
        "conversation_memory"
    )
    assert sql == (
        'CREATE POLICY "Allow server-side conversation memory operations" ON conversation_memory '
        "FOR ALL USING (true) WITH CHECK (true);"
    )


def test_no_roles_skips_grants():
    statements = build_rls_statements(roles=())
    assert not any(s.startswith("GRANT") for s in statements)


def test_quote_ident_escapes():
    assert quote_ident('a "b"') == '"a ""b"""'


def test_split_ignores_comments_and_quoted_semicolons():
    text = """
    -- drop; everything
    DROP POLICY IF EXISTS "odd;name" ON t;
    INSERT INTO notes VALUES ('a;b', 'it''s; fine');  -- trailing; comment
    CREATE FUNCTION f() RETURNS void AS $$ BEGIN PERFORM 1; END $$ LANGUAGE plpgsql;

    ;
    GRANT ALL ON t TO anon
    """
    assert split_sql_statements(text) == [
        'DROP POLICY IF EXISTS "odd;name" ON t;',
        "INSERT INTO notes VALUES ('a;b', 'it''s; fine');",
        "CREATE FUNCTION f() RETURNS void AS $$ BEGIN PERFORM 1; END $$ LANGUAGE plpgsql;",
        "GRANT ALL ON t TO anon;",
    ]


def test_rendered_sql_splits_back_into_statements():
    statements = build_rls_statements()
    assert split_sql_statements(render_sql(statements, header="patch;\nsecond line")) == statements


def test_split_drops_block_comments_with_quotes_inside():
    text = "/* don't split; here */\nGRANT ALL ON a TO anon;\nGRANT /* it's */ ALL ON b TO anon;\n"
    assert split_sql_statements(text) == [
        "GRANT ALL ON a TO anon;",
        "GRANT   ALL ON b TO anon;",
    ]


def test_split_keeps_tagged_dollar_bodies_whole():
    text = (
        "CREATE FUNCTION f() RETURNS void AS $fn$ BEGIN PERFORM 1; RAISE NOTICE '$$'; END $fn$ LANGUAGE plpgsql;\n"
        "GRANT ALL ON a TO anon;\n"
    )
    assert split_sql_statements(text) == [
        "CREATE FUNCTION f() RETURNS void AS $fn$ BEGIN PERFORM 1; RAISE NOTICE '$$'; END $fn$ LANGUAGE plpgsql;",
        "GRANT ALL ON a TO anon;",
    ]


def test_split_ignores_positional_parameters():
    assert split_sql_statements("SELECT $1; SELECT 2") == ["SELECT $1;", "SELECT 2;"]
