from dal.postgres.param_translation import (
    count_qmark_placeholders,
    mask_quoted_sql,
    translate_qmark_params_to_postgres,
)


def test_translate_single_placeholder():
    """Translate a single ? placeholder."""
    assert translate_qmark_params_to_postgres("SELECT ? AS value") == "SELECT $1 AS value"


def test_translate_numbers_left_to_right():
    """Placeholders are numbered in textual order."""
    sql = "SELECT * FROM atr_documents WHERE department = ? AND uploaded_by = ? AND id = ?"
    assert translate_qmark_params_to_postgres(sql) == (
        "SELECT * FROM atr_documents WHERE department = $1 AND uploaded_by = $2 AND id = $3"
    )


def test_translate_without_placeholders_is_identity():
    """Statements without placeholders are returned unchanged."""
    sql = "SELECT COUNT(*) FROM uploaded_atr"
    assert translate_qmark_params_to_postgres(sql) == sql


def test_translate_ignores_question_mark_in_string_literal():
    """A ? inside a string literal is data, not a placeholder."""
    sql = "SELECT * FROM sites WHERE name = 'why?' AND id = ?"
    assert translate_qmark_params_to_postgres(sql) == (
        "SELECT * FROM sites WHERE name = 'why?' AND id = $1"
    )


def test_translate_ignores_escaped_quote_in_literal():
    """Doubled quotes do not terminate the literal."""
    sql = "SELECT 'it''s ?' AS label, ? AS value"
    assert translate_qmark_params_to_postgres(sql) == "SELECT 'it''s ?' AS label, $1 AS value"


def test_translate_ignores_comments_and_quoted_identifiers():
    """Comments and quoted identifiers are skipped."""
    sql = 'SELECT "odd?col" FROM t -- why?\nWHERE a = ? /* or ? */ AND b = ?'
    assert translate_qmark_params_to_postgres(sql) == (
        'SELECT "odd?col" FROM t -- why?\nWHERE a = $1 /* or ? */ AND b = $2'
    )


def test_count_matches_translation():
    """Counting uses the same lexical rules as translation."""
    sql = "INSERT INTO sites (name, description) VALUES (?, '?')"
    assert count_qmark_placeholders(sql) == 1


def test_mask_preserves_length():
    """Masked SQL keeps offsets aligned with the original statement."""
    sql = "SELECT 'abc', \"x y\" -- tail"
    masked = mask_quoted_sql(sql)
    assert len(masked) == len(sql)
    assert "abc" not in masked
    assert masked.startswith("SELECT '   '")
