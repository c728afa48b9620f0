# tests/test_fingerprint.py - Tests for query fingerprinting
"""
Unit tests for fingerprint_query.
"""

from telemetry_analyzer.slowlog.fingerprint import fingerprint_query


class TestFingerprint:
    """Test cases for fingerprint_query"""

    def test_numbers_replaced(self):
        """Test that numeric literals collapse to one pattern"""
        assert fingerprint_query("SELECT * FROM t WHERE id=1") == "select * from t where id=?"
        assert fingerprint_query("SELECT * FROM t WHERE id=1") == fingerprint_query("SELECT * FROM t WHERE id=2")

    def test_strings_replaced(self):
        """Test quoted string literals"""
        sql = "SELECT * FROM orders WHERE status = 'PAID' AND note = \"it's -- fine\""

        assert fingerprint_query(sql) == "select * from orders where status = ? and note = ?"

    def test_identifiers_with_digits_kept(self):
        """Test that digits inside identifiers survive"""
        assert fingerprint_query("SELECT c1 FROM t2 WHERE x = 3") == "select c1 from t2 where x = ?"

    def test_whitespace_and_case(self):
        """Test whitespace collapsing and lowercasing"""
        sql = "SELECT   a,\n\tb\nFROM   T\n WHERE  c = 1;"

        assert fingerprint_query(sql) == "select a, b from t where c = ?"

    def test_in_list_collapsed(self):
        """Test IN list collapsing"""
        assert fingerprint_query("SELECT * FROM t WHERE id IN (1, 2, 3)") == \
            fingerprint_query("SELECT * FROM t WHERE id in (4)")
        assert fingerprint_query("SELECT * FROM t WHERE id IN (1,2)") == "select * from t where id in(?+)"

    def test_values_collapsed(self):
        """Test multi-row VALUES collapsing"""
        sql = "INSERT INTO t (a, b) VALUES (1, 'x'), (2, 'y')"

        assert fingerprint_query(sql) == "insert into t (a, b) values(?+)"

    def test_limit_normalized(self):
        """Test LIMIT forms"""
        assert fingerprint_query("SELECT a FROM t LIMIT 10, 20") == "select a from t limit ?"
        assert fingerprint_query("SELECT a FROM t LIMIT 10 OFFSET 5") == "select a from t limit ?"

    def test_comments_removed(self):
        """Test block and line comments"""
        sql = "SELECT /* hint */ a FROM t -- trailing\nWHERE b = 0x1F"

        assert fingerprint_query(sql) == "select a from t where b = ?"

    def test_empty(self):
        """Test empty input"""
        assert fingerprint_query("") == ""

    def test_negative_literals(self):
        """Test that a sign after an operator, paren or comma is part of the literal"""
        assert fingerprint_query("SELECT * FROM t WHERE id = -1") == fingerprint_query("SELECT * FROM t WHERE id = 1")
        assert fingerprint_query("SELECT * FROM t WHERE id=-1") == "select * from t where id=?"
        assert fingerprint_query("SELECT * FROM t WHERE id IN (-1, -2, 3)") == "select * from t where id in(?+)"

    def test_subtraction_kept(self):
        """Test that binary minus is not folded into the literal"""
        assert fingerprint_query("SELECT a - 1 FROM t") == "select a - ? from t"
