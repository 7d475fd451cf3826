from approval_system.models.auth.user import User
from approval_system.utils.search import contains, escape_like


class TestSearch:
    def test_wildcards_are_escaped(self):
        assert escape_like("50%_off") == "50\\%\\_off"
        assert escape_like("a\\b") == "a\\\\b"

    def test_plain_text_unchanged(self):
        assert escape_like("张经理") == "张经理"

    def test_contains_uses_escape_clause(self):
        clause = contains(User.real_name, "%")
        compiled = clause.compile(compile_kwargs={"literal_binds": True})
        assert "ESCAPE" in str(compiled).upper()
