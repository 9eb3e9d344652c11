"""@Domain.attribute 补全测试"""

from agenticos.models.domain_schemas import DomainAttribute, DomainRecord
from agenticos.services.autocomplete import apply_suggestion, find_references, suggest


def make_domains():
    return [
        DomainRecord(id=1, project_id=1, name="User", created_at=0, attributes=[
            DomainAttribute(name="email", type="email"),
            DomainAttribute(name="name"),
        ]),
        DomainRecord(id=2, project_id=1, name="Order", created_at=0, attributes=[
            DomainAttribute(name="total", type="number"),
        ]),
    ]


class TestSuggest:
    """候选匹配"""

    def test_matches_substring_case_insensitive(self):
        text = "Given @user.em"
        results = suggest(text, len(text), make_domains())

        assert [(s.ref, s.domain, s.attr, s.type) for s in results] == [("User.email", "User", "email", "email")]

    def test_bare_at_lists_everything(self):
        results = suggest("@", 1, make_domains())

        assert [s.ref for s in results] == ["User.email", "User.name", "Order.total"]

    def test_space_after_at_disables(self):
        text = "@User email"
        assert suggest(text, len(text), make_domains()) == []

    def test_no_at(self):
        assert suggest("plain text", 5, make_domains()) == []

    def test_limit(self):
        assert len(suggest("@", 1, make_domains(), limit=2)) == 2


def test_apply_suggestion_replaces_partial_token():
    text = "Given @Us and more"
    cursor = len("Given @Us")

    assert apply_suggestion(text, cursor, "User.email") == "Given @User.email  and more"


def test_find_references():
    assert find_references("Given @User.email is @Order.total.") == ["@User.email", "@Order.total."]
