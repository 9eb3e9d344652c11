"""数据包导入导出测试"""

import pytest

from agenticos.models.data_bag_schemas import DataBagRecord, SchemaColumn
from agenticos.services.data_import import (
    DataImportError,
    export_csv,
    parse_csv,
    parse_import,
    parse_json,
)


class TestParseCSV:
    """CSV 解析"""

    def test_header_and_rows(self):
        schema, records = parse_csv('name, "email"\nAda, ada@x.io\n"Lovelace, A", "l@x.io"\n')

        assert [c.name for c in schema] == ["name", "email"]
        assert all(c.type == "string" for c in schema)
        assert records == [
            {"name": "Ada", "email": "ada@x.io"},
            {"name": "Lovelace, A", "email": "l@x.io"},
        ]

    def test_missing_values_are_empty(self):
        _, records = parse_csv("a,b,c\n1\n")

        assert records == [{"a": "1", "b": "", "c": ""}]

    def test_quoted_header_with_comma(self):
        schema, records = parse_csv('"a,b",c\n"x,y",z')

        assert [c.name for c in schema] == ["a,b", "c"]
        assert records == [{"a,b": "x,y", "c": "z"}]

    def test_escaped_quotes_are_kept(self):
        _, records = parse_csv('title\n"""quoted"""')

        assert records == [{"title": '"quoted"'}]

    def test_header_only_is_empty(self):
        assert parse_csv("a,b\n") == ([], [])


class TestParseJSON:
    """JSON 解析"""

    def test_schema_from_first_object(self):
        schema, records = parse_json('[{"name": "x", "age": 3, "ok": true, "tags": []}, {"name": "y"}]')

        assert [(c.name, c.type) for c in schema] == [
            ("name", "string"), ("age", "number"), ("ok", "boolean"), ("tags", "object"),
        ]
        assert len(records) == 2

    def test_non_array_is_empty(self):
        assert parse_json('{"a": 1}') == ([], [])
        assert parse_json("[]") == ([], [])

    def test_invalid_json(self):
        with pytest.raises(DataImportError):
            parse_json("[{")


class TestParseImport:
    """格式识别"""

    def test_detects_by_filename(self):
        schema, _ = parse_import('[{"a": 1}]', "data.json")
        assert schema[0].type == "number"

    def test_detects_by_content(self):
        schema, records = parse_import("x,y\n1,2")
        assert [c.name for c in schema] == ["x", "y"]
        assert records == [{"x": "1", "y": "2"}]

    def test_empty_input(self):
        with pytest.raises(DataImportError):
            parse_import("   ")


def test_export_csv_quotes_values():
    bag = DataBagRecord(
        id=1,
        project_id=1,
        name="b",
        records=[{"a": 'say "hi"', "b": None}],
        schema_def=[SchemaColumn(name="a"), SchemaColumn(name="b")],
        created_at=0,
    )

    assert export_csv(bag) == 'a,b\n"say ""hi""",""'
