import pytest

from logsink.core.columns import ColumnConfig, ColumnsConfig, parse_column_spec


def test_add_column_defaults_type_and_name():
    cols = ColumnsConfig().add_column_for_property("UserId").create_columns()
    assert cols == (ColumnConfig(name="UserId", type="TEXT", property="UserId"),)


def test_add_column_is_fluent_and_ordered():
    cols = (
        ColumnsConfig()
        .add_column_for_property("UserId", "INTEGER")
        .add_column_for_property("RequestPath", "VARCHAR(255)", "Path")
        .create_columns()
    )
    assert [c.name for c in cols] == ["UserId", "Path"]
    assert [c.type for c in cols] == ["INTEGER", "VARCHAR(255)"]
    assert [c.property for c in cols] == ["UserId", "RequestPath"]


@pytest.mark.parametrize("prop", ["", "   ", None])
def test_add_column_rejects_blank_property(prop):
    with pytest.raises(ValueError):
        ColumnsConfig().add_column_for_property(prop)


def test_whitespace_type_and_name_fall_back_to_defaults():
    (col,) = ColumnsConfig().add_column_for_property("Area", "  ", " ").create_columns()
    assert col.type == "TEXT"
    assert col.name == "Area"


def test_created_columns_are_frozen():
    builder = ColumnsConfig().add_column_for_property("A")
    first = builder.create_columns()
    builder.add_column_for_property("B")
    assert len(first) == 1
    with pytest.raises(AttributeError):
        first[0].name = "other"  # type: ignore[misc]


def test_parse_column_spec():
    assert parse_column_spec("UserId") == ColumnConfig("UserId", "TEXT", "UserId")
    assert parse_column_spec("UserId:INTEGER") == ColumnConfig("UserId", "INTEGER", "UserId")
    assert parse_column_spec("UserId:BIGINT:user_id") == ColumnConfig("user_id", "BIGINT", "UserId")
    assert parse_column_spec("Price:DECIMAL(10,2)") == ColumnConfig("Price", "DECIMAL(10,2)", "Price")
