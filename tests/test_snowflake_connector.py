import pytest

import connector_service
from db_connectors import SnowflakeConnector
from schema_models import ObjectType, SnowflakeConnection

BAD_PASSWORD = (
    "250001 (08001): Failed to connect to DB: xy12345.snowflakecomputing.com:443. "
    "Incorrect username or password was specified."
)


@pytest.fixture
def sf_config():
    return SnowflakeConnection(
        account="xy12345.us-east-1", username="analyst", password="pw",
        warehouse="WH", database="DB", role="READER",
    )


@pytest.fixture
def patch_open(monkeypatch):
    opened = {}

    def install(conn):
        def _open(self, **kwargs):
            opened.update(kwargs)
            return conn
        monkeypatch.setattr(SnowflakeConnector, "_open", _open)
        return opened

    return install


def test_bad_password_resolves_with_error(sf_config, monkeypatch):
    calls = []

    def _open(self, **kwargs):
        calls.append(kwargs)
        raise RuntimeError(BAD_PASSWORD)

    monkeypatch.setattr(SnowflakeConnector, "_open", _open)

    result = connector_service.execute_query(sf_config, "SELECT 1")

    assert result.success is False
    assert "Incorrect username or password" in result.error
    assert len(calls) == 1
    assert connector_service.test_connection(sf_config) is False


def test_connection_is_closed_exactly_once(sf_config, fake_connection, patch_open):
    conn = fake_connection([
        ("FROM orders", ([("ID", 0, None, None, None, None, None), ("STATUS", 2, None, None, None, None, None)],
                         [(1, "shipped")])),
    ])
    patch_open(conn)

    connector = SnowflakeConnector(sf_config).connect()
    result = connector.run_query("SELECT id, status FROM orders")
    connector.disconnect()
    connector.disconnect()

    assert conn.close_calls == 1
    assert result.data == [{"ID": 1, "STATUS": "shipped"}]
    assert [(f.name, f.type) for f in result.fields] == [("ID", 1700), ("STATUS", 25)]


def test_connect_arguments(sf_config, fake_connection, patch_open):
    opened = patch_open(fake_connection())
    SnowflakeConnector(sf_config).connect().disconnect()
    assert opened["account"] == "xy12345"
    assert opened["role"] == "READER"
    assert opened["schema"] == "PUBLIC"
    assert opened["login_timeout"] == 5
    assert "QUERY_TAG" in opened["session_parameters"]


def test_connection_test_reads_upper_case_label(sf_config, fake_connection, patch_open):
    patch_open(fake_connection([("connection_test", (["CONNECTION_TEST"], [(1,)]))]))
    assert connector_service.test_connection(sf_config) is True


def test_extraction_with_describe_fallback(sf_config, fake_connection, patch_open):
    def objects(sql, params):
        rows = {"BASE TABLE": [("CUSTOMERS",)], "VIEW": [("ACTIVE_CUSTOMERS",)]}[params[1]]
        return ["TABLE_NAME"], rows

    conn = fake_connection([
        ("INFORMATION_SCHEMA.COLUMNS", RuntimeError("Insufficient privileges to operate on schema")),
        ("INFORMATION_SCHEMA.TABLES", objects),
        ("DESCRIBE TABLE", (["name", "type", "kind", "null?", "default"], [
            ("ID", "NUMBER(38,0)", "COLUMN", "N", "IDENTITY START 1 INCREMENT 1"),
            ("NAME", "VARCHAR(100)", "COLUMN", "Y", None),
        ])),
    ])
    patch_open(conn)

    result = connector_service.extract_schema(sf_config)

    assert [(t.name, t.type) for t in result.tables] == [
        ("CUSTOMERS", ObjectType.TABLE), ("ACTIVE_CUSTOMERS", ObjectType.VIEW),
    ]
    id_col, name = result.tables[0].columns
    assert id_col.type_name == "NUMBER(38,0)"
    assert not id_col.nullable and id_col.autoincrement
    assert not id_col.primary_key
    assert name.nullable
    assert conn.close_calls == 1


def test_case_sensitive_names_are_used_as_stored(sf_config, fake_connection, patch_open):
    def objects(sql, params):
        rows = {"BASE TABLE": [("camelOrders",)], "VIEW": []}[params[1]]
        return ["TABLE_NAME"], rows

    conn = fake_connection([
        ("INFORMATION_SCHEMA.COLUMNS", RuntimeError("Insufficient privileges to operate on schema")),
        ("INFORMATION_SCHEMA.TABLES", objects),
        ('DESCRIBE TABLE "PUBLIC"."camelOrders"', (["name", "type", "kind", "null?", "default"], [
            ("orderId", "NUMBER(38,0)", "COLUMN", "N", None),
        ])),
    ])
    patch_open(conn)

    result = connector_service.extract_schema(sf_config)

    assert [t.name for t in result.tables] == ["camelOrders"]
    assert [c.name for c in result.tables[0].columns] == ["orderId"]
    column_lookups = [params for sql, params in conn.executed if "INFORMATION_SCHEMA.COLUMNS" in sql]
    assert column_lookups == [("PUBLIC", "camelOrders")]
