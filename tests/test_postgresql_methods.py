"""
Unit tests for the PostgreSQL provider and schema loader.
Catalog answers are scripted; no PostgreSQL server is needed.
"""
import pytest

from dataforge_schema.connection import DbConnection
from dataforge_schema.models import (
    ColumnDef,
    ForeignKeyAction,
    ForeignKeyDef,
    IndexDef,
    SortOrder,
    TableDef,
)
from dataforge_schema.methods import PostgreSQLMethods
from dataforge_schema.schema_loaders.postgresql_loader import PostgreSQLSchemaLoader, _pg_array
from dataforge_schema.type_mapping import LogicalType

CONSTRAINT_COLUMNS = ["constraint_name", "columns", "referenced_schema", "referenced_table",
                     "referenced_columns", "on_delete", "on_update", "definition"]
COLUMN_COLUMNS = ["attnum", "column_name", "data_type", "is_nullable", "identity_kind", "default_value"]
INDEX_COLUMNS = ["index_name", "is_unique", "key_columns", "key_options", "key_count"]


def constraint_type(letter):
    """Match the pg_constraint query for one contype."""
    return lambda sql, params: "con.contype = %s" in sql and params[-1] == letter


def orders_catalog(on_delete="c", on_update="n"):
    return [
        ("nspname AS schema_name", ["schema_name"], [("public",), ("sales",)]),
        ("c.relkind IN ('r', 'p')", ["table_name"], [("Customers",), ("Orders",)]),
        ("a.attidentity::text AS identity_kind", COLUMN_COLUMNS, [
            (1, "Id", "integer", False, "a", None),
            (2, "CustomerId", "integer", False, "", None),
            (3, "Total", "numeric(10,2)", True, "", "0"),
        ]),
        (constraint_type("p"), CONSTRAINT_COLUMNS, [
            ("Orders_pkey", ["Id"], None, None, [], " ", " ", 'PRIMARY KEY ("Id")'),
        ]),
        (constraint_type("u"), CONSTRAINT_COLUMNS, []),
        (constraint_type("c"), CONSTRAINT_COLUMNS, [
            ("Orders_Total_check", "{Total}", None, None, [], " ", " ",
             'CHECK (("Total" >= (0)::numeric))'),
        ]),
        (constraint_type("f"), CONSTRAINT_COLUMNS, [
            ("fk_orders_customer", ["CustomerId"], "public", "Customers", ["Id"], on_delete, on_update,
             'FOREIGN KEY ("CustomerId") REFERENCES "Customers"("Id")'),
        ]),
        ("FROM pg_index ix", INDEX_COLUMNS, [
            ("ix_orders_customer_total", False, "2 3", "0 1", 2),
            ("ix_orders_lower_note", False, "0", "0", 1),
        ]),
    ]


@pytest.fixture
def methods():
    return PostgreSQLMethods()


class TestSchemas:
    """Test schema operations."""

    def test_exists(self, fake_connection, methods):
        """Test schema lookup against pg_namespace."""
        db = DbConnection(fake_connection(orders_catalog()), "postgresql")
        assert methods.does_schema_exist(db, "sales")
        assert not methods.does_schema_exist(db, "archive")

    def test_create(self, fake_connection, methods):
        """Test a missing schema is created."""
        raw = fake_connection(orders_catalog())
        db = DbConnection(raw, "postgresql")

        assert methods.create_schema_if_not_exists(db, "archive") is True
        assert raw.statements[-1] == 'CREATE SCHEMA "archive"'

    def test_create_existing(self, fake_connection, methods):
        """Test an existing schema is left alone."""
        raw = fake_connection(orders_catalog())
        db = DbConnection(raw, "postgresql")

        assert methods.create_schema_if_not_exists(db, "sales") is False
        assert not any(s.startswith("CREATE") for s in raw.statements)

    def test_rename(self, fake_connection, methods):
        """Test schemas are renamed natively."""
        raw = fake_connection(orders_catalog())
        db = DbConnection(raw, "postgresql")

        assert methods.rename_schema_if_exists(db, "sales", "archive") is True
        assert raw.statements[-1] == 'ALTER SCHEMA "sales" RENAME TO "archive"'


class TestLoader:
    """Test reading tables from scripted pg_catalog rows."""

    def test_table(self, fake_connection, methods):
        """Test columns, keys, checks and defaults are assembled."""
        db = DbConnection(fake_connection(orders_catalog()), "postgresql")
        orders = methods.get_table(db, None, "orders")

        assert orders.name == "Orders"
        assert orders.schema_name == "public"
        assert orders.column_names == ["Id", "CustomerId", "Total"]
        assert orders.get_column("Id").is_identity
        assert orders.get_column("Total").logical_type == LogicalType.DECIMAL
        assert orders.primary_key.name == "Orders_pkey"
        check = orders.check_constraints[0]
        assert (check.name, check.column_name, check.expression) == \
            ("Orders_Total_check", "Total", '"Total" >= (0)::numeric')
        assert [(d.column_name, d.expression) for d in orders.default_constraints] == [("Total", "0")]

    @pytest.mark.parametrize("letter,expected", [
        ("a", ForeignKeyAction.NO_ACTION),
        ("r", ForeignKeyAction.RESTRICT),
        ("c", ForeignKeyAction.CASCADE),
        ("n", ForeignKeyAction.SET_NULL),
        ("d", ForeignKeyAction.SET_DEFAULT),
    ])
    def test_foreign_key_actions(self, fake_connection, methods, letter, expected):
        """Test confdeltype / confupdtype letters become referential actions."""
        db = DbConnection(fake_connection(orders_catalog(on_delete=letter, on_update=letter)), "postgresql")
        loader = PostgreSQLSchemaLoader(db, methods.dialect, methods.registry)

        fk = loader.foreign_keys("public", "Orders")[0]
        assert fk.on_delete == expected
        assert fk.on_update == expected
        assert (fk.referenced_schema, fk.referenced_table, fk.referenced_columns) == ("public", "Customers", ["Id"])

    def test_indexes(self, fake_connection, methods):
        """Test key columns, sort order, and expression indexes are skipped."""
        db = DbConnection(fake_connection(orders_catalog()), "postgresql")
        indexes = methods.get_indexes(db, None, "Orders")

        assert [i.name for i in indexes] == ["ix_orders_customer_total"]
        assert indexes[0].column_names == ["CustomerId", "Total"]
        assert [c.order for c in indexes[0].columns] == [SortOrder.ASC, SortOrder.DESC]

    def test_constraint_indexes_excluded(self, fake_connection, methods):
        """Test indexes backing primary key, unique and exclusion constraints are filtered out."""
        raw = fake_connection(orders_catalog())
        db = DbConnection(raw, "postgresql")
        orders = methods.get_table(db, None, "Orders")

        index_sql = next(s for s in raw.statements if "FROM pg_index ix" in s)
        assert "con.conindid = ix.indexrelid AND con.contype IN ('p', 'u', 'x')" in index_sql
        assert "Orders_pkey" not in [i.name for i in orders.indexes]

    def test_array_text(self):
        """Test '{a,b}' array text from the driver is split."""
        assert _pg_array("{x,y}") == ["x", "y"]
        assert _pg_array("1 2") == [1, 2]
        assert _pg_array(None) == []


class TestCreateTables:
    """Test statement order when creating tables."""

    @staticmethod
    def batch():
        customers = TableDef("Customers", [
            ColumnDef("Id", LogicalType.INT32, is_identity=True, is_primary_key=True),
            ColumnDef("Name", LogicalType.TEXT, length=100),
        ], indexes=[IndexDef(["Name"])])
        orders = TableDef("Orders", [
            ColumnDef("Id", LogicalType.INT32, is_identity=True, is_primary_key=True),
            ColumnDef("CustomerId", LogicalType.INT32, is_indexed=True),
        ], foreign_keys=[ForeignKeyDef(["CustomerId"], "Customers", ["Id"], on_delete="CASCADE")])
        return [orders, customers]

    @staticmethod
    def ddl(raw):
        return [s for s in raw.statements if s.startswith(("CREATE", "ALTER"))]

    def test_bodies_then_foreign_keys_then_indexes(self, fake_connection, methods):
        """Test every table body is created before any foreign key, and indexes come last."""
        raw = fake_connection([("c.relkind IN ('r', 'p')", ["table_name"], [])])
        db = DbConnection(raw, "postgresql")

        assert methods.create_tables_if_not_exist(db, self.batch()) == [True, True]

        ddl = self.ddl(raw)
        assert [s.split(" (")[0].split("\n")[0] for s in ddl[:2]] == \
            ['CREATE TABLE "public"."Orders"', 'CREATE TABLE "public"."Customers"']
        assert ddl[2].startswith('ALTER TABLE "public"."Orders" ADD CONSTRAINT "fk_Orders_CustomerId_Customers_Id"')
        assert 'REFERENCES "public"."Customers" ("Id") ON DELETE CASCADE' in ddl[2]
        assert ddl[3:] == [
            'CREATE INDEX "ix_Orders_CustomerId" ON "public"."Orders" ("CustomerId")',
            'CREATE INDEX "ix_Customers_Name" ON "public"."Customers" ("Name")',
        ]
        assert "GENERATED BY DEFAULT AS IDENTITY" in ddl[0]

    def test_existing_tables_skipped(self, fake_connection, methods):
        """Test tables already in the catalog are not created again."""
        raw = fake_connection([("c.relkind IN ('r', 'p')", ["table_name"], [("Customers",)])])
        db = DbConnection(raw, "postgresql")

        assert methods.create_tables_if_not_exist(db, self.batch()) == [True, False]

        ddl = self.ddl(raw)
        assert len(ddl) == 3
        assert ddl[0].startswith('CREATE TABLE "public"."Orders"')
        assert ddl[1].startswith('ALTER TABLE "public"."Orders" ADD CONSTRAINT')
        assert ddl[2] == 'CREATE INDEX "ix_Orders_CustomerId" ON "public"."Orders" ("CustomerId")'


class TestRenames:
    """Test native ALTER ... RENAME statements."""

    def test_table(self, fake_connection, methods):
        """Test a table rename uses the catalog spelling."""
        raw = fake_connection(orders_catalog())
        db = DbConnection(raw, "postgresql")

        assert methods.rename_table_if_exists(db, None, "orders", "Sales") is True
        assert raw.statements[-1] == 'ALTER TABLE "public"."Orders" RENAME TO "Sales"'

    def test_constraint(self, fake_connection, methods):
        """Test constraints are renamed in place."""
        raw = fake_connection(orders_catalog())
        db = DbConnection(raw, "postgresql")

        assert methods.rename_check_constraint_if_exists(
            db, None, "Orders", "Orders_Total_check", "ck_total") is True
        assert raw.statements[-1] == \
            'ALTER TABLE "public"."Orders" RENAME CONSTRAINT "Orders_Total_check" TO "ck_total"'

    def test_missing_table(self, fake_connection, methods):
        """Test renaming an absent table is a no-op."""
        raw = fake_connection(orders_catalog())
        db = DbConnection(raw, "postgresql")

        assert methods.rename_table_if_exists(db, None, "Invoices", "Bills") is False
        assert not any(s.startswith("ALTER") for s in raw.statements)
