"""
Unit tests for the SQL Server provider and schema loader.
Catalog answers are scripted; no SQL Server instance is needed.
"""
import pytest

from dataforge_schema.connection import DbConnection
from dataforge_schema.errors import ObjectAlreadyExistsError, UnsupportedOperationError
from dataforge_schema.methods import SQLServerMethods
from dataforge_schema.models import (
    ColumnDef,
    ForeignKeyAction,
    ForeignKeyDef,
    ObjectKind,
    ObjectRef,
    SortOrder,
    TableDef,
)
from dataforge_schema.type_mapping import LogicalType

COLUMN_COLUMNS = ["column_name", "data_type", "max_length", "numeric_precision", "numeric_scale",
                  "datetime_precision", "is_nullable", "is_identity"]
FOREIGN_KEY_COLUMNS = ["constraint_name", "column_name", "referenced_schema", "referenced_table",
                       "referenced_column", "on_delete", "on_update"]


def key_constraint(kind):
    """Match the sys.key_constraints query for PK or UQ."""
    return lambda sql, params: "sys.key_constraints" in sql and params[0] == kind


def orders_catalog():
    return [
        ("FROM sys.schemas s", ["schema_name"], [("dbo",), ("sales",)]),
        ("INFORMATION_SCHEMA.TABLES", ["table_name"], [("Orders",)]),
        ("INFORMATION_SCHEMA.VIEWS", ["view_name"], [("OrderTotals",)]),
        ("INFORMATION_SCHEMA.COLUMNS", COLUMN_COLUMNS, [
            ("Id", "int", None, 10, 0, None, "NO", 1),
            ("CustomerId", "int", None, 10, 0, None, "NO", 0),
            ("Total", "decimal", None, 10, 2, None, "YES", 0),
            ("Note", "nvarchar", -1, None, None, None, "YES", 0),
        ]),
        (key_constraint("PK"), ["constraint_name", "column_name"], [("PK_Orders", "Id")]),
        (key_constraint("UQ"), ["constraint_name", "column_name"], []),
        ("sys.check_constraints", ["constraint_name", "definition", "column_name"], [
            ("CK_Orders_Total", "([Total]>=(0))", "Total"),
        ]),
        ("sys.default_constraints", ["constraint_name", "definition", "column_name"], [
            ("DF_Orders_Total", "((0))", "Total"),
        ]),
        ("sys.foreign_keys fk", FOREIGN_KEY_COLUMNS, [
            ("FK_Orders_Customers", "CustomerId", "dbo", "Customers", "Id", "CASCADE", "SET_NULL"),
        ]),
        ("FROM sys.indexes i", ["index_name", "is_unique", "column_name", "is_descending"], [
            ("IX_Orders_Customer", False, "CustomerId", False),
            ("IX_Orders_Customer", False, "Total", True),
        ]),
    ]


@pytest.fixture
def methods():
    return SQLServerMethods()


@pytest.fixture
def raw(fake_connection):
    return fake_connection(orders_catalog())


@pytest.fixture
def db(raw):
    return DbConnection(raw, "sqlserver")


class TestSchemas:
    """Test schema operations."""

    def test_exists(self, db, methods):
        """Test schema lookup against sys.schemas."""
        assert methods.does_schema_exist(db, "sales")
        assert not methods.does_schema_exist(db, "archive")

    def test_create(self, db, raw, methods):
        """Test a missing schema is created."""
        assert methods.create_schema_if_not_exists(db, "archive") is True
        assert raw.statements[-1] == "CREATE SCHEMA [archive]"

    def test_create_existing(self, db, raw, methods):
        """Test an existing schema is left alone."""
        assert methods.create_schema_if_not_exists(db, "sales") is False
        assert not any(s.startswith("CREATE") for s in raw.statements)

    def test_rename_unsupported(self, db, raw, methods):
        """Test schema renames are refused before any statement runs."""
        with pytest.raises(UnsupportedOperationError):
            methods.rename_schema_if_exists(db, "sales", "archive")
        assert raw.statements == []


class TestRenames:
    """Test renames through sp_rename."""

    def test_table(self, db, raw, methods):
        """Test a table rename names the qualified table."""
        assert methods.rename_table_if_exists(db, None, "orders", "Sales") is True
        assert raw.statements[-1] == "EXEC sp_rename N'[dbo].[Orders]', N'Sales'"

    def test_quotes_escaped(self, db, raw, methods):
        """Test quotes in the new name are doubled inside the N'' literal."""
        methods.rename_table_if_exists(db, None, "Orders", "O'Brien")
        assert raw.statements[-1] == "EXEC sp_rename N'[dbo].[Orders]', N'O''Brien'"

    def test_column(self, db, raw, methods):
        """Test a column rename passes the COLUMN object type."""
        assert methods.rename_column_if_exists(db, None, "Orders", "total", "Amount") is True
        assert raw.statements[-1] == "EXEC sp_rename N'[dbo].[Orders].[Total]', N'Amount', N'COLUMN'"

    def test_column_target_taken(self, db, raw, methods):
        """Test renaming onto an existing column fails without running sp_rename."""
        with pytest.raises(ObjectAlreadyExistsError):
            methods.rename_column_if_exists(db, None, "Orders", "Total", "Note")
        assert not any("sp_rename" in s for s in raw.statements)

    def test_check_constraint(self, db, raw, methods):
        """Test a check constraint rename passes the OBJECT object type."""
        assert methods.rename_check_constraint_if_exists(
            db, None, "Orders", "CK_Orders_Total", "ck_total") is True
        assert raw.statements[-1] == "EXEC sp_rename N'[dbo].[CK_Orders_Total]', N'ck_total', N'OBJECT'"

    def test_default_constraint(self, db, raw, methods):
        """Test named defaults are renamed like other constraints."""
        assert methods.rename_default_constraint_if_exists(
            db, None, "Orders", "DF_Orders_Total", "df_total") is True
        assert raw.statements[-1] == "EXEC sp_rename N'[dbo].[DF_Orders_Total]', N'df_total', N'OBJECT'"

    def test_index(self, db, raw, methods):
        """Test an index rename names the index under its table."""
        assert methods.rename_index_if_exists(db, None, "Orders", "ix_orders_customer", "ix_customer") is True
        assert raw.statements[-1] == \
            "EXEC sp_rename N'[dbo].[Orders].[IX_Orders_Customer]', N'ix_customer', N'INDEX'"

    def test_view(self, db, raw, methods):
        """Test views are renamed in place."""
        assert methods.rename_if_exists(db, ObjectRef.view("OrderTotals"), "Totals") is True
        assert raw.statements[-1] == "EXEC sp_rename N'[dbo].[OrderTotals]', N'Totals'"

    def test_missing_constraint(self, db, raw, methods):
        """Test renaming an absent constraint is a no-op."""
        ref = ObjectRef.constraint(ObjectKind.CHECK, "Orders", "CK_Missing")
        assert methods.rename_if_exists(db, ref, "ck_other") is False
        assert not any("sp_rename" in s for s in raw.statements)


class TestLoader:
    """Test reading tables from scripted catalog rows."""

    def test_columns(self, db, methods):
        """Test native types are rebuilt from the INFORMATION_SCHEMA columns."""
        orders = methods.get_table(db, None, "Orders")

        assert orders.schema_name == "dbo"
        assert orders.get_column("Id").is_identity
        assert orders.get_column("Total").native_type == "decimal(10,2)"
        assert orders.get_column("Total").logical_type == LogicalType.DECIMAL
        assert orders.get_column("Note").native_type == "nvarchar(max)"
        assert orders.get_column("Note").is_nullable

    def test_constraints(self, db, methods):
        """Test keys, checks and named defaults keep their catalog names."""
        orders = methods.get_table(db, None, "Orders")

        assert (orders.primary_key.name, orders.primary_key.columns) == ("PK_Orders", ["Id"])
        check = orders.check_constraints[0]
        assert (check.name, check.expression, check.column_name) == ("CK_Orders_Total", "[Total]>=(0)", "Total")
        default = orders.default_constraints[0]
        assert (default.name, default.expression) == ("DF_Orders_Total", "0")

    def test_foreign_key_actions(self, db, methods):
        """Test referential action descriptions become ForeignKeyAction values."""
        fk = methods.get_table(db, None, "Orders").foreign_keys[0]

        assert fk.name == "FK_Orders_Customers"
        assert (fk.referenced_schema, fk.referenced_table, fk.referenced_columns) == ("dbo", "Customers", ["Id"])
        assert fk.on_delete == ForeignKeyAction.CASCADE
        assert fk.on_update == ForeignKeyAction.SET_NULL

    def test_indexes(self, db, methods):
        """Test index rows are grouped per index with their sort order."""
        indexes = methods.get_indexes(db, None, "Orders")

        assert [i.name for i in indexes] == ["IX_Orders_Customer"]
        assert [(c.name, c.order) for c in indexes[0].columns] == \
            [("CustomerId", SortOrder.ASC), ("Total", SortOrder.DESC)]

    def test_constraint_indexes_excluded(self, db, raw, methods):
        """Test indexes backing primary keys and unique constraints are filtered out."""
        methods.get_indexes(db, None, "Orders")

        index_sql = next(s for s in raw.statements if "FROM sys.indexes i" in s)
        assert "i.is_primary_key = 0" in index_sql
        assert "i.is_unique_constraint = 0" in index_sql


class TestCreateTables:
    """Test statement order when creating tables."""

    def test_bodies_then_foreign_keys_then_indexes(self, fake_connection, methods):
        """Test every table body is created before any foreign key, and indexes come last."""
        raw = fake_connection([("INFORMATION_SCHEMA.TABLES", ["table_name"], [])])
        db = DbConnection(raw, "sqlserver")
        customers = TableDef("Customers", [
            ColumnDef("Id", LogicalType.INT32, is_identity=True, is_primary_key=True),
        ])
        orders = TableDef("Orders", [
            ColumnDef("Id", LogicalType.INT32, is_identity=True, is_primary_key=True),
            ColumnDef("CustomerId", LogicalType.INT32, is_indexed=True),
            ColumnDef("Status", LogicalType.TEXT, length=10, default_expression="'new'"),
        ], foreign_keys=[ForeignKeyDef(["CustomerId"], "Customers", ["Id"])])

        assert methods.create_tables_if_not_exist(db, [orders, customers]) == [True, True]

        ddl = [s for s in raw.statements if s.startswith(("CREATE", "ALTER"))]
        assert ddl[0].startswith("CREATE TABLE [dbo].[Orders] (")
        assert "CONSTRAINT [df_Orders_Status] DEFAULT ('new')" in ddl[0]
        assert "IDENTITY(1,1)" in ddl[0]
        assert ddl[1].startswith("CREATE TABLE [dbo].[Customers] (")
        assert ddl[2] == ("ALTER TABLE [dbo].[Orders] ADD CONSTRAINT [fk_Orders_CustomerId_Customers_Id] "
                          "FOREIGN KEY ([CustomerId]) REFERENCES [dbo].[Customers] ([Id])")
        assert ddl[3:] == ["CREATE INDEX [ix_Orders_CustomerId] ON [dbo].[Orders] ([CustomerId])"]
