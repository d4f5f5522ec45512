"""
Unit tests for DDL text generation.
Dialects perform no I/O, so every statement is checked as plain text.
"""
import pytest

from dataforge_schema.config import EngineSettings, set_settings
from dataforge_schema.dialects import MySQLDialect, PostgreSQLDialect, SQLiteDialect, SQLServerDialect
from dataforge_schema.errors import UnsupportedOperationError
from dataforge_schema.models import (
    ColumnDef,
    DefaultDef,
    ForeignKeyAction,
    ForeignKeyDef,
    IndexDef,
    ObjectKind,
    TableDef,
    ViewDef,
)
from dataforge_schema.type_mapping import LogicalType, get_type_registry


def orders_table(schema_name=None):
    return TableDef("Orders", [
        ColumnDef("Id", LogicalType.INT32, is_identity=True, is_primary_key=True),
        ColumnDef("Total", LogicalType.DECIMAL, precision=10, scale=2,
                  default_expression="0", check_expression="Total >= 0"),
    ], schema_name=schema_name)


class TestSQLServerDialect:
    """Test SQL Server DDL."""

    @pytest.fixture
    def dialect(self):
        return SQLServerDialect()

    def test_create_table(self, dialect):
        """Test identity, named inline defaults and table constraints."""
        sql = dialect.create_table_sql(orders_table(), get_type_registry("sqlserver"))
        assert sql == (
            "CREATE TABLE [dbo].[Orders] (\n"
            "    [Id] int IDENTITY(1,1) NOT NULL,\n"
            "    [Total] decimal(10,2) CONSTRAINT [df_Orders_Total] DEFAULT (0) NULL,\n"
            "    CONSTRAINT [pk_Orders_Id] PRIMARY KEY ([Id]),\n"
            "    CONSTRAINT [ck_Orders_Total] CHECK (Total >= 0)\n"
            ")"
        )

    def test_quoting(self, dialect):
        """Test closing brackets are doubled."""
        assert dialect.quote_identifier("a]b") == "[a]]b]"
        assert dialect.qualify("T", "sales") == "[sales].[T]"

    def test_renames(self, dialect):
        """Test renames go through sp_rename."""
        assert dialect.rename_table_sql(None, "Orders", "Sales") == "EXEC sp_rename N'[dbo].[Orders]', N'Sales'"
        assert dialect.rename_column_sql(None, "Orders", "Total", "Amount") == \
            "EXEC sp_rename N'[dbo].[Orders].[Total]', N'Amount', N'COLUMN'"
        assert dialect.rename_index_sql("s", "Orders", "ix_a", "ix_b") == \
            "EXEC sp_rename N'[s].[Orders].[ix_a]', N'ix_b', N'INDEX'"
        assert dialect.rename_constraint_sql(None, "Orders", "ck_a", "ck_b") == \
            "EXEC sp_rename N'[dbo].[ck_a]', N'ck_b', N'OBJECT'"

    def test_schema_rename_unsupported(self, dialect):
        """Test SQL Server cannot rename schemas."""
        with pytest.raises(UnsupportedOperationError):
            dialect.rename_schema_sql("a", "b")

    def test_defaults(self, dialect):
        """Test default constraints are named objects."""
        default = DefaultDef("Status", "'new'")
        assert dialect.add_default_sql(None, "Orders", default) == \
            "ALTER TABLE [dbo].[Orders] ADD CONSTRAINT [df_Orders_Status] DEFAULT ('new') FOR [Status]"
        assert dialect.drop_default_sql(None, "Orders", default) == \
            "ALTER TABLE [dbo].[Orders] DROP CONSTRAINT [df_Orders_Status]"

    def test_restrict_becomes_no_action(self, dialect):
        """Test RESTRICT is rendered as NO ACTION."""
        fk = ForeignKeyDef(["CustomerId"], "Customers", ["Id"], "fk_x", on_delete=ForeignKeyAction.RESTRICT)
        assert dialect.foreign_key_clause(fk).endswith("ON DELETE NO ACTION")

    def test_indexes_and_views(self, dialect):
        """Test index drop and view replacement syntax."""
        assert dialect.drop_index_sql(None, "Orders", "ix_a") == "DROP INDEX [ix_a] ON [dbo].[Orders]"
        index = IndexDef(["Created DESC", "Id"], "ix_created")
        assert dialect.create_index_sql(None, "Orders", index) == \
            "CREATE INDEX [ix_created] ON [dbo].[Orders] ([Created] DESC, [Id])"
        assert dialect.replace_view_sql(ViewDef("V", "SELECT 1;")) == ["ALTER VIEW [dbo].[V] AS\nSELECT 1"]


class TestPostgreSQLDialect:
    """Test PostgreSQL DDL."""

    @pytest.fixture
    def dialect(self):
        return PostgreSQLDialect()

    def test_create_table(self, dialect):
        """Test identity columns and default schema."""
        sql = dialect.create_table_sql(orders_table(), get_type_registry("postgresql"))
        assert sql.startswith('CREATE TABLE "public"."Orders" (\n')
        assert '"Id" integer GENERATED BY DEFAULT AS IDENTITY NOT NULL' in sql
        assert '"Total" numeric(10,2) DEFAULT (0) NULL' in sql
        assert 'CONSTRAINT "pk_Orders_Id" PRIMARY KEY ("Id")' in sql

    def test_foreign_key(self, dialect):
        """Test foreign keys inherit the table's schema."""
        fk = ForeignKeyDef(["CustomerId"], "Customers", ["Id"], "fk_x",
                           on_delete=ForeignKeyAction.CASCADE, on_update=ForeignKeyAction.SET_NULL)
        assert dialect.add_foreign_key_sql("sales", "Orders", fk) == (
            'ALTER TABLE "sales"."Orders" ADD CONSTRAINT "fk_x" FOREIGN KEY ("CustomerId") '
            'REFERENCES "sales"."Customers" ("Id") ON DELETE CASCADE ON UPDATE SET NULL'
        )

    def test_renames(self, dialect):
        """Test native renames."""
        assert dialect.rename_table_sql(None, "Orders", "Sales") == 'ALTER TABLE "public"."Orders" RENAME TO "Sales"'
        assert dialect.rename_constraint_sql("s", "Orders", "a", "b") == \
            'ALTER TABLE "s"."Orders" RENAME CONSTRAINT "a" TO "b"'
        assert dialect.rename_index_sql(None, "Orders", "ix_a", "ix_b") == \
            'ALTER INDEX "public"."ix_a" RENAME TO "ix_b"'
        assert dialect.rename_schema_sql("a", "b") == 'ALTER SCHEMA "a" RENAME TO "b"'

    def test_defaults(self, dialect):
        """Test defaults are column properties."""
        default = DefaultDef("Status", "'new'")
        assert dialect.add_default_sql(None, "Orders", default) == \
            'ALTER TABLE "public"."Orders" ALTER COLUMN "Status" SET DEFAULT (\'new\')'
        assert dialect.drop_default_sql(None, "Orders", default) == \
            'ALTER TABLE "public"."Orders" ALTER COLUMN "Status" DROP DEFAULT'

    def test_views(self, dialect):
        """Test view statements."""
        view = ViewDef("Big", "SELECT * FROM t WHERE x > 1", "sales")
        assert dialect.create_view_sql(view) == 'CREATE VIEW "sales"."Big" AS\nSELECT * FROM t WHERE x > 1'
        assert dialect.replace_view_sql(view) == \
            ['CREATE OR REPLACE VIEW "sales"."Big" AS\nSELECT * FROM t WHERE x > 1']


class TestMySQLDialect:
    """Test MySQL / MariaDB DDL."""

    @pytest.fixture
    def dialect(self):
        return MySQLDialect()

    def test_create_table(self, dialect):
        """Test AUTO_INCREMENT, no schema qualification and table options."""
        set_settings(EngineSettings(mysql_table_options="ENGINE = InnoDB"))
        sql = dialect.create_table_sql(orders_table("ignored"), get_type_registry("mysql"))
        assert sql.startswith("CREATE TABLE `Orders` (\n")
        assert "`Id` int AUTO_INCREMENT NOT NULL" in sql
        assert sql.endswith("\n) ENGINE = InnoDB")

    def test_constraint_drops(self, dialect):
        """Test MySQL-specific drop syntax."""
        assert dialect.drop_primary_key_sql(None, "T", "PRIMARY") == "ALTER TABLE `T` DROP PRIMARY KEY"
        assert dialect.drop_unique_sql(None, "T", "uc") == "ALTER TABLE `T` DROP INDEX `uc`"
        assert dialect.drop_foreign_key_sql(None, "T", "fk") == "ALTER TABLE `T` DROP FOREIGN KEY `fk`"
        assert dialect.drop_check_sql(None, "T", "ck") == "ALTER TABLE `T` DROP CHECK `ck`"
        assert dialect.drop_check_sql(None, "T", "ck", mariadb=True) == "ALTER TABLE `T` DROP CONSTRAINT `ck`"

    def test_renames(self, dialect):
        """Test renames through RENAME TABLE and RENAME INDEX."""
        assert dialect.rename_table_sql("x", "a", "b") == "RENAME TABLE `a` TO `b`"
        assert dialect.rename_view_sql(None, "v1", "v2") == "RENAME TABLE `v1` TO `v2`"
        assert dialect.rename_constraint_sql(None, "T", "uc_a", "uc_b", ObjectKind.UNIQUE) == \
            "ALTER TABLE `T` RENAME INDEX `uc_a` TO `uc_b`"
        assert dialect.rename_constraint_sql(None, "T", "fk_a", "fk_b", ObjectKind.FOREIGN_KEY) is None

    def test_no_schemas(self, dialect):
        """Test schema DDL is unsupported."""
        with pytest.raises(UnsupportedOperationError):
            dialect.create_schema_sql("sales")


class TestSQLiteDialect:
    """Test SQLite DDL."""

    @pytest.fixture
    def dialect(self):
        return SQLiteDialect()

    def test_create_table(self, dialect):
        """Test AUTOINCREMENT primary keys and inline constraints."""
        sql = dialect.create_table_sql(orders_table(), get_type_registry("sqlite"))
        assert '"Id" INTEGER CONSTRAINT "pk_Orders_Id" PRIMARY KEY AUTOINCREMENT NOT NULL' in sql
        assert "DEFAULT (0) NULL" in sql
        assert 'CONSTRAINT "ck_Orders_Total" CHECK (Total >= 0)' in sql
        assert "PRIMARY KEY (" not in sql

    def test_foreign_keys_inline(self, dialect):
        """Test foreign keys are part of CREATE TABLE."""
        table = TableDef("Orders", [
            ColumnDef("Id", LogicalType.INT64, is_primary_key=True),
            ColumnDef("CustomerId", LogicalType.INT64, references_table="Customers", references_column="Id"),
        ])
        sql = dialect.create_table_sql(table, get_type_registry("sqlite"))
        assert 'CONSTRAINT "fk_Orders_CustomerId_Customers_Id" FOREIGN KEY ("CustomerId") ' \
               'REFERENCES "Customers" ("Id")' in sql

    def test_identity_needs_primary_key(self, dialect):
        """Test identity columns must be the single-column primary key."""
        table = TableDef("T", [
            ColumnDef("Id", LogicalType.INT32, is_identity=True),
            ColumnDef("Code", LogicalType.TEXT, is_primary_key=True),
        ])
        with pytest.raises(UnsupportedOperationError):
            dialect.create_table_sql(table, get_type_registry("sqlite"))

    def test_no_alter_constraints(self, dialect):
        """Test constraint DDL needs a table rebuild."""
        with pytest.raises(UnsupportedOperationError):
            dialect.drop_constraint_sql(None, "T", "ck")
        with pytest.raises(UnsupportedOperationError):
            dialect.add_default_sql(None, "T", DefaultDef("A", "1"))

    def test_unordered_indexes(self, dialect):
        """Test descending index columns are rejected."""
        with pytest.raises(UnsupportedOperationError):
            dialect.create_index_sql(None, "T", IndexDef(["A DESC"], "ix"))
        assert dialect.create_index_sql("main", "T", IndexDef(["A"], "ix", is_unique=True)) == \
            'CREATE UNIQUE INDEX "ix" ON "T" ("A")'

    def test_truncate_and_views(self, dialect):
        """Test truncate and view replacement statements."""
        assert dialect.truncate_table_sql(None, "T") == ['DELETE FROM "T"']
        assert dialect.replace_view_sql(ViewDef("V", "SELECT 1")) == ['DROP VIEW "V"', 'CREATE VIEW "V" AS\nSELECT 1']
