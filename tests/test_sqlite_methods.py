"""
Unit tests for the SQLite methods provider.
Runs every operation end to end against a real SQLite database.
"""
import asyncio

import pytest

from dataforge_schema.connection import CancellationToken, connect_sqlite
from dataforge_schema.errors import (
    ObjectAlreadyExistsError,
    ObjectNotFoundError,
    OperationCancelledError,
    UnsupportedOperationError,
    ValidationError,
)
from dataforge_schema.methods import AsyncDialectMethods, SQLiteMethods
from dataforge_schema.models import (
    CheckDef,
    ColumnDef,
    DefaultDef,
    ForeignKeyAction,
    IndexDef,
    ObjectKind,
    ObjectRef,
    PrimaryKeyDef,
    SchemaDef,
    TableDef,
    UniqueDef,
    ViewDef,
)
from dataforge_schema.type_mapping import LogicalType


def customers_table():
    return TableDef("Customers", [
        ColumnDef("Id", LogicalType.INT32, is_nullable=False, is_identity=True, is_primary_key=True),
        ColumnDef("Name", LogicalType.TEXT, length=100, is_nullable=False),
        ColumnDef("Email", LogicalType.TEXT, length=200, is_unique=True),
    ])


def orders_table():
    return TableDef("Orders", [
        ColumnDef("Id", LogicalType.INT32, is_nullable=False, is_identity=True, is_primary_key=True),
        ColumnDef("CustomerId", LogicalType.INT32, is_nullable=False,
                  references_table="Customers", references_column="Id"),
        ColumnDef("Total", LogicalType.DECIMAL, precision=10, scale=2,
                  default_expression="0", check_expression='"Total" >= 0'),
        ColumnDef("Status", LogicalType.TEXT, length=20, default_expression="'new'", is_indexed=True),
    ])


def add_customer(db, name, email=None):
    db.execute('INSERT INTO "Customers" ("Name", "Email") VALUES (?, ?)', [name, email])


def add_order(db, customer_id, total):
    db.execute('INSERT INTO "Orders" ("CustomerId", "Total") VALUES (?, ?)', [customer_id, total])


@pytest.fixture
def shop(db, methods):
    """Database with Customers and Orders and a few rows."""
    methods.create_tables_if_not_exist(db, [customers_table(), orders_table()])
    add_customer(db, "Ada", "ada@example.com")
    add_customer(db, "Grace", "grace@example.com")
    add_order(db, 1, 10)
    add_order(db, 1, 250)
    add_order(db, 2, 40)
    return db


class TestCapabilities:
    """Test capability reporting and server information."""

    def test_flags(self, methods):
        """Test SQLite capability flags."""
        assert isinstance(methods, SQLiteMethods)
        assert methods.family == "sqlite"
        assert methods.supports_schemas is False
        assert methods.supports_check_constraints is True
        assert methods.supports_ordered_index_columns is False
        assert methods.supports_native_structured_types is False

    def test_database_version(self, db, methods):
        """Test the server version is parsed to a tuple."""
        version = methods.get_database_version(db)
        assert version[0] == 3

    def test_data_types(self, db, methods):
        """Test registered data types are listed."""
        names = [t.name.lower() for t in methods.get_data_types(db)]
        assert "integer" in names
        assert "text" in names


class TestSchemas:
    """Test schema operations on a database without named schemas."""

    def test_create_schema_unsupported(self, db, methods):
        """Test creating a schema is rejected."""
        with pytest.raises(UnsupportedOperationError):
            methods.create_schema_if_not_exists(db, "sales")

    def test_schema_exists_unsupported(self, db, methods):
        """Test the schema existence check is rejected."""
        with pytest.raises(UnsupportedOperationError):
            methods.does_schema_exist(db, "main")

    def test_list_schemas_unsupported(self, db, methods):
        """Test listing schemas is rejected."""
        with pytest.raises(UnsupportedOperationError):
            methods.get_schema_names(db)

    def test_generic_schema_create_unsupported(self, db, methods):
        """Test generic dispatch of a SchemaDef is rejected too."""
        with pytest.raises(UnsupportedOperationError):
            methods.create_if_not_exists(db, SchemaDef("sales"))


class TestTables:
    """Test table creation, introspection and lifecycle."""

    def test_create_is_idempotent(self, db, methods):
        """Test a second create is a no-op."""
        assert methods.create_table_if_not_exists(db, customers_table()) is True
        assert methods.create_table_if_not_exists(db, customers_table()) is False
        assert methods.does_table_exist(db, None, "Customers")

    def test_table_lookup_is_case_insensitive(self, db, methods):
        """Test existence checks ignore case."""
        methods.create_table_if_not_exists(db, customers_table())
        assert methods.does_table_exist(db, None, "customers")
        assert methods.get_table(db, None, "CUSTOMERS").name == "Customers"

    def test_create_with_verify(self, db, methods):
        """Test creation with read-back verification."""
        assert methods.create_table_if_not_exists(db, customers_table(), verify=True) is True

    def test_batch_create_in_any_order(self, db, methods):
        """Test tables referencing each other can be created in one batch."""
        created = methods.create_tables_if_not_exist(db, [orders_table(), customers_table()])
        assert created == [True, True]
        assert methods.create_tables_if_not_exist(db, [orders_table(), customers_table()]) == [False, False]

    def test_introspection_fidelity(self, shop, methods):
        """Test the loaded table matches the created definition."""
        table = methods.get_table(shop, None, "Orders")

        assert table.column_names == ["Id", "CustomerId", "Total", "Status"]
        assert table.primary_key.columns == ["Id"]
        assert table.primary_key.name == "pk_Orders_Id"
        assert table.get_column("Id").is_identity is True
        assert table.get_column("CustomerId").is_nullable is False

        total = table.get_column("Total")
        assert total.logical_type == LogicalType.DECIMAL
        assert (total.precision, total.scale) == (10, 2)

        status = table.get_column("Status")
        assert status.logical_type == LogicalType.TEXT
        assert status.length == 20

        fk = table.foreign_keys[0]
        assert fk.name == "fk_Orders_CustomerId_Customers_Id"
        assert fk.referenced_table == "Customers"
        assert fk.referenced_columns == ["Id"]

        check = table.check_constraints[0]
        assert check.name == "ck_Orders_Total"
        assert check.column_name == "Total"
        assert '"Total" >= 0' in check.expression

        assert table.get_default("Total").expression == "0"
        assert table.get_default("Status").expression == "'new'"
        assert [ix.name for ix in table.indexes] == ["ix_Orders_Status"]

    def test_unique_shortcut_loaded(self, shop, methods):
        """Test a column-level unique shortcut comes back as a named constraint."""
        uniques = methods.get_unique_constraints(shop, None, "Customers")
        assert [(u.name, u.columns) for u in uniques] == [("uc_Customers_Email", ["Email"])]

    def test_constraints_enforced(self, shop):
        """Test the created check constraint is enforced."""
        from dataforge_schema.errors import DriverError
        with pytest.raises(DriverError):
            add_order(shop, 1, -5)

    def test_defaults_applied(self, shop):
        """Test column defaults are applied on insert."""
        shop.execute('INSERT INTO "Orders" ("CustomerId") VALUES (2)')
        row = shop.query('SELECT "Total", "Status" FROM "Orders" ORDER BY "Id" DESC LIMIT 1')[0]
        assert row["Total"] == 0
        assert row["Status"] == "new"

    def test_wildcard_filter(self, db, methods):
        """Test table names filtered with a wildcard."""
        methods.create_table_if_not_exists(db, customers_table())
        methods.create_table_if_not_exists(db, TableDef("CustomerNotes", [
            ColumnDef("Id", LogicalType.INT32, is_primary_key=True),
            ColumnDef("Note", LogicalType.TEXT),
        ]))
        methods.create_table_if_not_exists(db, TableDef("Invoices", [ColumnDef("Id", LogicalType.INT32)]))

        assert methods.get_table_names(db, None, "Cust*") == ["CustomerNotes", "Customers"]
        assert methods.get_table_names(db, None, "*") == ["CustomerNotes", "Customers", "Invoices"]
        assert [t.name for t in methods.get_tables(db, None, "*Notes")] == ["CustomerNotes"]

    def test_self_referencing_table(self, db, methods):
        """Test a table whose foreign key points at itself."""
        employees = TableDef("Employees", [
            ColumnDef("Id", LogicalType.INT32, is_primary_key=True),
            ColumnDef("ManagerId", LogicalType.INT32, references_table="Employees",
                      references_column="Id", on_delete=ForeignKeyAction.SET_NULL),
            ColumnDef("Salary", LogicalType.DECIMAL, precision=12, scale=2, check_expression='"Salary" > 0'),
        ])
        assert methods.create_table_if_not_exists(db, employees) is True

        table = methods.get_table(db, None, "Employees")
        assert len(table.self_references()) == 1
        assert table.foreign_keys[0].on_delete == ForeignKeyAction.SET_NULL
        assert table.check_constraints[0].column_name == "Salary"

    def test_drop_table(self, shop, methods):
        """Test dropping a table and dropping it again."""
        assert methods.drop_table_if_exists(shop, None, "Orders") is True
        assert methods.drop_table_if_exists(shop, None, "Orders") is False
        assert not methods.does_table_exist(shop, None, "Orders")

    def test_rename_table(self, shop, methods):
        """Test renaming a table."""
        assert methods.rename_table_if_exists(shop, None, "Orders", "Purchases") is True
        assert methods.does_table_exist(shop, None, "Purchases")
        assert not methods.does_table_exist(shop, None, "Orders")
        assert methods.rename_table_if_exists(shop, None, "Orders", "Sales") is False

    def test_rename_table_onto_existing(self, shop, methods):
        """Test renaming onto an existing table fails."""
        with pytest.raises(ObjectAlreadyExistsError):
            methods.rename_table_if_exists(shop, None, "Orders", "Customers")

    def test_truncate_resets_autoincrement(self, shop, methods):
        """Test truncation deletes rows and restarts identity values."""
        assert methods.truncate_table_if_exists(shop, None, "Customers") is True
        assert shop.execute_scalar('SELECT COUNT(*) FROM "Customers"') == 0

        add_customer(shop, "Linus")
        assert shop.execute_scalar('SELECT "Id" FROM "Customers"') == 1

    def test_truncate_missing_table(self, db, methods):
        """Test truncating a missing table is a no-op."""
        assert methods.truncate_table_if_exists(db, None, "Nope") is False

    def test_invalid_check_expression_rejected(self, db, methods):
        """Test a check expression with a statement separator is rejected before DDL runs."""
        table = TableDef("Bad", [
            ColumnDef("Id", LogicalType.INT32, check_expression='"Id" > 0; DROP TABLE x'),
        ])
        with pytest.raises(ValidationError):
            methods.create_table_if_not_exists(db, table)
        assert not methods.does_table_exist(db, None, "Bad")

    def test_identity_must_be_primary_key(self, db, methods):
        """Test identity columns outside the primary key are rejected."""
        table = TableDef("Bad", [
            ColumnDef("Id", LogicalType.INT32, is_primary_key=True),
            ColumnDef("Seq", LogicalType.INT32, is_identity=True),
        ])
        with pytest.raises(UnsupportedOperationError):
            methods.create_table_if_not_exists(db, table)


class TestColumns:
    """Test column operations."""

    def test_add_plain_column(self, shop, methods):
        """Test adding a column without constraints."""
        column = ColumnDef("Phone", LogicalType.TEXT, length=30)
        assert methods.create_column_if_not_exists(shop, None, "Customers", column) is True
        assert methods.create_column_if_not_exists(shop, None, "Customers", column) is False
        assert methods.does_column_exist(shop, None, "Customers", "phone")

    def test_add_column_with_check(self, shop, methods):
        """Test adding a column with a check shortcut rebuilds the table and keeps rows."""
        column = ColumnDef("Score", LogicalType.INT32, default_expression="5", check_expression='"Score" >= 0')
        assert methods.create_column_if_not_exists(shop, None, "Customers", column) is True

        assert shop.execute_scalar('SELECT COUNT(*) FROM "Customers"') == 2
        check = methods.get_check_constraint_on_column(shop, None, "Customers", "Score")
        assert check is not None
        assert check.name == "ck_Customers_Score"

    def test_add_column_to_missing_table(self, db, methods):
        """Test adding a column to a missing table fails."""
        with pytest.raises(ObjectNotFoundError):
            methods.create_column_if_not_exists(db, None, "Nope", ColumnDef("A", LogicalType.INT32))

    def test_drop_column_with_index(self, shop, methods):
        """Test dropping an indexed column removes the index and keeps rows."""
        assert methods.drop_column_if_exists(shop, None, "Orders", "Status") is True
        assert methods.get_column_names(shop, None, "Orders") == ["Id", "CustomerId", "Total"]
        assert methods.get_index_names(shop, None, "Orders") == []
        assert shop.execute_scalar('SELECT COUNT(*) FROM "Orders"') == 3
        assert methods.drop_column_if_exists(shop, None, "Orders", "Status") is False

    def test_drop_column_with_check_and_default(self, shop, methods):
        """Test dropping a column removes its check constraint and default."""
        assert methods.drop_column_if_exists(shop, None, "Orders", "Total") is True
        table = methods.get_table(shop, None, "Orders")
        assert table.check_constraints == []
        assert table.get_default("Total") is None
        assert table.get_default("Status") is not None

    def test_drop_column_with_foreign_key(self, shop, methods):
        """Test dropping a referencing column removes the foreign key."""
        assert methods.drop_column_if_exists(shop, None, "Orders", "CustomerId") is True
        assert methods.get_foreign_key_constraints(shop, None, "Orders") == []

    def test_rename_column(self, shop, methods):
        """Test renaming a column."""
        assert methods.rename_column_if_exists(shop, None, "Customers", "Email", "Mail") is True
        assert methods.get_column_names(shop, None, "Customers") == ["Id", "Name", "Mail"]
        with pytest.raises(ObjectAlreadyExistsError):
            methods.rename_column_if_exists(shop, None, "Customers", "Mail", "Name")

    def test_column_filter(self, shop, methods):
        """Test column names filtered with a wildcard."""
        assert methods.get_column_names(shop, None, "Orders", "*Id") == ["Id", "CustomerId"]


class TestConstraints:
    """Test constraint operations (carried out by rebuilding the table)."""

    def test_add_primary_key(self, db, methods):
        """Test adding a primary key to a table without one."""
        methods.create_table_if_not_exists(db, TableDef("Codes", [
            ColumnDef("Code", LogicalType.TEXT, length=10, is_nullable=False),
            ColumnDef("Label", LogicalType.TEXT),
        ]))
        db.execute('INSERT INTO "Codes" VALUES (\'a\', \'Alpha\')')

        assert methods.create_primary_key_constraint_if_not_exists(
            db, None, "Codes", PrimaryKeyDef(["Code"])) is True
        assert methods.create_primary_key_constraint_if_not_exists(
            db, None, "Codes", PrimaryKeyDef(["Code"])) is False
        pk = methods.get_primary_key_constraint(db, None, "Codes")
        assert pk.name == "pk_Codes_Code"
        assert db.execute_scalar('SELECT "Label" FROM "Codes"') == "Alpha"

        assert methods.drop_primary_key_constraint_if_exists(db, None, "Codes") is True
        assert methods.does_primary_key_constraint_exist(db, None, "Codes") is False

    def test_add_unique_keeps_rows(self, shop, methods):
        """Test adding a unique constraint keeps the rows."""
        assert methods.create_unique_constraint_if_not_exists(shop, None, "Customers", UniqueDef(["Name"])) is True
        assert methods.does_unique_constraint_exist(shop, None, "Customers", "uc_Customers_Name")
        assert shop.execute_scalar('SELECT COUNT(*) FROM "Customers"') == 2
        assert methods.create_unique_constraint_if_not_exists(shop, None, "Customers", UniqueDef(["Name"])) is False

    def test_drop_and_rename_unique(self, shop, methods):
        """Test renaming and dropping a unique constraint."""
        assert methods.rename_unique_constraint_if_exists(
            shop, None, "Customers", "uc_Customers_Email", "uc_Customers_Mail") is True
        assert methods.get_unique_constraint(shop, None, "Customers", "uc_Customers_Mail") is not None
        assert methods.drop_unique_constraint_if_exists(shop, None, "Customers", "uc_Customers_Mail") is True
        assert methods.get_unique_constraints(shop, None, "Customers") == []

    def test_add_check(self, shop, methods):
        """Test adding a table-level check constraint."""
        check = CheckDef('"Total" < 1000', "ck_Orders_Total_Max")
        assert methods.create_check_constraint_if_not_exists(shop, None, "Orders", check) is True
        assert methods.does_check_constraint_exist(shop, None, "Orders", "ck_Orders_Total_Max")
        assert shop.execute_scalar('SELECT COUNT(*) FROM "Orders"') == 3

        from dataforge_schema.errors import DriverError
        with pytest.raises(DriverError):
            add_order(shop, 1, 5000)

    def test_unnamed_checks_take_lowest_free_number(self, shop, methods):
        """Test a synthesized check name reuses a number freed by a drop."""
        for expression in ('"Total" < 1000', '"Total" < 2000'):
            assert methods.create_check_constraint_if_not_exists(shop, None, "Orders", CheckDef(expression)) is True
        names = sorted(c.name for c in methods.get_check_constraints(shop, None, "Orders"))
        assert names == ["ck_Orders_1", "ck_Orders_2", "ck_Orders_Total"]

        assert methods.drop_check_constraint_if_exists(shop, None, "Orders", "ck_Orders_1") is True
        assert methods.create_check_constraint_if_not_exists(
            shop, None, "Orders", CheckDef('"Total" < 3000')) is True

        checks = {c.name: c.expression for c in methods.get_check_constraints(shop, None, "Orders")}
        assert sorted(checks) == ["ck_Orders_1", "ck_Orders_2", "ck_Orders_Total"]
        assert "3000" in checks["ck_Orders_1"]

    def test_drop_check(self, shop, methods):
        """Test dropping a check constraint lifts the restriction."""
        assert methods.drop_check_constraint_if_exists(shop, None, "Orders", "ck_Orders_Total") is True
        assert methods.drop_check_constraint_if_exists(shop, None, "Orders", "ck_Orders_Total") is False
        add_order(shop, 1, -5)

    def test_drop_check_on_column(self, shop, methods):
        """Test dropping the check constraint of a column."""
        assert methods.drop_check_constraint_on_column_if_exists(shop, None, "Orders", "Total") is True
        assert methods.does_check_constraint_exist_on_column(shop, None, "Orders", "Total") is False

    def test_rename_check(self, shop, methods):
        """Test renaming a check constraint."""
        assert methods.rename_check_constraint_if_exists(
            shop, None, "Orders", "ck_Orders_Total", "ck_Orders_Total_NonNegative") is True
        assert methods.get_check_constraint(shop, None, "Orders", "ck_Orders_Total") is None
        assert methods.get_check_constraint(shop, None, "Orders", "ck_Orders_Total_NonNegative") is not None

    def test_rename_onto_existing_constraint(self, shop, methods):
        """Test renaming a constraint onto a taken name fails."""
        with pytest.raises(ObjectAlreadyExistsError):
            methods.rename_check_constraint_if_exists(shop, None, "Orders", "ck_Orders_Total", "pk_Orders_Id")

    def test_default_constraints(self, shop, methods):
        """Test adding and dropping a column default."""
        default = DefaultDef("Name", "'anonymous'")
        assert methods.create_default_constraint_if_not_exists(shop, None, "Customers", default) is True
        assert methods.create_default_constraint_if_not_exists(shop, None, "Customers", default) is False
        loaded = methods.get_default_constraint_on_column(shop, None, "Customers", "Name")
        assert loaded.expression == "'anonymous'"
        assert loaded.name == "df_Customers_Name"

        assert methods.drop_default_constraint_on_column_if_exists(shop, None, "Customers", "Name") is True
        assert methods.does_default_constraint_exist_on_column(shop, None, "Customers", "Name") is False

    def test_rename_default_unsupported(self, shop, methods):
        """Test defaults cannot be renamed on SQLite."""
        with pytest.raises(UnsupportedOperationError):
            methods.rename_default_constraint_if_exists(shop, None, "Orders", "df_Orders_Total", "df_x")

    def test_foreign_keys(self, shop, methods):
        """Test dropping and re-adding a foreign key."""
        name = "fk_Orders_CustomerId_Customers_Id"
        assert methods.drop_foreign_key_constraint_if_exists(shop, None, "Orders", name) is True
        assert methods.does_foreign_key_constraint_exist(shop, None, "Orders", name) is False

        from dataforge_schema.models import ForeignKeyDef
        fk = ForeignKeyDef(["CustomerId"], "Customers", ["Id"], on_delete="cascade")
        assert methods.create_foreign_key_constraint_if_not_exists(shop, None, "Orders", fk) is True
        loaded = methods.get_foreign_key_constraint(shop, None, "Orders", name)
        assert loaded.on_delete == ForeignKeyAction.CASCADE

    def test_rebuild_with_foreign_keys_enabled(self, shop, methods):
        """Test rebuilding a referenced table keeps enforcement on and rows intact."""
        shop.execute("PRAGMA foreign_keys = ON")
        assert methods.create_unique_constraint_if_not_exists(shop, None, "Customers", UniqueDef(["Name"])) is True
        assert shop.execute_scalar("PRAGMA foreign_keys") == 1
        assert shop.execute_scalar('SELECT COUNT(*) FROM "Orders"') == 3
        assert shop.query("PRAGMA foreign_key_check") == []

    def test_rebuild_inside_caller_transaction(self, shop, methods):
        """Test a rebuild inside a caller transaction commits with it."""
        with shop.transaction() as tx:
            methods.create_unique_constraint_if_not_exists(shop, None, "Customers", UniqueDef(["Name"]), tx=tx)
        assert methods.does_unique_constraint_exist(shop, None, "Customers", "uc_Customers_Name")

    def test_rebuild_rolled_back(self, shop, methods):
        """Test a rebuild inside a rolled back transaction leaves the table unchanged."""
        with pytest.raises(RuntimeError):
            with shop.transaction() as tx:
                methods.create_unique_constraint_if_not_exists(
                    shop, None, "Customers", UniqueDef(["Name"]), tx=tx)
                raise RuntimeError("abort")
        assert not methods.does_unique_constraint_exist(shop, None, "Customers", "uc_Customers_Name")
        assert shop.execute_scalar('SELECT COUNT(*) FROM "Customers"') == 2

    def test_constraint_on_missing_table(self, db, methods):
        """Test adding a constraint to a missing table fails."""
        with pytest.raises(ObjectNotFoundError):
            methods.create_unique_constraint_if_not_exists(db, None, "Nope", UniqueDef(["A"]))

    def test_constraint_on_unknown_column(self, shop, methods):
        """Test a constraint over an unknown column is rejected."""
        with pytest.raises(ValidationError):
            methods.create_unique_constraint_if_not_exists(shop, None, "Customers", UniqueDef(["Nope"]))


class TestIndexes:
    """Test index operations."""

    def test_create_index(self, shop, methods):
        """Test creating an index with a synthesized name."""
        assert methods.create_index_if_not_exists(shop, None, "Orders", IndexDef(["CustomerId"])) is True
        assert methods.does_index_exist(shop, None, "Orders", "ix_Orders_CustomerId")
        assert methods.create_index_if_not_exists(shop, None, "Orders", IndexDef(["CustomerId"])) is False

    def test_unique_index(self, shop, methods):
        """Test creating a unique index."""
        index = IndexDef(["CustomerId", "Total"], "ux_Orders_Customer_Total", is_unique=True)
        assert methods.create_index_if_not_exists(shop, None, "Orders", index) is True
        loaded = methods.get_index(shop, None, "Orders", "ux_Orders_Customer_Total")
        assert loaded.is_unique is True
        assert loaded.column_names == ["CustomerId", "Total"]

    def test_index_on_unknown_column(self, shop, methods):
        """Test an index over a missing column is rejected before any DDL."""
        with pytest.raises(ValidationError):
            methods.create_index_if_not_exists(shop, None, "Orders", IndexDef(["Missing"]))
        assert methods.get_index_names(shop, None, "Orders") == ["ix_Orders_Status"]

    def test_descending_index_unsupported(self, shop, methods):
        """Test descending index columns are rejected."""
        with pytest.raises(UnsupportedOperationError):
            methods.create_index_if_not_exists(shop, None, "Orders", IndexDef(["Total DESC"]))

    def test_rename_and_drop_index(self, shop, methods):
        """Test renaming an index (drop and recreate) and dropping it."""
        assert methods.rename_index_if_exists(shop, None, "Orders", "ix_Orders_Status", "ix_Status") is True
        assert methods.get_index_names(shop, None, "Orders") == ["ix_Status"]
        assert methods.drop_index_if_exists(shop, None, "Orders", "ix_Status") is True
        assert methods.drop_index_if_exists(shop, None, "Orders", "ix_Status") is False


class TestViews:
    """Test view operations."""

    @pytest.fixture
    def big_orders(self):
        return ViewDef("BigOrders", 'SELECT "Id", "Total" FROM "Orders" WHERE "Total" > 100')

    def test_create_view(self, shop, methods, big_orders):
        """Test creating a view and reading it back."""
        assert methods.create_view_if_not_exists(shop, big_orders) is True
        assert methods.create_view_if_not_exists(shop, big_orders) is False

        view = methods.get_view(shop, None, "bigorders")
        assert view.name == "BigOrders"
        assert view.definition.startswith("SELECT")
        assert '"Total" > 100' in view.definition
        assert shop.execute_scalar('SELECT COUNT(*) FROM "BigOrders"') == 1

    def test_update_view(self, shop, methods, big_orders):
        """Test replacing a view definition."""
        methods.create_view_if_not_exists(shop, big_orders)
        changed = ViewDef("BigOrders", 'SELECT "Id", "Total" FROM "Orders" WHERE "Total" > 5')
        assert methods.update_view_if_exists(shop, changed) is True
        assert shop.execute_scalar('SELECT COUNT(*) FROM "BigOrders"') == 3
        assert methods.update_view_if_exists(shop, ViewDef("Nope", "SELECT 1")) is False

    def test_rename_view(self, shop, methods, big_orders):
        """Test renaming a view (recreated under the new name)."""
        methods.create_view_if_not_exists(shop, big_orders)
        assert methods.rename_view_if_exists(shop, None, "BigOrders", "LargeOrders") is True
        assert methods.get_view_names(shop) == ["LargeOrders"]
        assert methods.rename_view_if_exists(shop, None, "BigOrders", "Other") is False

    def test_drop_view(self, shop, methods, big_orders):
        """Test dropping a view."""
        methods.create_view_if_not_exists(shop, big_orders)
        assert methods.drop_view_if_exists(shop, None, "BigOrders") is True
        assert methods.drop_view_if_exists(shop, None, "BigOrders") is False

    def test_invalid_view_rejected(self, shop, methods):
        """Test a view body that is not a query is rejected."""
        with pytest.raises(ValidationError):
            methods.create_view_if_not_exists(shop, ViewDef("Bad", 'DELETE FROM "Orders"'))


class TestGenericDispatch:
    """Test the kind-dispatching operations."""

    def test_exists(self, shop, methods):
        """Test existence checks by reference."""
        assert methods.exists(shop, ObjectRef.table("Orders"))
        assert methods.exists(shop, ObjectRef.column("Orders", "Total"))
        assert methods.exists(shop, ObjectRef.index("Orders", "ix_Orders_Status"))
        assert methods.exists(shop, ObjectRef.constraint(ObjectKind.CHECK, "Orders", "ck_Orders_Total"))
        assert methods.exists(shop, ObjectRef.constraint(ObjectKind.PRIMARY_KEY, "Orders", None))
        assert not methods.exists(shop, ObjectRef.view("Orders"))

    def test_create_and_drop(self, shop, methods):
        """Test generic create and drop of table children."""
        assert methods.create_if_not_exists(shop, ColumnDef("Note", LogicalType.TEXT), "Orders") is True
        assert methods.drop_if_exists(shop, ObjectRef.column("Orders", "Note")) is True
        assert methods.drop_if_exists(
            shop, ObjectRef.constraint(ObjectKind.CHECK, "Orders", "ck_Orders_Total")) is True

    def test_child_needs_table_name(self, shop, methods):
        """Test creating a table child without its table fails."""
        with pytest.raises(ValidationError):
            methods.create_if_not_exists(shop, ColumnDef("Note", LogicalType.TEXT))

    def test_strict_create(self, db, methods):
        """Test strict create fails when the object exists."""
        methods.create(db, customers_table())
        with pytest.raises(ObjectAlreadyExistsError):
            methods.create(db, customers_table())

    def test_strict_drop(self, db, methods):
        """Test strict drop fails when the object is missing."""
        with pytest.raises(ObjectNotFoundError):
            methods.drop(db, ObjectRef.table("Nope"))

    def test_generic_rename(self, shop, methods):
        """Test rename by reference."""
        assert methods.rename_if_exists(shop, ObjectRef.column("Customers", "Email"), "Mail") is True
        assert methods.does_column_exist(shop, None, "Customers", "Mail")


class TestCancellation:
    """Test cooperative cancellation."""

    def test_cancelled_before_start(self, db, methods):
        """Test a cancelled token stops the operation before any statement."""
        token = CancellationToken()
        token.cancel()
        with pytest.raises(OperationCancelledError):
            methods.create_table_if_not_exists(db, customers_table(), cancellation=token)
        assert not methods.does_table_exist(db, None, "Customers")


class TestAsyncMethods:
    """Test the asyncio front end."""

    def test_async_create_and_introspect(self, tmp_path):
        """Test awaiting provider operations from a coroutine."""
        db = connect_sqlite(tmp_path / "async.db", check_same_thread=False)
        methods = AsyncDialectMethods.for_connection(db)

        async def scenario():
            created = await methods.create_table_if_not_exists(db, customers_table())
            table = await methods.get_table(db, None, "Customers")
            return created, table

        try:
            created, table = asyncio.run(scenario())
        finally:
            db.close()
        assert created is True
        assert table.column_names == ["Id", "Name", "Email"]

    def test_non_callables_pass_through(self, db):
        """Test attributes are returned unwrapped."""
        methods = AsyncDialectMethods.for_connection(db)
        assert methods.family == "sqlite"
        assert methods.supports_schemas is False
