"""End-to-end tests for the command line interface."""

import pytest
from ledgerly.cli.main import cli


@pytest.fixture
def invoke(cli_runner, temp_db):
    """Invoke the CLI against the temporary database."""

    def _invoke(*args, **kwargs):
        return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args], **kwargs)

    return _invoke


@pytest.fixture
def accounts(invoke):
    assert invoke("account", "create", "Checking", "--initial-balance", "1000").exit_code == 0
    result = invoke(
        "account", "create", "Visa", "--kind", "credit", "--bill-day", "20", "--pay-day", "10"
    )
    assert result.exit_code == 0


def test_help_does_not_touch_database(cli_runner, tmp_path):
    db_path = tmp_path / "unused.db"
    result = cli_runner.invoke(cli, ["--db-path", str(db_path), "--help"])

    assert result.exit_code == 0
    assert "plan" in result.output
    assert not db_path.exists()


def test_add_and_list_entries(invoke, accounts):
    result = invoke(
        "add", "--account", "Checking", "--kind", "income", "--date", "2020-03-03",
        "--amount", "500", "--category", "Salary",
    )
    assert result.exit_code == 0
    assert "Added income entry" in result.output

    result = invoke(
        "add", "--account", "Checking", "--kind", "transfer", "--to-account", "Visa",
        "--date", "2020-03-04", "--amount", "100",
    )
    assert result.exit_code == 0

    result = invoke("entry", "list", "--account", "Visa")
    assert result.exit_code == 0
    assert "Found 1 entry" in result.output
    assert "-> Visa" in result.output


def test_add_rejects_bad_input(invoke, accounts):
    result = invoke("add", "--account", "Checking", "--date", "2020-03-03", "--amount", "abc")
    assert result.exit_code == 1
    assert "Invalid amount" in result.output

    result = invoke("add", "--account", "Nowhere", "--date", "2020-03-03", "--amount", "1")
    assert result.exit_code == 1
    assert "not found" in result.output

    result = invoke("add", "--account", "Checking", "--kind", "transfer", "--date", "2020-03-03", "--amount", "1")
    assert result.exit_code == 1
    assert "receiving account" in result.output


def test_entry_delete(invoke, accounts):
    invoke("add", "--account", "Checking", "--date", "2020-03-03", "--amount", "5")

    result = invoke("entry", "delete", "1", "--yes")
    assert result.exit_code == 0
    assert "Deleted entry 1" in result.output

    result = invoke("entry", "delete", "1", "--yes")
    assert result.exit_code == 1


def test_plan_lifecycle(invoke, accounts):
    result = invoke(
        "plan", "create", "Laptop", "--kind", "installment", "--amount", "100", "--periods", "3",
        "--start-date", "2020-01-05", "--account", "Visa", "--category", "Electronics",
    )
    assert result.exit_code == 0
    assert "Created plan 'Laptop' (ID: 1)" in result.output
    assert "Generated 3 entries" in result.output

    result = invoke("plan", "generate")
    assert result.exit_code == 0
    assert "Generated 0 entries" in result.output

    result = invoke("plan", "show", "1")
    assert result.exit_code == 0
    assert "3 paid, 0 scheduled, 3 total" in result.output

    result = invoke("plan", "extend", "1")
    assert result.exit_code == 1
    assert "Only recurring plans" in result.output

    result = invoke("plan", "list")
    assert "Laptop" in result.output

    result = invoke("plan", "delete", "1", "--yes")
    assert result.exit_code == 0
    assert "Removed 0 scheduled, kept 3 entries" in result.output


def test_recurring_plan_pause_resume_extend(invoke, accounts):
    result = invoke(
        "plan", "create", "Gym", "--kind", "recurring", "--amount", "30", "--periods", "2",
        "--start-date", "2020-01-01", "--account", "Checking", "--category", "Health",
    )
    assert result.exit_code == 0

    assert invoke("plan", "pause", "1").exit_code == 0
    assert "paused" in invoke("plan", "list").output
    assert invoke("plan", "resume", "1").exit_code == 0

    result = invoke("plan", "extend", "1")
    assert result.exit_code == 0
    assert "to 14 periods" in result.output
    assert "Generated 12 entries" in result.output


def test_plan_confirm_unknown_entry(invoke, accounts):
    invoke(
        "plan", "create", "Gym", "--kind", "recurring", "--amount", "30", "--periods", "2",
        "--start-date", "2020-01-01", "--account", "Checking", "--category", "Health",
    )
    result = invoke("plan", "confirm", "1", "99")
    assert result.exit_code == 1
    assert "Entry 99 not found in plan 1" in result.output


def test_plan_period_maintenance(invoke, accounts):
    invoke(
        "plan", "create", "Gym", "--kind", "recurring", "--amount", "30", "--periods", "2",
        "--start-date", "2020-01-01", "--account", "Checking", "--category", "Health",
    )

    result = invoke("plan", "add-period", "1", "--amount", "35")
    assert result.exit_code == 0
    assert "Added period #2 (entry 3) on 2020-03-01" in result.output

    result = invoke("plan", "update-entry", "1", "3", "--date", "2020-03-15")
    assert result.exit_code == 0
    assert "Updated entry 3: 2020-03-15 | 35.00" in result.output

    result = invoke("plan", "update", "1", "--name", "Fitness", "--category", "Sport")
    assert result.exit_code == 0
    assert "Updated plan 'Fitness' (ID: 1)" in result.output

    result = invoke("plan", "delete-entry", "1", "3", "--yes")
    assert result.exit_code == 0
    assert "Deleted entry 3" in result.output

    result = invoke("plan", "show", "1")
    assert "2 paid, 0 scheduled, 3 total" in result.output

    result = invoke("plan", "update-entry", "1", "3", "--amount", "1")
    assert result.exit_code == 1
    assert "Entry 3 not found in plan 1" in result.output


def test_statement_workflow(invoke, accounts):
    invoke("add", "--account", "Visa", "--date", "2020-03-05", "--amount", "100", "--category", "Food")
    invoke("add", "--account", "Visa", "--date", "2020-03-10", "--amount", "300", "--category", "Travel")

    result = invoke("statement", "periods", "Visa")
    assert result.exit_code == 0
    assert "2020-02-21 .. 2020-03-20" in result.output
    assert "400.00" in result.output

    result = invoke(
        "statement", "save", "Visa", "--start", "2020-02-21", "--end", "2020-03-20",
        "--confirm", "1", "--defer", "2",
    )
    assert result.exit_code == 0
    assert "Confirmed total: 100.00" in result.output
    assert "Due date: 2020-04-10" in result.output
    assert "Status: confirmed" in result.output

    result = invoke("statement", "periods", "Visa")
    assert "2020-03-21 .. 2020-04-20" in result.output

    result = invoke("statement", "update", "1", "--amount", "110", "--status", "paid")
    assert result.exit_code == 0
    assert "Difference to confirmed entries: 10.00" in result.output

    result = invoke("statement", "list", "--account", "Visa")
    assert result.exit_code == 0
    assert "diff 10.00" in result.output


def test_statement_entries_and_bind(invoke, accounts):
    invoke("add", "--account", "Visa", "--date", "2020-03-05", "--amount", "100", "--category", "Food")
    invoke("add", "--account", "Visa", "--date", "2020-03-10", "--amount", "300", "--category", "Travel")
    invoke("statement", "save", "Visa", "--start", "2020-02-21", "--end", "2020-03-20", "--confirm", "1")

    result = invoke("statement", "entries", "1")
    assert result.exit_code == 0
    assert "Confirmed total: 100.00" in result.output
    assert "Candidates:" in result.output
    assert "300.00" in result.output

    result = invoke("statement", "bind", "1", "--add", "2", "--remove", "1")
    assert result.exit_code == 0
    assert "Confirmed total: 300.00" in result.output
    assert "Difference: -200.00" in result.output

    result = invoke("statement", "bind", "9", "--add", "1")
    assert result.exit_code == 1
    assert "Statement 9 not found" in result.output


def test_statement_periods_requires_credit_account(invoke, accounts):
    result = invoke("statement", "periods", "Checking")
    assert result.exit_code == 1
    assert "Credit card" in result.output


def test_cashflow_report(invoke, accounts):
    invoke("add", "--account", "Checking", "--kind", "income", "--date", "2020-03-03", "--amount", "500")
    invoke("add", "--account", "Checking", "--date", "2020-03-10", "--amount", "200", "--category", "Food")

    result = invoke("report", "cashflow", "--year", "2020", "--month", "3", "--daily", "--details")
    assert result.exit_code == 0
    assert "Opening balance: 1,000.00" in result.output
    assert "Closing balance: 1,300.00" in result.output
    assert "Net:             300.00 (ok)" in result.output
    assert "2020-03-31" in result.output

    result = invoke("report", "cashflow", "--year", "2020", "--month", "13")
    assert result.exit_code == 1
    assert "Month must be between 1 and 12" in result.output
