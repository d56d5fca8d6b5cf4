"""Reporter lines print user supplied text verbatim."""

import pytest


@pytest.mark.parametrize("method", ["succeed", "success", "info", "warning", "error", "log"])
def test_brackets_are_not_markup(reporter, output, method):
    getattr(reporter, method)("Account '[bold]ops[/bold]' saved to ./keys/[red].json")
    assert "Account '[bold]ops[/bold]' saved to ./keys/[red].json" in output()


def test_fail_prints_message_and_error(reporter, output):
    reporter.fail("Failed to import account", ValueError("bad value [x]"))
    lines = output().splitlines()
    assert lines[0] == "✖ Failed to import account"
    assert lines[1] == "bad value [x]"


def test_fail_skips_error_equal_to_message(reporter, output):
    reporter.fail("Insufficient balance", "Insufficient balance")
    assert output().count("Insufficient balance") == 1


def test_table_cells_are_literal(reporter, output):
    reporter.table(["Name", "Moniker"], [["v1", "[green]node[/green]"]])
    assert "[green]node[/green]" in output()
