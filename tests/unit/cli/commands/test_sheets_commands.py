"""Unit tests for the setup-sheets and health commands."""

import pytest
from click.testing import CliRunner

from invoicing.cli.commands.sheets import health, setup_sheets
from invoicing.services.error_classifier import PermissionDeniedError


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def obj(request_context, test_config):
    return {"context": request_context, "config": test_config}


def _drop_tab(fake_sheets, name):
    del fake_sheets.tabs[name]
    del fake_sheets.sheet_ids[name]


class TestSetupSheets:
    def test_existing_spreadsheet_is_untouched(self, runner, obj):
        result = runner.invoke(setup_sheets, [], obj=obj)

        assert result.exit_code == 0
        assert "All tabs already exist" in result.output

    def test_creates_missing_tab(self, runner, obj, fake_sheets):
        _drop_tab(fake_sheets, "Payments")

        result = runner.invoke(setup_sheets, [], obj=obj)

        assert result.exit_code == 0
        assert "Created 1 tab(s): Payments" in result.output
        assert fake_sheets.tabs["Payments"][0][0] == "id"


class TestHealth:
    def test_healthy(self, runner, obj):
        result = runner.invoke(health, [], obj=obj)

        assert result.exit_code == 0
        assert "Spreadsheet test-spreadsheet-id is healthy" in result.output
        assert "total calls" in result.output

    def test_missing_tab_fails(self, runner, obj, fake_sheets):
        _drop_tab(fake_sheets, "Templates")

        result = runner.invoke(health, [], obj=obj)

        assert result.exit_code == 1
        assert "Missing tabs: Templates; run setup-sheets" in result.output

    def test_unreachable_spreadsheet(self, runner, obj, fake_sheets, monkeypatch):
        def denied(spreadsheet_id):
            raise PermissionDeniedError("The caller does not have permission")

        monkeypatch.setattr(fake_sheets, "get_sheet_ids", denied)

        result = runner.invoke(health, [], obj=obj)

        assert result.exit_code == 1
        assert "Spreadsheet unreachable: The caller does not have permission" in result.output
