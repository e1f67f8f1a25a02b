import json

import pytest
from click.testing import CliRunner

from nft_ticketing.cli.main import cli
from nft_ticketing.config import TicketingSettings

from fakes import FakeLedger, FakePublisher, OTHER, OWNER, TX_HASH, make_resolver, json_response, metadata_payload


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def settings():
    return TicketingSettings(contract_address="0x" + "c3" * 20, deployment_block=0)


@pytest.fixture
def obj(settings):
    ledger = FakeLedger()
    return {
        "settings": settings,
        "ledger": ledger,
        "resolver": make_resolver(lambda request: json_response(metadata_payload())),
        "publisher": FakePublisher(),
        "sender": OWNER,
    }


class TestTicketsCommands:

    def test_list(self, runner, obj):
        obj["ledger"].add_ticket(1)
        obj["ledger"].add_ticket(12)

        result = runner.invoke(cli, ["tickets", "list", OWNER], obj=obj)

        assert result.exit_code == 0, result.output
        lines = [line for line in result.stdout.splitlines() if line.startswith("#")]
        assert lines[0].startswith("#0012")
        assert lines[1].startswith("#0001")
        assert "[valid]" in lines[0]
        assert "2 ticket(s)." in result.output

    def test_list_json(self, runner, obj):
        obj["ledger"].add_ticket(5, checked_in=True)

        result = runner.invoke(cli, ["tickets", "list", OWNER, "--json"], obj=obj)

        assert result.exit_code == 0, result.output
        tickets = json.loads(result.stdout)
        assert tickets[0]["token_id"] == 5
        assert tickets[0]["status"] == "checked-in"
        assert tickets[0]["metadata"]["name"] == metadata_payload()["name"]

    def test_list_empty(self, runner, obj):
        result = runner.invoke(cli, ["tickets", "list", OWNER], obj=obj)
        assert "No tickets found." in result.output

    def test_list_ledger_failure(self, runner, obj):
        obj["ledger"].log_error = RuntimeError("rpc down")

        result = runner.invoke(cli, ["tickets", "list", OWNER], obj=obj)

        assert result.exit_code == 1
        assert "rpc down" in result.output

    def test_transfer(self, runner, obj):
        result = runner.invoke(cli, ["tickets", "transfer", "5", OTHER], obj=obj)

        assert result.exit_code == 0, result.output
        assert "[x] Validating transfer: Address validated" in result.output
        assert f"Transaction: {TX_HASH}" in result.output
        assert obj["ledger"].transfers[0][2] == 5

    def test_transfer_to_self_fails(self, runner, obj):
        result = runner.invoke(cli, ["tickets", "transfer", "5", OWNER], obj=obj)

        assert result.exit_code == 1
        assert "Failed at step 'validate'" in result.output
        assert "[!] Validating transfer" in result.output

    def test_issue(self, runner, obj):
        result = runner.invoke(cli, [
            "tickets", "issue",
            "--recipient", OTHER,
            "--event-name", "Rock Festival",
            "--seat", "A-42",
            "--section", "VIP",
            "--date", "2025-12-31",
            "--image", "ipfs://QmArtwork",
            "--event-id", "9",
        ], obj=obj)

        assert result.exit_code == 0, result.output
        assert "Token: #0007" in result.output
        assert "Metadata: ipfs://bafymetadata123" in result.output
        assert obj["ledger"].minted[0][1] == 9
        assert obj["publisher"].closed


class TestMetadataCommands:

    def test_generate(self, runner, obj):
        result = runner.invoke(cli, [
            "metadata", "generate",
            "--event-name", "Rock Festival",
            "--seat", "A-42",
            "--section", "Pista Premium",
            "--date", "2025-12-31",
            "--image", "ipfs://Qm1",
            "--compact",
        ], obj=obj)

        assert result.exit_code == 0, result.output
        document = json.loads(result.stdout)
        assert document["name"] == "NFT Ticket - Rock Festival - Seat A-42"
        assert len(document["attributes"]) == 5

    def test_validate_valid_file(self, runner, obj, tmp_path):
        path = tmp_path / "metadata.json"
        path.write_text(json.dumps(metadata_payload(image="http://example.com/a.png")))

        result = runner.invoke(cli, ["metadata", "validate", str(path)], obj=obj)

        assert result.exit_code == 0, result.output
        assert "WARNING: Image URL uses HTTP" in result.output
        assert "Metadata is valid (1 warning(s))." in result.output

    def test_validate_invalid_file(self, runner, obj, tmp_path):
        path = tmp_path / "metadata.json"
        path.write_text(json.dumps({"name": "Only a name"}))

        result = runner.invoke(cli, ["metadata", "validate", str(path)], obj=obj)

        assert result.exit_code == 1
        assert "ERROR: Field 'image' is required and must be a string" in result.output
