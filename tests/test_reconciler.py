import pytest

from nft_ticketing.models import TransferLog
from nft_ticketing.reconciler import OwnershipReconciler, candidate_token_ids
from nft_ticketing.types import InvalidAddress, LedgerReadFailure, TicketStatus

from fakes import OTHER, OWNER, make_resolver, json_response, metadata_payload


class TestCandidateTokenIds:

    def test_dedupes_in_first_seen_order(self):
        logs = [TransferLog(token_id=i, to_address=OWNER) for i in (3, 1, 3, 2, 1)]
        assert candidate_token_ids(logs) == [3, 1, 2]

    def test_skips_entries_without_token_id(self):
        logs = [TransferLog(token_id=None, to_address=OWNER), TransferLog(token_id=5, to_address=OWNER)]
        assert candidate_token_ids(logs) == [5]


class TestOwnershipReconciler:
    """Reconciliation against the fake ledger"""

    @pytest.mark.asyncio
    async def test_returns_unique_tokens_still_owned(self, ledger, ok_resolver):
        for token_id in (1, 2, 3, 4):
            ledger.add_ticket(token_id)
        ledger.add_ticket(5, owner=OTHER)
        # Repeated transfers of tokens already seen
        ledger.logs.append(TransferLog(token_id=2, to_address=OWNER))
        ledger.logs.append(TransferLog(token_id=5, to_address=OWNER))
        ledger.logs.append(TransferLog(token_id=None, to_address=OWNER))

        tickets = await OwnershipReconciler(ledger, ok_resolver).reconcile(OWNER)

        # 8 logs, 5 unique ids, 1 owned elsewhere
        assert len(ledger.logs) == 8
        assert [t.token_id for t in tickets] == [4, 3, 2, 1]

    @pytest.mark.asyncio
    async def test_sorted_newest_first(self, ledger, ok_resolver):
        for token_id in (2, 10, 7):
            ledger.add_ticket(token_id)

        tickets = await OwnershipReconciler(ledger, ok_resolver).reconcile(OWNER)

        assert [t.token_id for t in tickets] == [10, 7, 2]

    @pytest.mark.asyncio
    async def test_ticket_fields_and_metadata(self, ledger, ok_resolver):
        ledger.add_ticket(1, checked_in=True, uri="ipfs://QmFirst")

        ticket, = await OwnershipReconciler(ledger, ok_resolver).reconcile(OWNER)

        assert ticket.owner == OWNER
        assert ticket.content_locator == "ipfs://QmFirst"
        assert ticket.seat == "A-1"
        assert ticket.sector == "VIP"
        assert ticket.metadata.name == metadata_payload()["name"]
        assert ticket.status == TicketStatus.CHECKED_IN

    @pytest.mark.asyncio
    async def test_owner_comparison_ignores_case(self, ledger, ok_resolver):
        ledger.add_ticket(1, owner=OWNER.upper().replace("0X", "0x"))

        tickets = await OwnershipReconciler(ledger, ok_resolver).reconcile(OWNER)

        assert len(tickets) == 1

    @pytest.mark.asyncio
    async def test_candidate_read_failure_drops_only_that_token(self, ledger, ok_resolver):
        for token_id in (1, 2, 3):
            ledger.add_ticket(token_id)
        ledger.failing_tokens.add(2)

        tickets = await OwnershipReconciler(ledger, ok_resolver).reconcile(OWNER)

        assert [t.token_id for t in tickets] == [3, 1]

    @pytest.mark.asyncio
    async def test_unreachable_metadata_becomes_placeholder(self, ledger, down_resolver):
        ledger.add_ticket(3)

        ticket, = await OwnershipReconciler(ledger, down_resolver).reconcile(OWNER)

        assert ticket.metadata.name == "Ticket #3"

    @pytest.mark.asyncio
    async def test_ticket_listed_when_metadata_image_is_malformed(self, ledger):
        ledger.add_ticket(4)
        resolver = make_resolver(lambda request: json_response(metadata_payload(image="https://[gateway")))

        ticket, = await OwnershipReconciler(ledger, resolver).reconcile(OWNER)

        assert ticket.token_id == 4
        assert ticket.metadata.name == metadata_payload()["name"]
        assert ticket.metadata.image == "https://[gateway"

    @pytest.mark.asyncio
    async def test_log_query_failure_is_fatal(self, ledger, ok_resolver):
        ledger.log_error = RuntimeError("rpc down")

        with pytest.raises(LedgerReadFailure, match="rpc down"):
            await OwnershipReconciler(ledger, ok_resolver).reconcile(OWNER)

    @pytest.mark.asyncio
    async def test_queries_from_deployment_block(self, ledger, ok_resolver):
        await OwnershipReconciler(ledger, ok_resolver, deployment_block=27983078).reconcile(OWNER)

        to_address, from_block = ledger.log_queries[0]
        assert to_address.lower() == OWNER
        assert from_block == 27983078

    @pytest.mark.asyncio
    async def test_no_logs(self, ledger, ok_resolver):
        assert await OwnershipReconciler(ledger, ok_resolver).reconcile(OWNER) == []

    @pytest.mark.asyncio
    async def test_invalid_owner_address(self, ledger, ok_resolver):
        with pytest.raises(InvalidAddress):
            await OwnershipReconciler(ledger, ok_resolver).reconcile("0x1234")

    @pytest.mark.asyncio
    async def test_each_ticket_resolved_once(self, ledger):
        requests = []

        def handler(request):
            requests.append(str(request.url))
            return json_response(metadata_payload())

        for token_id in (1, 2):
            ledger.add_ticket(token_id)
        ledger.logs.append(TransferLog(token_id=1, to_address=OWNER))

        await OwnershipReconciler(ledger, make_resolver(handler)).reconcile(OWNER)

        assert sorted(requests) == ["https://gw1.test/ipfs/Qm1", "https://gw1.test/ipfs/Qm2"]
