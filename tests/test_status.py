from nft_ticketing.models import Ticket, ticket_status
from nft_ticketing.types import TicketStatus

NOW = 1_760_000_000


def ticket(checked_in=False, event_date=NOW + 3600):
    return Ticket(
        token_id=1, owner="0x" + "a1" * 20, content_locator="ipfs://Qm1", event_id=1,
        seat="A-1", sector="VIP", event_date=event_date, checked_in=checked_in
    )


class TestTicketStatus:

    def test_future_event_is_valid(self):
        assert ticket_status(ticket(), now=NOW) == TicketStatus.VALID

    def test_past_event_is_expired(self):
        assert ticket_status(ticket(event_date=NOW - 1), now=NOW) == TicketStatus.EXPIRED

    def test_event_starting_now_is_valid(self):
        assert ticket_status(ticket(event_date=NOW), now=NOW) == TicketStatus.VALID

    def test_checked_in_wins_over_date(self):
        assert ticket_status(ticket(checked_in=True), now=NOW) == TicketStatus.CHECKED_IN
        assert ticket_status(ticket(checked_in=True, event_date=NOW - 1), now=NOW) == TicketStatus.CHECKED_IN

    def test_status_property_uses_clock(self):
        assert ticket(event_date=0).status == TicketStatus.EXPIRED
