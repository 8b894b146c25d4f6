"""Tests for the Lunch Flow -> Actual Budget transaction mapper."""

import hashlib
from datetime import date
from decimal import Decimal

import pytest

from actual_flow.schemas.mapping import AccountMappingBase
from actual_flow.services.transaction_mapper import TransactionMapper
from conftest import make_lf_transaction


@pytest.fixture
def mapper(mappings):
    return TransactionMapper(mappings)


class TestAccountMapping:
    """Mapping completeness and exclusion."""

    def test_maps_each_transaction_of_a_mapped_account(self, mapper):
        transactions = [
            make_lf_transaction(id="1", accountId=101),
            make_lf_transaction(id="2", accountId=202),
            make_lf_transaction(id="3", accountId=101),
        ]

        result = mapper.map_transactions(transactions)

        assert len(result) == 3
        assert [tx.account for tx in result] == ["acct-checking", "acct-amex", "acct-checking"]
        assert [tx.imported_id for tx in result] == ["lf-101-1", "lf-202-2", "lf-101-3"]

    def test_unmapped_accounts_are_dropped(self, mapper):
        transactions = [
            make_lf_transaction(id="1", accountId=101),
            make_lf_transaction(id="2", accountId=999),
        ]

        result = mapper.map_transactions(transactions)

        assert len(result) == 1
        assert result[0].imported_id == "lf-101-1"

    def test_skipped_records_are_reported(self, mapper):
        unmapped = make_lf_transaction(id="2", accountId=999)

        result = mapper.map_transactions_with_skipped(
            [make_lf_transaction(id="1", accountId=101), unmapped]
        )

        assert len(result.transactions) == 1
        assert result.skipped == [unmapped]

    def test_no_mappings_maps_nothing(self):
        mapper = TransactionMapper([])

        assert mapper.map_transactions([make_lf_transaction()]) == []

    def test_mapping_without_destination_account_is_ignored(self):
        mapper = TransactionMapper([
            AccountMappingBase(lunch_flow_account_id=101, actual_budget_account_id="")
        ])

        assert mapper.map_transaction(make_lf_transaction()) is None

    def test_first_mapping_wins_for_repeated_source_account(self):
        mapper = TransactionMapper([
            AccountMappingBase(lunch_flow_account_id=101, actual_budget_account_id="first"),
            AccountMappingBase(lunch_flow_account_id=101, actual_budget_account_id="second"),
        ])

        assert mapper.map_transaction(make_lf_transaction()).account == "first"


class TestAmounts:
    """Conversion to Actual's integer cents."""

    @pytest.mark.parametrize("amount,expected", [
        ("-42.50", -4250),
        ("1234.56", 123456),
        ("0", 0),
        ("0.125", 12),
        ("0.135", 14),
        ("-0.125", -12),
    ])
    def test_to_minor_units(self, amount, expected):
        assert TransactionMapper.to_minor_units(Decimal(amount)) == expected

    def test_float_amounts_are_converted_through_str(self):
        assert TransactionMapper.to_minor_units(19.99) == 1999

    def test_amount_beyond_decimal_precision_is_skipped(self, mapper):
        huge = make_lf_transaction(id="2", amount="1e30")

        result = mapper.map_transactions_with_skipped([make_lf_transaction(id="1"), huge])

        assert [tx.imported_id for tx in result.transactions] == ["lf-101-1"]
        assert result.skipped == [huge]

    def test_sign_is_preserved(self, mapper):
        outflow = mapper.map_transaction(make_lf_transaction(amount="-10.00"))
        inflow = mapper.map_transaction(make_lf_transaction(amount="10.00"))

        assert outflow.amount == -1000
        assert inflow.amount == 1000


class TestPayees:
    """Payee derivation."""

    def test_payee_name_is_cleaned_and_imported_payee_kept_verbatim(self, mapper):
        tx = mapper.map_transaction(make_lf_transaction(merchant="  Whole   Foods \t#123 "))

        assert tx.payee_name == "Whole Foods #123"
        assert tx.imported_payee == "  Whole   Foods \t#123 "

    def test_blank_merchant_falls_back_to_description(self, mapper):
        tx = mapper.map_transaction(make_lf_transaction(merchant=" ", description="ATM  WITHDRAWAL"))

        assert tx.payee_name == "ATM WITHDRAWAL"
        assert tx.imported_payee == "ATM  WITHDRAWAL"

    def test_description_becomes_notes(self, mapper):
        tx = mapper.map_transaction(make_lf_transaction(description="Card purchase"))

        assert tx.notes == "Card purchase"

    def test_empty_description_leaves_notes_unset(self, mapper):
        tx = mapper.map_transaction(make_lf_transaction(description=""))

        assert tx.notes is None


class TestImportedId:
    """Deterministic imported ids."""

    def test_settled_transaction_uses_source_id(self):
        tx = make_lf_transaction(id="abc", accountId=101)

        assert TransactionMapper.generate_imported_id(tx) == "lf-101-abc"

    def test_pending_transaction_without_id_uses_hash(self):
        tx = make_lf_transaction(id=None, accountId=202, date="2024-03-05",
                                 amount="-7.25", merchant="Uber Eats", isPending=True)
        digest = hashlib.sha256(b"2024-03-05:-725:Uber Eats").hexdigest()[:32]

        assert TransactionMapper.generate_imported_id(tx) == f"lf-202-pending-{digest}"

    def test_pending_and_settled_versions_are_distinct(self):
        pending = make_lf_transaction(id=None, isPending=True)
        settled = make_lf_transaction(id="tx-9")

        assert TransactionMapper.generate_imported_id(pending) != TransactionMapper.generate_imported_id(settled)

    def test_mapping_twice_is_identical(self, mappings):
        tx = make_lf_transaction(id=None, isPending=True, merchant="  Corner   Shop ")

        first = TransactionMapper(mappings).map_transaction(tx)
        second = TransactionMapper(mappings).map_transaction(tx)

        assert first.imported_id == second.imported_id
        assert first.payee_name == second.payee_name
        assert first.model_dump() == second.model_dump()


class TestPendingStatus:
    """Cleared flag and pending annotation."""

    def test_posted_transaction_is_cleared(self, mapper):
        tx = mapper.map_transaction(make_lf_transaction(isPending=False))

        assert tx.cleared is True
        assert tx.is_pending is False

    def test_pending_transaction_is_not_cleared(self, mapper):
        tx = mapper.map_transaction(make_lf_transaction(id=None, isPending=True))

        assert tx.cleared is False
        assert tx.is_pending is True

    def test_missing_pending_flag_means_settled(self, mapper):
        tx = mapper.map_transaction(make_lf_transaction(isPending=None))

        assert tx.cleared is True


class TestImportPayload:
    """Stripping run annotations before import."""

    def test_payload_drops_transient_fields(self, mapper):
        tx = mapper.map_transaction(make_lf_transaction(id=None, isPending=True))
        tx.is_duplicate = True
        tx.duplicate_of = "ab-1"

        payload = tx.to_import_payload()

        assert "is_duplicate" not in payload
        assert "duplicate_of" not in payload
        assert "is_pending" not in payload
        assert "id" not in payload

    def test_payload_keeps_core_fields(self, mapper):
        tx = mapper.map_transaction(make_lf_transaction(id="c-1", date="2024-03-01", amount="-42.50"))

        payload = tx.to_import_payload()

        assert payload["date"] == "2024-03-01"
        assert payload["amount"] == -4250
        assert payload["account"] == "acct-checking"
        assert payload["imported_id"] == "lf-101-c-1"
        assert tx.date == date(2024, 3, 1)
        assert tx.amount == -4250


class TestSourceParsing:
    """Lunch Flow payload quirks."""

    def test_timestamp_dates_are_truncated(self):
        tx = make_lf_transaction(date="2024-03-01T13:45:00Z")

        assert tx.date == date(2024, 3, 1)

    def test_numeric_ids_become_strings(self):
        tx = make_lf_transaction(id=12345)

        assert tx.id == "12345"

    def test_null_text_fields_become_empty(self):
        tx = make_lf_transaction(merchant=None, description=None)

        assert tx.merchant == ""
        assert tx.description == ""
