"""Tests 51-62: ABI event decoding and identifier catalogs."""

from __future__ import annotations

import pytest

from intent_watch.chain.abi import ESCROW_EVENTS, ORCHESTRATOR_EVENTS
from intent_watch.chain.catalog import currency_code, platform_name, supported_currencies
from intent_watch.chain.decoder import AbiEventDecoder, parse_event_signature

from tests.factories import (
    EUR,
    OWNER,
    RECIPIENT,
    REVOLUT_METHOD,
    REVOLUT_VERIFIER,
    intent_hash,
    make_raw_log,
    tx_hash,
)


def signature(catalog: list[str], name: str) -> str:
    return next(s for s in catalog if s.startswith(name + "("))


@pytest.fixture
def escrow_decoder():
    return AbiEventDecoder(ESCROW_EVENTS)


@pytest.fixture
def orchestrator_decoder():
    return AbiEventDecoder(ORCHESTRATOR_EVENTS)


# ── Test 51: Signature parsing ───────────────────────────────────


def test_parse_event_signature():
    spec = parse_event_signature(signature(ESCROW_EVENTS, "DepositReceived"))

    assert spec.name == "DepositReceived"
    assert spec.signature == (
        "DepositReceived(uint256,address,address,uint256,(uint256,uint256))"
    )
    assert [i.indexed for i in spec.inputs] == [True, True, True, False, False]
    assert spec.inputs[4].name == "intentAmountRange"
    assert spec.topic.startswith("0x") and len(spec.topic) == 66


def test_parse_unnamed_parameters():
    spec = parse_event_signature("event Transfer(address indexed, address indexed, uint256)")

    assert spec.name == "Transfer"
    assert [i.name for i in spec.inputs] == ["arg0", "arg1", "arg2"]
    assert spec.topic == "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"


def test_decoder_lists_events(escrow_decoder):
    assert "IntentFulfilled" in escrow_decoder.event_names
    assert escrow_decoder.topic_for("IntentPruned") is not None
    assert escrow_decoder.topic_for("NoSuchEvent") is None


# ── Test 52: Escrow events ───────────────────────────────────────


def test_decode_escrow_fulfilled(escrow_decoder):
    raw = make_raw_log(signature(ESCROW_EVENTS, "IntentFulfilled"), {
        "intentHash": intent_hash(0xA),
        "depositId": 42,
        "verifier": REVOLUT_VERIFIER,
        "owner": OWNER,
        "to": RECIPIENT,
        "amount": 100_000_000,
        "sustainabilityFee": 1_000,
        "verifierFee": 2_000,
    }, transaction_hash=tx_hash(3).upper().replace("0X", "0x"))

    event = escrow_decoder.decode(raw, "escrow", received_at=12.5)

    assert event is not None
    assert event.event_name == "IntentFulfilled"
    assert event.contract_id == "escrow"
    assert event.transaction_hash == tx_hash(3)
    assert event.block_number == 0x1A2B
    assert event.received_at == 12.5
    assert event.get("intentHash") == intent_hash(0xA)
    assert event.get("depositId") == 42
    assert event.get("verifier") == REVOLUT_VERIFIER
    assert event.get("owner") == OWNER
    assert event.get("amount") == 100_000_000
    assert event.get("verifierFee") == 2_000


def test_decode_indexed_currency(escrow_decoder):
    raw = make_raw_log(signature(ESCROW_EVENTS, "DepositCurrencyAdded"), {
        "depositId": 7,
        "verifier": REVOLUT_VERIFIER,
        "currency": EUR,
        "conversionRate": 95 * 10 ** 16,
    })

    event = escrow_decoder.decode(raw, "escrow")

    assert event.get("currency") == EUR
    assert event.get("conversionRate") == 95 * 10 ** 16


def test_decode_tuple_field(escrow_decoder):
    raw = make_raw_log(signature(ESCROW_EVENTS, "DepositReceived"), {
        "depositId": 7,
        "depositor": OWNER,
        "token": RECIPIENT,
        "amount": 250_000_000,
        "intentAmountRange": (1_000_000, 50_000_000),
    })

    event = escrow_decoder.decode(raw, "escrow")

    assert event.get("amount") == 250_000_000
    assert event.get("intentAmountRange") == (1_000_000, 50_000_000)


# ── Test 53: Orchestrator events ─────────────────────────────────


def test_decode_orchestrator_signaled(orchestrator_decoder):
    raw = make_raw_log(signature(ORCHESTRATOR_EVENTS, "IntentSignaled"), {
        "intentHash": intent_hash(0xB),
        "escrow": "0xca38607d85e8f6294dc10728669605e6664c2d70",
        "depositId": 9,
        "paymentMethod": REVOLUT_METHOD,
        "owner": OWNER,
        "to": RECIPIENT,
        "amount": 10_000_000,
        "fiatCurrency": EUR,
        "conversionRate": 10 ** 18,
        "timestamp": 1_700_000_000,
    })

    event = orchestrator_decoder.decode(raw, "orchestrator")

    assert event.event_name == "IntentSignaled"
    assert event.get("paymentMethod") == REVOLUT_METHOD
    assert event.get("fiatCurrency") == EUR
    assert event.get("depositId") == 9


def test_decode_orchestrator_pruned(orchestrator_decoder):
    raw = make_raw_log(signature(ORCHESTRATOR_EVENTS, "IntentPruned"), {
        "intentHash": intent_hash(0xC),
    })

    event = orchestrator_decoder.decode(raw, "orchestrator")

    assert event.fields == {"intentHash": intent_hash(0xC)}


# ── Test 54: Unknown and malformed logs ──────────────────────────


def test_unknown_topic_ignored(escrow_decoder):
    raw = make_raw_log("Transfer(address indexed from, address indexed to, uint256 value)", {
        "from": OWNER, "to": RECIPIENT, "value": 1,
    })
    assert escrow_decoder.decode(raw, "escrow") is None
    assert escrow_decoder.decode({"topics": []}, "escrow") is None


def test_orchestrator_decoder_ignores_escrow_layout(orchestrator_decoder):
    raw = make_raw_log(signature(ESCROW_EVENTS, "IntentPruned"), {
        "intentHash": intent_hash(1), "depositId": 1,
    })
    assert orchestrator_decoder.decode(raw, "orchestrator") is None


def test_truncated_data_returns_none(escrow_decoder):
    raw = make_raw_log(signature(ESCROW_EVENTS, "DepositWithdrawn"), {
        "depositId": 7, "depositor": OWNER, "amount": 5,
    })
    raw["data"] = raw["data"][:20]

    assert escrow_decoder.decode(raw, "escrow") is None


def test_topic_count_mismatch_returns_none(escrow_decoder):
    raw = make_raw_log(signature(ESCROW_EVENTS, "DepositWithdrawn"), {
        "depositId": 7, "depositor": OWNER, "amount": 5,
    })
    raw["topics"] = raw["topics"][:2]

    assert escrow_decoder.decode(raw, "escrow") is None


# ── Test 55: Catalogs ────────────────────────────────────────────


def test_currency_codes():
    assert currency_code(EUR) == "EUR"
    assert currency_code(EUR.upper().replace("0X", "0x")) == "EUR"
    assert currency_code("0x" + "00" * 32) is None
    assert "USD" in supported_currencies()
    assert supported_currencies() == sorted(supported_currencies())


def test_platform_names():
    assert platform_name(REVOLUT_VERIFIER) == "revolut"
    assert platform_name(REVOLUT_METHOD) == "revolut"
    assert platform_name("0x431a078a5029146aab239c768a615cd484519af7") == "zelle"
    assert platform_name("0x1234567890abcdef1234567890abcdef12345678") == "unknown (0x1234...5678)"
    assert platform_name("0x" + "ab" * 32) == "unknown (0xababab...ababab)"
