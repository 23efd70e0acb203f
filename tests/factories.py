"""Synthetic event and raw log factories for testing."""

from __future__ import annotations

from typing import Any

from eth_abi.abi import encode as abi_encode
from web3 import Web3

from intent_watch.chain.decoder import parse_event_signature
from intent_watch.models.events import DecodedEvent, IntentDetails

# Catalog entries (see intent_watch.chain.catalog)
USD = "0xc4ae21aac0c6549d71dd96035b7e0bdb6c79ebdba8891b666115bc976d16a29e"
EUR = "0xfff16d60be267153303bbfa66e593fb8d06e24ea5ef24b6acca5224c2ca6b907"
ARS = "0x8fd50654b7dd2dc839f7cab32800ba0c6f7f66e1ccf89b21c09405469c2175ec"
UNKNOWN_CURRENCY = "0x" + "ab" * 32

REVOLUT_VERIFIER = "0xaa5a1b62b01781e789c900d616300717cd9a41ab"
VENMO_VERIFIER = "0x9a733b55a875d0db4915c6b36350b24f8ab99df5"
REVOLUT_METHOD = "0x617f88ab82b5c1b014c539f7e75121427f0bb50a4c58b187a238531e7d58605d"

OWNER = "0x1111111111111111111111111111111111111111"
RECIPIENT = "0x2222222222222222222222222222222222222222"

RATE_ONE = 10 ** 18


def intent_hash(n: int) -> str:
    return "0x" + f"{n:064x}"


def tx_hash(n: int) -> str:
    return "0x" + f"{n:064x}"[::-1]


def make_event(
    event_name: str,
    fields: dict[str, Any] | None = None,
    contract_id: str = "escrow",
    transaction_hash: str = tx_hash(1),
    block_number: int = 100,
) -> DecodedEvent:
    return DecodedEvent(
        event_name=event_name,
        contract_id=contract_id,
        transaction_hash=transaction_hash,
        block_number=block_number,
        fields=fields or {},
    )


def make_signaled(
    intent: str = intent_hash(1),
    deposit_id: int = 42,
    amount: int = 100_000_000,
    fiat_currency: str = EUR,
    conversion_rate: int = 9 * RATE_ONE // 10,
    orchestrator: bool = False,
    transaction_hash: str = tx_hash(1),
    block_number: int = 100,
) -> DecodedEvent:
    fields: dict[str, Any] = {
        "intentHash": intent,
        "depositId": deposit_id,
        "owner": OWNER,
        "to": RECIPIENT,
        "amount": amount,
        "fiatCurrency": fiat_currency,
        "conversionRate": conversion_rate,
        "timestamp": 1_700_000_000,
    }
    if orchestrator:
        fields["escrow"] = "0xca38607d85e8f6294dc10728669605e6664c2d70"
        fields["paymentMethod"] = REVOLUT_METHOD
    else:
        fields["verifier"] = REVOLUT_VERIFIER
    return make_event(
        "IntentSignaled",
        fields,
        contract_id="orchestrator" if orchestrator else "escrow",
        transaction_hash=transaction_hash,
        block_number=block_number,
    )


def make_fulfilled(
    intent: str = intent_hash(1),
    deposit_id: int | None = 42,
    amount: int = 100_000_000,
    transaction_hash: str = tx_hash(2),
    block_number: int = 101,
    orchestrator: bool = False,
) -> DecodedEvent:
    if orchestrator:
        fields: dict[str, Any] = {
            "intentHash": intent,
            "fundsTransferredTo": RECIPIENT,
            "amount": amount,
            "isManualRelease": False,
        }
    else:
        fields = {
            "intentHash": intent,
            "depositId": deposit_id,
            "verifier": REVOLUT_VERIFIER,
            "owner": OWNER,
            "to": RECIPIENT,
            "amount": amount,
            "sustainabilityFee": 0,
            "verifierFee": 0,
        }
    return make_event(
        "IntentFulfilled",
        fields,
        contract_id="orchestrator" if orchestrator else "escrow",
        transaction_hash=transaction_hash,
        block_number=block_number,
    )


def make_pruned(
    intent: str = intent_hash(1),
    deposit_id: int | None = 42,
    transaction_hash: str = tx_hash(2),
    block_number: int = 101,
    orchestrator: bool = False,
) -> DecodedEvent:
    fields: dict[str, Any] = {"intentHash": intent}
    if not orchestrator:
        fields["depositId"] = deposit_id
    return make_event(
        "IntentPruned",
        fields,
        contract_id="orchestrator" if orchestrator else "escrow",
        transaction_hash=transaction_hash,
        block_number=block_number,
    )


def make_details(
    intent: str = intent_hash(1),
    deposit_id: int = 42,
    platform_id: str = REVOLUT_VERIFIER,
    fiat_currency: str = EUR,
    conversion_rate: int = 9 * RATE_ONE // 10,
    amount: int = 100_000_000,
) -> IntentDetails:
    return IntentDetails(
        intent_id=intent,
        deposit_id=deposit_id,
        platform_id=platform_id,
        fiat_currency=fiat_currency,
        conversion_rate=conversion_rate,
        owner=OWNER,
        to=RECIPIENT,
        amount=amount,
        timestamp=1_700_000_000,
    )


# ── Raw logs ─────────────────────────────────────────────


def _encodable(abi_type: str, value: Any) -> Any:
    if abi_type.startswith("bytes") and isinstance(value, str):
        return bytes.fromhex(value[2:])
    return value


def make_raw_log(
    signature: str,
    values: dict[str, Any],
    transaction_hash: str = tx_hash(9),
    block_number: int = 0x1A2B,
    address: str = "0xca38607d85e8f6294dc10728669605e6664c2d70",
) -> dict[str, Any]:
    """ABI-encode ``values`` the way a node would deliver them for ``signature``."""
    spec = parse_event_signature(signature)
    topics = [spec.topic]
    plain_types: list[str] = []
    plain_values: list[Any] = []
    for inp in spec.inputs:
        value = _encodable(inp.type, values[inp.name])
        if inp.indexed:
            topics.append(Web3.to_hex(abi_encode([inp.type], [value])))
        else:
            plain_types.append(inp.type)
            plain_values.append(value)
    return {
        "address": address,
        "topics": topics,
        "data": Web3.to_hex(abi_encode(plain_types, plain_values)),
        "transactionHash": transaction_hash,
        "blockNumber": hex(block_number),
    }
