"""ABI event decoder - turns raw logs into DecodedEvent records."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable

from eth_abi.abi import decode as abi_decode
from web3 import Web3

from intent_watch.errors import DecodeError
from intent_watch.models.events import DecodedEvent

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class EventInput:
    name: str
    type: str  # canonical ABI type, tuples as "(t1,t2)"
    indexed: bool


@dataclass(frozen=True)
class EventSpec:
    name: str
    inputs: tuple[EventInput, ...]

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(i.type for i in self.inputs)})"

    @property
    def topic(self) -> str:
        return Web3.to_hex(Web3.keccak(text=self.signature)).lower()


def _split_top_level(params: str) -> list[str]:
    """Split on commas that are not nested inside parentheses."""
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in params:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    if "".join(current).strip():
        parts.append("".join(current))
    return [p.strip() for p in parts]


def _canonical_type(abi_type: str) -> str:
    if abi_type.startswith("tuple("):
        return abi_type[len("tuple"):]
    return abi_type


def parse_event_signature(text: str) -> EventSpec:
    """Parse ``Name(type [indexed] name, ...)`` into an EventSpec."""
    text = " ".join(text.split())
    open_idx = text.index("(")
    if not text.endswith(")"):
        raise ValueError(f"malformed event signature: {text}")
    name = text[:open_idx].strip()
    if name.startswith("event "):
        name = name[len("event "):].strip()

    inputs: list[EventInput] = []
    for index, param in enumerate(_split_top_level(text[open_idx + 1:-1])):
        # the type may contain spaces only inside a tuple, which ends with ")"
        if param.startswith("tuple(") or param.startswith("("):
            close = param.rindex(")")
            abi_type, rest = param[:close + 1], param[close + 1:].split()
        else:
            tokens = param.split()
            abi_type, rest = tokens[0], tokens[1:]
        indexed = "indexed" in rest
        names = [t for t in rest if t != "indexed"]
        inputs.append(EventInput(
            name=names[0] if names else f"arg{index}",
            type=_canonical_type(abi_type.replace(" ", "")),
            indexed=indexed,
        ))
    return EventSpec(name=name, inputs=tuple(inputs))


def _normalize(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, str):
        return value.lower() if value.startswith("0x") else value
    if isinstance(value, (list, tuple)):
        return tuple(_normalize(v) for v in value)
    return value


def _hex_to_bytes(value: str | bytes) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return bytes.fromhex(value[2:] if value.startswith("0x") else value)


def _to_int(value: Any) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value, 16) if value.startswith("0x") else int(value)
    return 0


_DYNAMIC_TYPES = ("string", "bytes")


class AbiEventDecoder:
    """Decodes logs whose topic[0] matches a signature in the catalog.

    Indexed parameters are read from topics, the rest from ``data``.
    Indexed dynamic values (strings, bytes, arrays) are only available as
    their keccak hash and are returned as hex.
    """

    def __init__(self, signatures: Iterable[str]) -> None:
        self._by_topic: dict[str, EventSpec] = {}
        for text in signatures:
            spec = parse_event_signature(text)
            self._by_topic[spec.topic] = spec

    @property
    def event_names(self) -> list[str]:
        return [spec.name for spec in self._by_topic.values()]

    def topic_for(self, name: str) -> str | None:
        for topic, spec in self._by_topic.items():
            if spec.name == name:
                return topic
        return None

    def decode(
        self, raw_log: dict[str, Any], contract_id: str, received_at: float = 0.0,
    ) -> DecodedEvent | None:
        topics = raw_log.get("topics") or []
        if not topics:
            return None
        topic0 = topics[0] if isinstance(topics[0], str) else "0x" + bytes(topics[0]).hex()
        spec = self._by_topic.get(topic0.lower())
        if spec is None:
            return None

        try:
            fields = self._decode_fields(spec, topics, raw_log.get("data") or "0x")
        except Exception as exc:
            log.warning(
                "Failed to decode %s in tx %s: %s",
                spec.name, raw_log.get("transactionHash"), exc,
            )
            return None

        return DecodedEvent(
            event_name=spec.name,
            contract_id=contract_id,
            transaction_hash=str(raw_log.get("transactionHash") or "").lower(),
            block_number=_to_int(raw_log.get("blockNumber")),
            fields=fields,
            received_at=received_at,
        )

    def _decode_fields(
        self, spec: EventSpec, topics: list[Any], data: str | bytes,
    ) -> dict[str, Any]:
        indexed = [i for i in spec.inputs if i.indexed]
        if len(topics) - 1 != len(indexed):
            raise DecodeError(
                f"{spec.name} expects {len(indexed)} indexed topics, got {len(topics) - 1}"
            )

        fields: dict[str, Any] = {}
        for inp, topic in zip(indexed, topics[1:]):
            raw = _hex_to_bytes(topic)
            if inp.type in _DYNAMIC_TYPES or inp.type.endswith("]") or inp.type.startswith("("):
                fields[inp.name] = "0x" + raw.hex()
            else:
                fields[inp.name] = _normalize(abi_decode([inp.type], raw)[0])

        plain = [i for i in spec.inputs if not i.indexed]
        if plain:
            values = abi_decode([i.type for i in plain], _hex_to_bytes(data))
            for inp, value in zip(plain, values):
                fields[inp.name] = _normalize(value)
        return fields
