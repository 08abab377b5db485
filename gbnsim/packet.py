"""Data units exchanged between the layers of the simulated network."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import IntEnum

PAYLOAD_SIZE = 20


class Entity(IntEnum):
    """One of the two protocol endpoints."""

    A = 0
    B = 1

    def peer(self) -> Entity:
        """Return the entity at the other end of the link."""
        return Entity((self.value + 1) % 2)


def _check_payload(data: str) -> None:
    if len(data) != PAYLOAD_SIZE:
        raise ValueError(
            f"payload must be exactly {PAYLOAD_SIZE} characters, got {len(data)}"
        )


@dataclass(frozen=True)
class Message:
    """Application data handed from layer 5 down to the transport layer."""

    data: str

    def __post_init__(self) -> None:
        _check_payload(self.data)


@dataclass
class Packet:
    """Transport-layer packet handed to the network layer."""

    seqnum: int
    acknum: int
    checksum: int
    payload: str

    def __post_init__(self) -> None:
        _check_payload(self.payload)

    def copy(self) -> Packet:
        """Return an independent copy of this packet."""
        return dataclasses.replace(self)


def compute_checksum(packet: Packet) -> int:
    """Sum the sequence number, acknowledgement number and payload characters."""
    return packet.seqnum + packet.acknum + sum(ord(ch) for ch in packet.payload)


def is_corrupted(packet: Packet) -> bool:
    """Tell whether the stored checksum disagrees with the packet contents."""
    return packet.checksum != compute_checksum(packet)


def make_packet(seqnum: int, acknum: int, payload: str) -> Packet:
    """Build a packet whose checksum matches its contents."""
    packet = Packet(seqnum=seqnum, acknum=acknum, checksum=0, payload=payload)
    packet.checksum = compute_checksum(packet)
    return packet