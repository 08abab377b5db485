"""Go-Back-N sender and receiver entities for the emulated network."""

from __future__ import annotations

from collections import deque
from typing import Protocol, TextIO

from gbnsim.emulator import Statistics
from gbnsim.packet import PAYLOAD_SIZE, Entity, Message, Packet, is_corrupted, make_packet

RTT = 16.0
"""Retransmission timeout used by the sender."""

WINDOW_SIZE = 6
"""Maximum number of unacknowledged packets held by the sender."""

SEQ_SPACE = 7
"""Size of the sequence number space; at least WINDOW_SIZE + 1."""

NOT_IN_USE = -1
"""Value for header fields that carry no information."""


class Network(Protocol):
    stats: Statistics
    out: TextIO

    @property
    def trace(self) -> int: ...

    def to_layer3(self, entity: Entity, packet: Packet) -> None: ...

    def to_layer5(self, entity: Entity, data: str) -> None: ...

    def start_timer(self, entity: Entity, increment: float) -> None: ...

    def stop_timer(self, entity: Entity) -> None: ...


class _Entity:
    def __init__(self, network: Network) -> None:
        self.network = network

    def _trace(self, level: int, text: str) -> None:
        if self.network.trace > level:
            print(text, file=self.network.out)


class GbnSender(_Entity):
    """Sending side (A) of the Go-Back-N protocol."""

    def __init__(self, network: Network) -> None:
        super().__init__(network)
        self.window: deque[Packet] = deque()
        self.next_seqnum = 0

    def output(self, message: Message) -> None:
        """Send a message from the application if the window has room."""
        stats = self.network.stats
        if len(self.window) >= WINDOW_SIZE:
            self._trace(0, "----A: New message arrives, send window is full")
            stats.window_full += 1
            return

        self._trace(
            1,
            "----A: New message arrives, send window is not full, "
            "send new messge to layer3!",
        )
        packet = make_packet(self.next_seqnum, NOT_IN_USE, message.data)
        self.window.append(packet)
        self._trace(0, f"Sending packet {packet.seqnum} to layer 3")
        self.network.to_layer3(Entity.A, packet)
        if len(self.window) == 1:
            self.network.start_timer(Entity.A, RTT)
        self.next_seqnum = (self.next_seqnum + 1) % SEQ_SPACE

    def input(self, packet: Packet) -> None:
        """Handle an acknowledgement arriving from the receiver."""
        stats = self.network.stats
        if is_corrupted(packet):
            self._trace(0, "----A: corrupted ACK is received, do nothing!")
            return

        self._trace(0, f"----A: uncorrupted ACK {packet.acknum} is received")
        stats.total_acks_received += 1

        if not self.window:
            self._trace(0, "----A: duplicate ACK received, do nothing!")
            return

        first = self.window[0].seqnum
        last = self.window[-1].seqnum
        ack = packet.acknum
        if first <= last:
            in_window = first <= ack <= last
        else:
            in_window = ack >= first or ack <= last
        if not in_window:
            return

        self._trace(0, f"----A: ACK {ack} is not a duplicate")
        stats.new_acks += 1
        if ack >= first:
            acked = ack + 1 - first
        else:
            acked = SEQ_SPACE - first + ack
        for _ in range(acked):
            self.window.popleft()

        self.network.stop_timer(Entity.A)
        if self.window:
            self.network.start_timer(Entity.A, RTT)

    def timer_interrupt(self) -> None:
        """Resend every packet still waiting for acknowledgement."""
        self._trace(0, "----A: time out,resend packets!")
        for position, packet in enumerate(list(self.window)):
            self._trace(0, f"---A: resending packet {packet.seqnum}")
            self.network.to_layer3(Entity.A, packet)
            self.network.stats.packets_resent += 1
            if position == 0:
                self.network.start_timer(Entity.A, RTT)


class GbnReceiver(_Entity):
    """Receiving side (B) of the Go-Back-N protocol."""

    def __init__(self, network: Network) -> None:
        super().__init__(network)
        self.expected_seqnum = 0
        self.next_seqnum = 1

    def input(self, packet: Packet) -> None:
        """Deliver an in-order packet and acknowledge the last one in order."""
        if not is_corrupted(packet) and packet.seqnum == self.expected_seqnum:
            self._trace(
                0, f"----B: packet {packet.seqnum} is correctly received, send ACK!"
            )
            self.network.stats.packets_received += 1
            self.network.to_layer5(Entity.B, packet.payload)
            acknum = self.expected_seqnum
            self.expected_seqnum = (self.expected_seqnum + 1) % SEQ_SPACE
        else:
            self._trace(
                0,
                "----B: packet corrupted or not expected sequence number, "
                "resend ACK!",
            )
            acknum = (self.expected_seqnum - 1) % SEQ_SPACE

        ack = make_packet(self.next_seqnum, acknum, "0" * PAYLOAD_SIZE)
        self.next_seqnum = (self.next_seqnum + 1) % 2
        self.network.to_layer3(Entity.B, ack)

    def output(self, message: Message) -> None:
        """The receiver sends no data in simplex transfer."""

    def timer_interrupt(self) -> None:
        """The receiver runs no timer in simplex transfer."""