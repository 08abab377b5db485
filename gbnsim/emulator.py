"""Discrete-event emulation of an unreliable, order-preserving network link."""

from __future__ import annotations

import bisect
import dataclasses
import random as _random
import sys
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterator, Optional, Protocol, TextIO

from gbnsim.packet import PAYLOAD_SIZE, Entity, Message, Packet

DEFAULT_SEED = 9999
_GENERATOR_CHECK_SAMPLES = 1000


class EventType(IntEnum):
    """Kinds of events the emulator schedules."""

    TIMER_INTERRUPT = 0
    FROM_LAYER5 = 1
    FROM_LAYER3 = 2


@dataclass(eq=False)
class Event:
    """A scheduled occurrence at one entity."""

    time: float
    type: EventType
    entity: Entity
    packet: Optional[Packet] = None


class EventList:
    """Events kept in time order; a new event goes before others at the same time."""

    def __init__(self) -> None:
        self._events: list[Event] = []

    def insert(self, event: Event) -> None:
        index = bisect.bisect_left(self._events, event.time, key=lambda e: e.time)
        self._events.insert(index, event)

    def pop(self) -> Event:
        """Remove and return the earliest event; IndexError when empty."""
        if not self._events:
            raise IndexError("pop from an empty event list")
        return self._events.pop(0)

    def find_timer(self, entity: Entity) -> Optional[Event]:
        return next(
            (
                e
                for e in self._events
                if e.type is EventType.TIMER_INTERRUPT and e.entity == entity
            ),
            None,
        )

    def remove(self, event: Event) -> None:
        self._events.remove(event)

    def last_arrival(self, entity: Entity) -> Optional[float]:
        """Time of the latest packet arrival pending at ``entity``, if any."""
        times = [
            e.time
            for e in self._events
            if e.type is EventType.FROM_LAYER3 and e.entity == entity
        ]
        return times[-1] if times else None

    def __iter__(self) -> Iterator[Event]:
        return iter(list(self._events))

    def __len__(self) -> int:
        return len(self._events)


@dataclass
class SimulationConfig:
    """Parameters of a simulation run.

    ``corrupt_direction`` limits loss and corruption: 0 for A->B only,
    1 for B->A only, 2 for both directions.
    """

    num_messages: int
    loss_prob: float = 0.0
    corrupt_prob: float = 0.0
    corrupt_direction: int = 0
    mean_interarrival: float = 10.0
    trace: int = 3
    bidirectional: bool = False


@dataclass
class Statistics:
    """Counters kept by the emulator and by the protocol entities."""

    window_full: int = 0
    total_acks_received: int = 0
    packets_resent: int = 0
    new_acks: int = 0
    packets_received: int = 0
    messages_delivered: int = 0
    packets_to_layer3: int = 0
    packets_lost: int = 0
    packets_corrupted: int = 0


class Endpoint(Protocol):
    def output(self, message: Message) -> None: ...

    def input(self, packet: Packet) -> None: ...

    def timer_interrupt(self) -> None: ...


@dataclass
class Emulator:
    """The network below the transport layer, plus timers and message arrivals."""

    config: SimulationConfig
    out: Optional[TextIO] = None
    seed: int = DEFAULT_SEED
    stats: Statistics = field(init=False)
    events: EventList = field(init=False)
    time: float = field(init=False, default=0.0)
    messages_generated: int = field(init=False, default=0)

    def __init__(
        self,
        config: SimulationConfig,
        out: Optional[TextIO] = None,
        seed: int = DEFAULT_SEED,
    ) -> None:
        self.config = config
        self.out = sys.stdout if out is None else out
        self.seed = seed
        self.stats = Statistics()
        self.events = EventList()
        self.time = 0.0
        self.messages_generated = 0
        self._rng = _random.Random(seed)
        self.check_random_generator()
        self._generate_next_arrival()

    @property
    def trace(self) -> int:
        return self.config.trace

    def _say(self, text: str) -> None:
        print(text, file=self.out)

    def random(self) -> float:
        """Return a uniform number in [0, 1)."""
        x = self._rng.random()
        if self.trace > 3:
            self._say(f"RANDOM NUMBER GENERATION CALLED: {x:f}")
        return x

    def check_random_generator(self) -> None:
        """Raise RuntimeError if the generator's mean looks far from uniform."""
        total = sum(self.random() for _ in range(_GENERATOR_CHECK_SAMPLES))
        average = total / _GENERATOR_CHECK_SAMPLES
        if average < 0.25 or average > 0.75:
            raise RuntimeError(
                "random number generation does not look uniform on [0, 1] "
                f"(mean of {_GENERATOR_CHECK_SAMPLES} samples is {average:f})"
            )

    def _schedule(self, event: Event) -> None:
        if self.trace > 2:
            self._say(f"            INSERTEVENT: time is {self.time:f}")
            self._say(f"            INSERTEVENT: future time will be {event.time:f}")
        self.events.insert(event)

    def _generate_next_arrival(self) -> None:
        if self.trace > 2:
            self._say("          GENERATE NEXT ARRIVAL: creating new arrival")
        delay = self.config.mean_interarrival * self.random() * 2
        if self.config.bidirectional and self.random() > 0.5:
            entity = Entity.B
        else:
            entity = Entity.A
        self._schedule(Event(self.time + delay, EventType.FROM_LAYER5, entity))

    def _affects(self, entity: Entity) -> bool:
        direction = self.config.corrupt_direction
        return not (entity == Entity.B and direction == Entity.A) and not (
            entity == Entity.A and direction == Entity.B
        )

    def to_layer3(self, entity: Entity, packet: Packet) -> None:
        """Send ``packet`` from ``entity`` into the network towards its peer."""
        self.stats.packets_to_layer3 += 1

        if self.random() < self.config.loss_prob and self._affects(entity):
            self.stats.packets_lost += 1
            if self.trace > 0:
                self._say("          TOLAYER3: packet being lost")
            return

        copy = packet.copy()
        if self.trace > 2:
            self._say(
                f"          TOLAYER3: seq: {copy.seqnum}, ack {copy.acknum}, "
                f"check: {copy.checksum} {copy.payload}"
            )

        destination = entity.peer()
        last = self.events.last_arrival(destination)
        base = self.time if last is None else last
        arrival = base + 1 + 9 * self.random()

        if self.random() < self.config.corrupt_prob and self._affects(entity):
            self.stats.packets_corrupted += 1
            x = self.random()
            if x < 0.75:
                copy = dataclasses.replace(copy, payload="Z" + copy.payload[1:])
            elif x < 0.875:
                copy = dataclasses.replace(copy, seqnum=999999)
            else:
                copy = dataclasses.replace(copy, acknum=999999)
            if self.trace > 0:
                self._say("          TOLAYER3: packet being corrupted")

        if self.trace > 2:
            self._say("          TOLAYER3: scheduling arrival on other side")
        self._schedule(Event(arrival, EventType.FROM_LAYER3, destination, copy))

    def to_layer5(self, entity: Entity, data: str) -> None:
        """Deliver ``data`` to the application at ``entity``."""
        if self.trace > 2:
            self._say(
                "          TOLAYER5: data received by application at "
                f"{entity.name}: {data}"
            )
        self.stats.messages_delivered += 1

    def start_timer(self, entity: Entity, increment: float) -> None:
        """Start the timer of ``entity``; warn if it is already running."""
        if self.trace > 1:
            self._say(f"          START TIMER: starting timer at {self.time:f}")
        if self.events.find_timer(entity) is not None:
            self._say("Warning: attempt to start a timer that is already started")
            return
        self._schedule(
            Event(self.time + increment, EventType.TIMER_INTERRUPT, entity)
        )

    def stop_timer(self, entity: Entity) -> None:
        """Cancel the timer of ``entity``; warn if none is running."""
        if self.trace > 1:
            self._say(f"          STOP TIMER: stopping timer at {self.time:f}")
        timer = self.events.find_timer(entity)
        if timer is None:
            self._say("Warning: unable to cancel your timer. It wasn't running.")
            return
        self.events.remove(timer)

    def _trace_event(self, event: Event) -> None:
        label = {
            EventType.TIMER_INTERRUPT: "timerinterrupt  ",
            EventType.FROM_LAYER5: "fromlayer5 ",
            EventType.FROM_LAYER3: "fromlayer3 ",
        }[event.type]
        self._say("")
        self._say(
            f"EVENT time: {event.time:f},  type: {int(event.type)}, {label} "
            f"entity: {int(event.entity)}"
        )

    def run(self, sender: Endpoint, receiver: Endpoint) -> Statistics:
        """Process events until none are left and return the statistics."""
        endpoints = {Entity.A: sender, Entity.B: receiver}
        while self.events:
            event = self.events.pop()
            if self.trace >= 2:
                self._trace_event(event)
            self.time = event.time
            endpoint = endpoints[event.entity]

            if event.type is EventType.FROM_LAYER5:
                if self.messages_generated < self.config.num_messages:
                    self._generate_next_arrival()
                    letter = chr(ord("a") + self.messages_generated % 26)
                    message = Message(letter * PAYLOAD_SIZE)
                    if self.trace > 2:
                        self._say(
                            f"          MAINLOOP: data given to student: {message.data}"
                        )
                    self.messages_generated += 1
                    endpoint.output(message)
                elif self.trace > 2:
                    self._say("          FROM_LAYER5: no more messages to send: ")
            elif event.type is EventType.FROM_LAYER3:
                assert event.packet is not None
                endpoint.input(event.packet.copy())
            else:
                endpoint.timer_interrupt()
        return self.stats

    def report(self) -> str:
        """Summarise the finished simulation."""
        s = self.stats
        lines = [
            f" Simulator terminated at time {self.time:f}",
            f" after attempting to send {self.messages_generated} msgs from layer5",
            f"number of messages dropped due to full window:  {s.window_full}",
            "number of valid (not corrupt or duplicate) acknowledgements "
            f"received at A:  {s.new_acks}",
            "(note: a single acknowledgement may have acknowledged more than one "
            "packet - if cumulative acknowledgements are used)",
            f"number of packet resends by A:  {s.packets_resent}",
            f"number of correct packets received at B:  {s.packets_received}",
            f"number of messages delivered to application:  {s.messages_delivered}",
        ]
        return "\n".join(lines) + "\n"