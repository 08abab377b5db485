import io
from unittest.mock import patch

import pytest

from gbnsim.emulator import (
    Emulator,
    Event,
    EventList,
    EventType,
    SimulationConfig,
)
from gbnsim.packet import Entity, is_corrupted, make_packet


class _Sender:
    def __init__(self, network):
        self.network = network
        self.seq = 0
        self.acks = []

    def output(self, message):
        self.network.to_layer3(Entity.A, make_packet(self.seq, -1, message.data))
        self.seq += 1

    def input(self, packet):
        self.acks.append(packet.acknum)

    def timer_interrupt(self):
        pass


class _Receiver:
    def __init__(self, network):
        self.network = network
        self.received = []

    def output(self, message):
        pass

    def input(self, packet):
        self.received.append(packet.payload)
        self.network.to_layer5(Entity.B, packet.payload)
        self.network.to_layer3(Entity.B, make_packet(0, packet.seqnum, "0" * 20))

    def timer_interrupt(self):
        pass


def _emulator(**kwargs):
    kwargs.setdefault("trace", 0)
    config = SimulationConfig(num_messages=kwargs.pop("num_messages", 5), **kwargs)
    return Emulator(config, out=io.StringIO())


def _run(emu):
    sender, receiver = _Sender(emu), _Receiver(emu)
    stats = emu.run(sender, receiver)
    return stats, sender, receiver


def test_event_list_orders_by_time():
    events = EventList()
    for t in (3.0, 1.0, 2.0):
        events.insert(Event(t, EventType.FROM_LAYER5, Entity.A))
    assert [events.pop().time for _ in range(3)] == [1.0, 2.0, 3.0]
    assert len(events) == 0


def test_event_list_new_event_goes_before_equal_time():
    events = EventList()
    first = Event(1.0, EventType.FROM_LAYER5, Entity.A)
    second = Event(1.0, EventType.TIMER_INTERRUPT, Entity.A)
    events.insert(first)
    events.insert(second)
    assert list(events) == [second, first]


def test_event_list_pop_empty_raises():
    with pytest.raises(IndexError):
        EventList().pop()


def test_event_list_find_and_remove_timer():
    events = EventList()
    timer = Event(5.0, EventType.TIMER_INTERRUPT, Entity.A)
    events.insert(Event(1.0, EventType.FROM_LAYER3, Entity.A))
    events.insert(timer)
    assert events.find_timer(Entity.A) is timer
    assert events.find_timer(Entity.B) is None
    events.remove(timer)
    assert events.find_timer(Entity.A) is None
    assert len(events) == 1


def test_event_list_last_arrival():
    events = EventList()
    assert events.last_arrival(Entity.B) is None
    events.insert(Event(4.0, EventType.FROM_LAYER3, Entity.B))
    events.insert(Event(2.0, EventType.FROM_LAYER3, Entity.B))
    events.insert(Event(9.0, EventType.FROM_LAYER3, Entity.A))
    assert events.last_arrival(Entity.B) == 4.0


def test_first_arrival_is_scheduled_for_a():
    emu = _emulator(mean_interarrival=10.0)
    (event,) = list(emu.events)
    assert event.type is EventType.FROM_LAYER5
    assert event.entity is Entity.A
    assert 0.0 <= event.time <= 20.0


def test_bad_random_generator_is_rejected():
    with patch("random.Random.random", return_value=0.9):
        with pytest.raises(RuntimeError):
            _emulator()


def test_reliable_run_delivers_all_messages_in_order():
    emu = _emulator(num_messages=5)
    stats, sender, receiver = _run(emu)
    assert stats.messages_delivered == 5
    assert receiver.received == [c * 20 for c in "abcde"]
    assert sender.acks == [0, 1, 2, 3, 4]
    assert emu.messages_generated == 5
    assert len(emu.events) == 0


def test_messages_cycle_through_alphabet():
    emu = _emulator(num_messages=27)
    _, _, receiver = _run(emu)
    assert receiver.received[25] == "z" * 20
    assert receiver.received[26] == "a" * 20


def test_total_loss_from_a():
    emu = _emulator(num_messages=4, loss_prob=1.0, corrupt_direction=0)
    stats, _, receiver = _run(emu)
    assert receiver.received == []
    assert stats.packets_lost == 4
    assert stats.packets_to_layer3 == 4


def test_loss_only_in_chosen_direction():
    emu = _emulator(loss_prob=1.0, corrupt_direction=1)
    emu.to_layer3(Entity.A, make_packet(0, -1, "a" * 20))
    assert emu.stats.packets_lost == 0
    assert emu.events.last_arrival(Entity.B) is not None
    emu.to_layer3(Entity.B, make_packet(0, 0, "0" * 20))
    assert emu.stats.packets_lost == 1
    assert emu.events.last_arrival(Entity.A) is None


def test_corruption_changes_copy_not_original():
    emu = _emulator(corrupt_prob=1.0, corrupt_direction=2)
    packet = make_packet(0, -1, "a" * 20)
    emu.to_layer3(Entity.A, packet)
    arrivals = [e for e in emu.events if e.type is EventType.FROM_LAYER3]
    assert len(arrivals) == 1
    assert is_corrupted(arrivals[0].packet)
    assert not is_corrupted(packet)
    assert emu.stats.packets_corrupted == 1


def test_arrivals_are_in_sending_order_and_delayed():
    emu = _emulator()
    for seq in range(5):
        emu.to_layer3(Entity.A, make_packet(seq, -1, "a" * 20))
    arrivals = [e for e in emu.events if e.type is EventType.FROM_LAYER3]
    assert [e.packet.seqnum for e in arrivals] == [0, 1, 2, 3, 4]
    times = [e.time for e in arrivals]
    assert times == sorted(times)
    assert 1.0 <= times[0] <= 10.0


def test_start_timer_schedules_interrupt():
    emu = _emulator()
    emu.start_timer(Entity.A, 16.0)
    timer = emu.events.find_timer(Entity.A)
    assert timer.time == 16.0


def test_start_timer_twice_warns_and_keeps_one():
    emu = _emulator()
    emu.start_timer(Entity.A, 16.0)
    emu.start_timer(Entity.A, 5.0)
    timers = [e for e in emu.events if e.type is EventType.TIMER_INTERRUPT]
    assert len(timers) == 1
    assert "already started" in emu.out.getvalue()


def test_stop_timer_removes_and_warns_when_absent():
    emu = _emulator()
    emu.start_timer(Entity.A, 16.0)
    emu.stop_timer(Entity.A)
    assert emu.events.find_timer(Entity.A) is None
    emu.stop_timer(Entity.A)
    assert "unable to cancel your timer" in emu.out.getvalue()


def test_timer_interrupt_dispatched():
    emu = _emulator(num_messages=0)
    fired = []

    class _Timed(_Sender):
        def timer_interrupt(self):
            fired.append(self.network.time)

    emu.start_timer(Entity.A, 3.0)
    stats = emu.run(_Timed(emu), _Receiver(emu))
    assert fired == [3.0]
    assert stats.messages_delivered == 0
    assert stats.packets_to_layer3 == 0
    assert emu.messages_generated == 0
    assert len(emu.events) == 0


def test_same_seed_gives_same_report():
    reports = []
    for _ in range(2):
        emu = _emulator(num_messages=10, loss_prob=0.2, corrupt_prob=0.2)
        _run(emu)
        reports.append(emu.report())
    assert reports[0] == reports[1]


def test_report_lists_counters():
    emu = _emulator(num_messages=3)
    _run(emu)
    text = emu.report()
    assert "after attempting to send 3 msgs from layer5" in text
    assert "number of messages delivered to application:  3" in text


def test_trace_shows_delivered_data():
    emu = _emulator(num_messages=1, trace=3)
    _run(emu)
    output = emu.out.getvalue()
    assert "TOLAYER5: data received by application at B: " + "a" * 20 in output
    assert "no more messages to send" in output