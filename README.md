# gbnsim

A small discrete-event emulator of an unreliable network link, with a
Go-Back-N transport protocol that runs over it.

The emulator (`gbnsim.emulator.Emulator`) stands in for the network layer and
everything below it:

- The sending application produces messages at random intervals. The interval
  is uniform on `[0, 2 × mean]`. Each message is twenty copies of one letter, and
  the letters cycle from `a` to `z`.
- Packets cross the medium in order. Each one arrives 1 to 10 time units after
  the latest packet already on its way to the same side. A packet can be lost.
  It can also be corrupted: its first payload character becomes `Z`, or its
  sequence or acknowledgement number becomes `999999`. You choose the
  probabilities of loss and corruption.
- Each entity has one timer. Starting a timer that is already running, or
  stopping one that is not, prints a warning and does nothing else.
- The run ends when no events are left.

The Go-Back-N sender (`gbnsim.gbn.GbnSender`) has a window of 6 packets, a
sequence space of 7 and a timeout of 16 time units:

- It accepts cumulative acknowledgements.
- When the window is full, it drops new messages and counts them.
- When its timer fires, it resends every packet that is still unacknowledged.

The receiver (`GbnReceiver`) accepts packets only in order. It answers every
packet it gets with an ACK. For a packet that is corrupt or out of order, it
sends the ACK for the last packet it accepted.

## Installation

```
pip install .
```

## Running a simulation

```
gbnsim
```

The command prints a banner and then asks for these values, in this order:

1. The number of messages to simulate.
2. The probability that a packet is lost (`0.0` for no loss).
3. The probability that a packet is corrupted (`0.0` for no corruption).
4. The direction that loss and corruption apply to: `0` A->B, `1` A<-B, `2` both
   directions. This question comes only when either probability is non-zero.
   Otherwise the direction is `0`.
5. The average time between messages from the sender's application.
6. The trace level. At `0` the run is quiet. From `1`, protocol decisions are
   shown. From `2`, timers and events are shown too. From `3`, every scheduled
   event and packet is shown, and from `4`, every random number.

The answers may be separated by any whitespace. If an answer is missing or
malformed, the command prints an error to standard error and exits with status 1.

The random generator starts from a fixed seed (9999), so the same answers always
give the same run. To choose another seed, use `--seed N`. Before the run
starts, the generator is checked: if the mean of 1000 samples falls outside
`[0.25, 0.75]`, the command stops with an error.

At the end the command prints a summary:

- the time at which the run ended
- how many messages were generated
- how many were dropped because the window was full
- how many new ACKs reached A
- how many packets A resent
- how many correct packets B received
- how many messages reached the receiving application

The answers can come from a pipe:

```
printf '100\n0.2\n0.2\n2\n10\n0\n' | gbnsim
```

## Using it from Python

```python
import sys

from gbnsim.emulator import Emulator, SimulationConfig
from gbnsim.gbn import GbnReceiver, GbnSender

config = SimulationConfig(
    num_messages=50,
    loss_prob=0.1,
    corrupt_prob=0.1,
    corrupt_direction=2,
    mean_interarrival=10.0,
    trace=0,
)
emulator = Emulator(config, out=sys.stdout, seed=9999)
stats = emulator.run(GbnSender(emulator), GbnReceiver(emulator))
print(stats.messages_delivered, stats.packets_resent)
print(emulator.report(), end="")
```

- `Emulator.run` returns a `Statistics` object. As well as the counters in the
  summary, it counts the packets sent into the network, lost and corrupted.
- `Emulator` raises `RuntimeError` if the random generator fails its check.
- `gbnsim.packet` holds the data units, `Message` and `Packet`. It also has the
  `Entity` enum for the two ends of the link, and the checksum helpers
  `compute_checksum`, `is_corrupted` and `make_packet`.
- `Message` and `Packet` raise `ValueError` unless the data or payload is
  exactly 20 characters long.
- `gbnsim.cli.read_config` reads the interactive answers from any text stream.

## What it does not do

Transfer goes one way only, from A to B:

- `GbnReceiver` ignores messages from its application and never uses its timer.
- The `bidirectional` field of `SimulationConfig` can send generated messages to
  B, but B drops them.

Delivered data is counted but not kept. There is no record of what the
receiving application got, beyond the trace output.