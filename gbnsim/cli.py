"""Interactive command that configures and runs a Go-Back-N simulation."""

from __future__ import annotations

import argparse
import sys
from typing import Callable, Iterator, Optional, Sequence, TextIO, TypeVar

from gbnsim.emulator import DEFAULT_SEED, Emulator, SimulationConfig
from gbnsim.gbn import GbnReceiver, GbnSender

BANNER = "-----  Stop and Wait Network Simulator Version 1.1 -------- \n\n"

T = TypeVar("T")


def _tokens(stream: TextIO) -> Iterator[str]:
    for line in stream:
        yield from line.split()


def read_config(stream: TextIO, out: TextIO) -> SimulationConfig:
    """Prompt on ``out`` and read the simulation parameters from ``stream``.

    Raises ValueError on missing or malformed input.
    """
    tokens = _tokens(stream)

    def ask(prompt: str, convert: Callable[[str], T]) -> T:
        out.write(prompt)
        out.flush()
        token = next(tokens, None)
        if token is None:
            raise ValueError("unexpected end of input")
        try:
            return convert(token)
        except ValueError:
            raise ValueError(f"invalid value: {token!r}") from None

    num_messages = ask("Enter the number of messages to simulate: ", int)
    loss_prob = ask("Enter  packet loss probability [enter 0.0 for no loss]:", float)
    corrupt_prob = ask(
        "Enter packet corruption probability [0.0 for no corruption]:", float
    )
    corrupt_direction = 0
    if loss_prob != 0.0 or corrupt_prob != 0.0:
        corrupt_direction = ask(
            "If you want loss or corruption to only occur in one direction, "
            "choose the direction: 0 A->B, 1 A<-B, 2 A<->B (both directions) :",
            int,
        )
    mean_interarrival = ask(
        "Enter average time between messages from sender's layer5 [ > 0.0]:", float
    )
    trace = ask("Enter TRACE:", int)
    return SimulationConfig(
        num_messages=num_messages,
        loss_prob=loss_prob,
        corrupt_prob=corrupt_prob,
        corrupt_direction=corrupt_direction,
        mean_interarrival=mean_interarrival,
        trace=trace,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run one simulation with parameters read from standard input."""
    parser = argparse.ArgumentParser(
        prog="gbnsim", description="Simulate Go-Back-N over an unreliable link."
    )
    parser.add_argument(
        "--seed", type=int, default=DEFAULT_SEED, help="random number seed"
    )
    args = parser.parse_args(argv)

    out = sys.stdout
    out.write(BANNER)
    try:
        config = read_config(sys.stdin, out)
    except ValueError as exc:
        print(f"\nerror: {exc}", file=sys.stderr)
        return 1
    out.write("\n")

    try:
        emulator = Emulator(config, out=out, seed=args.seed)
    except RuntimeError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    emulator.run(GbnSender(emulator), GbnReceiver(emulator))
    out.write(emulator.report())
    return 0


if __name__ == "__main__":
    sys.exit(main())