#!/usr/bin/env python3
"""
gatelang — Gate Trees & Circuit Emulator
Copyright (c) 2026 Alex P. Slaby — MIT License

Core circuit model:
  - Component: Input / Not / And / Or nodes
  - G: default node factory used by the parser
  - Emulator: truth tables over all input assignments
  - render_tree / to_source: debug and source rendering

Usage:
  python gate.py demo              Run built-in demos
  python gate.py help              Show this help
"""

import sys
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable, Optional, Sequence


# ═══════════════════════════════════════════════════════════════
# CORE DEFINITIONS
# ═══════════════════════════════════════════════════════════════

class Kind(IntEnum):
    """The four node kinds of a gate tree."""
    INPUT = 0x0   # .n
    NOT   = 0x1   # !
    AND   = 0x2   # and(...)
    OR    = 0x3   # or(...)


KIND_SYMBOL = {Kind.INPUT: ".", Kind.NOT: "!", Kind.AND: "and", Kind.OR: "or"}

# Widest circuit the emulator accepts (2**24 rows).
MAX_WIDTH = 24


# ═══════════════════════════════════════════════════════════════
# GATE NODE
# ═══════════════════════════════════════════════════════════════

@dataclass
class Component:
    """A node in a gate tree."""
    kind: Kind
    children: list = field(default_factory=list)
    index: Optional[int] = None

    @property
    def arity(self) -> int:
        return len(self.children)

    def max_input(self) -> int:
        """Largest input index referenced below this node, or -1."""
        best = -1
        stack = [self]
        while stack:
            n = stack.pop()
            if n.kind == Kind.INPUT:
                best = max(best, n.index)
            stack.extend(n.children)
        return best


# ═══════════════════════════════════════════════════════════════
# FACTORY — the constructors the parser builds trees with
# ═══════════════════════════════════════════════════════════════

class G:
    """Default gate-tree factory."""

    @staticmethod
    def make_input(index: int) -> Component:
        return Component(Kind.INPUT, index=index)

    @staticmethod
    def make_not(node: Component) -> Component:
        return Component(Kind.NOT, children=[node])

    @staticmethod
    def make_and(children: Sequence[Component]) -> Component:
        return Component(Kind.AND, children=list(children))

    @staticmethod
    def make_or(children: Sequence[Component]) -> Component:
        return Component(Kind.OR, children=list(children))


# ═══════════════════════════════════════════════════════════════
# EMULATOR — truth table evaluation
# ═══════════════════════════════════════════════════════════════

class EmulatorError(Exception):
    pass


def fold(root: Component, visit: Callable[[Component, list], Any]) -> Any:
    """Post-order walk over an explicit stack.

    visit(node, results) gets the results of the node's children in order.
    Nesting depth is bounded only by memory.
    """
    results = []
    stack = [(root, False)]
    while stack:
        n, expanded = stack.pop()
        if n.children and not expanded:
            stack.append((n, True))
            stack.extend((c, False) for c in reversed(n.children))
            continue
        split = len(results) - len(n.children)
        args = results[split:]
        del results[split:]
        results.append(visit(n, args))
    return results[0]


def evaluate(n: Component, values: Sequence[bool]) -> bool:
    """Evaluate a gate tree for one assignment of its inputs."""

    def visit(node, args):
        if node.kind == Kind.INPUT:
            if node.index >= len(values):
                raise EmulatorError(f"Input .{node.index} has no value")
            return bool(values[node.index])
        elif node.kind == Kind.NOT:
            return not args[0]
        elif node.kind == Kind.AND:
            return all(args)
        elif node.kind == Kind.OR:
            return any(args)
        raise EmulatorError(f"Cannot evaluate node kind {node.kind!r}")

    return fold(n, visit)


class TruthTable:
    """Outputs of a circuit for every input assignment, in counting order."""

    def __init__(self, input_count: int, outputs: list):
        self.input_count = input_count
        self.outputs = outputs

    def rows(self):
        """Yield (inputs, output) pairs; input .0 is the most significant bit."""
        n = self.input_count
        for r, out in enumerate(self.outputs):
            bits = tuple(bool((r >> (n - 1 - i)) & 1) for i in range(n))
            yield bits, out

    def __len__(self):
        return len(self.outputs)

    def __str__(self):
        headers = [f".{i}" for i in range(self.input_count)]
        widths = [len(h) for h in headers]
        lines = [" ".join(headers + ["|", "out"])]
        for bits, out in self.rows():
            cells = [str(int(b)).rjust(w) for b, w in zip(bits, widths)]
            lines.append(" ".join(cells + ["|", str(int(out)).rjust(3)]))
        return "\n".join(lines) + "\n"


class Emulator:
    """Evaluates a gate tree over all 2**input_count input assignments."""

    def __init__(self, input_count: int, component: Component):
        if input_count < 0 or input_count > MAX_WIDTH:
            raise EmulatorError(f"Unsupported input count {input_count} (max {MAX_WIDTH})")
        self._check(component, input_count)
        self.input_count = input_count
        self.component = component

    @staticmethod
    def _check(root: Component, input_count: int):
        stack = [root]
        while stack:
            n = stack.pop()
            if n.kind == Kind.INPUT:
                if n.index is None or n.index >= input_count:
                    raise EmulatorError(f"Input .{n.index} out of range for {input_count} inputs")
            elif n.kind == Kind.NOT:
                if n.arity != 1:
                    raise EmulatorError(f"Not gate needs exactly one input, got {n.arity}")
            elif n.arity == 0:
                raise EmulatorError(f"{KIND_SYMBOL[n.kind]} gate has no inputs")
            stack.extend(n.children)

    def simulate(self, values: Sequence[bool]) -> bool:
        if len(values) != self.input_count:
            raise EmulatorError(f"Expected {self.input_count} input values, got {len(values)}")
        return evaluate(self.component, values)

    def emulate_all(self) -> TruthTable:
        n = self.input_count
        outputs = []
        for r in range(1 << n):
            values = [bool((r >> (n - 1 - i)) & 1) for i in range(n)]
            outputs.append(evaluate(self.component, values))
        return TruthTable(n, outputs)


# ═══════════════════════════════════════════════════════════════
# VISUALIZER — Debug and source rendering
# ═══════════════════════════════════════════════════════════════

def node_label(n: Component) -> str:
    """Human-readable label for a node."""
    if n.kind == Kind.INPUT:
        return f".{n.index}"
    return KIND_SYMBOL.get(n.kind, f"Kind(0x{n.kind:x})")


def render_tree(n: Component, indent: int = 0, prefix: str = "") -> str:
    """Render a gate tree as an indented tree string."""
    lines = []
    stack = [(n, indent, prefix)]
    while stack:
        node, depth, pre = stack.pop()
        lines.append(f"{'   ' * depth}{pre}{node_label(node)}")
        last = len(node.children) - 1
        for i in range(last, -1, -1):
            stack.append((node.children[i], depth + 1, "└─ " if i == last else "├─ "))
    return '\n'.join(lines)


def to_source(n: Component) -> str:
    """Render a gate tree as source text.

    Parses back to the same tree, except that a Not directly under a Not
    collapses ('!' toggles).
    """

    def visit(node, args):
        if node.kind == Kind.INPUT:
            return f".{node.index}"
        elif node.kind == Kind.NOT:
            return "!" + args[0]
        return f"{KIND_SYMBOL[node.kind]}({','.join(args)})"

    return fold(n, visit)


# ═══════════════════════════════════════════════════════════════
# DEMO CIRCUITS
# ═══════════════════════════════════════════════════════════════

def make_demos():
    """Build the demo circuits."""
    demos = []

    # 1. Two-input AND
    demos.append(("AND", G.make_and([G.make_input(0), G.make_input(1)]), 2))

    # 2. NAND = !and(.0,.1)
    demos.append(("NAND", G.make_not(G.make_and([G.make_input(0), G.make_input(1)])), 2))

    # 3. XOR = or(and(.0,!.1),and(!.0,.1))
    xor = G.make_or([
        G.make_and([G.make_input(0), G.make_not(G.make_input(1))]),
        G.make_and([G.make_not(G.make_input(0)), G.make_input(1)]),
    ])
    demos.append(("XOR", xor, 2))

    # 4. Majority of three
    maj = G.make_or([
        G.make_and([G.make_input(0), G.make_input(1)]),
        G.make_and([G.make_input(1), G.make_input(2)]),
        G.make_and([G.make_input(0), G.make_input(2)]),
    ])
    demos.append(("Majority", maj, 3))

    return demos


# ═══════════════════════════════════════════════════════════════
# CLI
# ═══════════════════════════════════════════════════════════════

HEADER = """\
╔═══════════════════════════════════════════════════════════╗
║  gatelang Circuit Emulator v0.1                           ║
║  Copyright (c) 2026 Alex P. Slaby — MIT License          ║
╚═══════════════════════════════════════════════════════════╝"""


def cmd_demo():
    print(HEADER)
    print()

    for i, (name, circuit, inputs) in enumerate(make_demos(), 1):
        print(f"{'─' * 59}")
        print(f"  Demo {i}: {name}")
        print(f"  Source: {to_source(circuit)}  │  {inputs} inputs")
        print(f"{'─' * 59}")
        print()

        print("  Graph:")
        for line in render_tree(circuit).split('\n'):
            print(f"    {line}")
        print()

        print("  Truth table:")
        try:
            table = Emulator(inputs, circuit).emulate_all()
            for line in str(table).rstrip('\n').split('\n'):
                print(f"    {line}")
        except EmulatorError as e:
            print(f"    [error] {e}")
        print()


def cmd_help():
    print(HEADER)
    print()
    print("  Usage:")
    print("    python gate.py demo              Run built-in demos")
    print("    python gate.py help              Show this help")
    print()


def main():
    if len(sys.argv) < 2:
        cmd_help()
        return

    cmd = sys.argv[1].lower()

    if cmd == "demo":
        cmd_demo()
    else:
        cmd_help()


if __name__ == "__main__":
    main()
