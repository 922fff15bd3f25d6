"""
gatelang — Fuzz Testing Engine
Copyright (c) 2026 Alex P. Slaby — MIT License

Random-circuit fuzz testing:
  - Source roundtrip: parse(to_source(c)) == c, with the right input count
  - Parse determinism: same line → same tree, always
  - Eval determinism: same tree → same truth table
  - JSON roundtrip: from_json(to_json(c)) == c
  - Garbage safety: random text only ever raises ParseError

Outputs JSON report. Counterexamples are minimal reproducers.
"""

import json, sys, os, time, random
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from gate import G, Emulator, to_source
from gate_parser import tokenize, parse, ParseError
from gate_json import to_json, from_json, hash_node


# ═══════════════════════════════════════════
# RANDOM CIRCUIT GENERATION
# ═══════════════════════════════════════════

def random_component(max_depth=4, max_inputs=6, depth=0, rng=random):
    """Generate a random gate tree (never a Not directly under a Not)."""
    if depth >= max_depth or (depth > 0 and rng.random() < 0.35):
        leaf = G.make_input(rng.randrange(max_inputs))
        return G.make_not(leaf) if rng.random() < 0.3 else leaf

    children = [random_component(max_depth, max_inputs, depth + 1, rng)
                for _ in range(rng.randint(1, 3))]
    node = G.make_and(children) if rng.random() < 0.5 else G.make_or(children)
    return G.make_not(node) if rng.random() < 0.25 else node


def random_source(rng=random):
    """Random well-formed source line, with random whitespace between tokens."""
    src = to_source(random_component(rng=rng))
    out = []
    for ch in src:
        out.append(ch)
        if ch in "(,!" and rng.random() < 0.2:
            out.append(rng.choice([" ", "  ", "\t"]))
    return "".join(out)


GARBAGE_ALPHABET = "().!, \tandorxt0123456789"


def random_garbage(max_len=20, rng=random):
    """Random text drawn from the language's own characters."""
    return "".join(rng.choice(GARBAGE_ALPHABET) for _ in range(rng.randint(0, max_len)))


# ═══════════════════════════════════════════
# PROPERTY CHECKS
# ═══════════════════════════════════════════

def check_source_roundtrip(component):
    """to_source → parse must rebuild the same tree and input count."""
    count, tree = parse(tokenize(to_source(component)))
    return tree == component and count == component.max_input() + 1, None


def check_parse_determinism(source):
    """Parsing the same line twice must produce identical trees."""
    r1 = parse(tokenize(source))
    r2 = parse(tokenize(source))
    return r1 == r2 and hash_node(r1[1]) == hash_node(r2[1]), None


def check_eval_determinism(component):
    """Emulating the same tree twice must produce the same table."""
    count = component.max_input() + 1
    t1 = Emulator(count, component).emulate_all()
    t2 = Emulator(count, component).emulate_all()
    return t1.outputs == t2.outputs and str(t1) == str(t2), None


def check_json_roundtrip(component):
    """from_json(to_json(c)) must equal c."""
    return from_json(to_json(component)) == component, None


def check_garbage(source):
    """Arbitrary text may fail to parse, but only with ParseError."""
    try:
        parse(tokenize(source))
        return True, None
    except ParseError as e:
        return True, f"{e.kind}: {e}"
    except Exception as e:
        return False, f"{type(e).__name__}: {e}"


# ═══════════════════════════════════════════
# FUZZ RUNNER
# ═══════════════════════════════════════════

def run_fuzz(rounds=1000, seed=None):
    """Run fuzz testing and return a JSON-able report."""
    if seed is None:
        seed = int(time.time())
    rng = random.Random(seed)

    properties = {name: {"passed": 0, "failed": 0} for name in [
        "source_roundtrip", "parse_determinism", "eval_determinism",
        "json_roundtrip", "garbage_safety",
    ]}
    counterexamples = []

    def record(i, name, checker, subject):
        try:
            ok, err = checker(subject)
        except Exception as e:
            ok, err = False, f"{type(e).__name__}: {e}"
        properties[name]["passed" if ok else "failed"] += 1
        if not ok:
            shown = subject if isinstance(subject, str) else to_source(subject)
            counterexamples.append({"round": i, "property": name,
                                    "error": err, "source": shown})

    for i in range(rounds):
        component = random_component(rng=rng)
        record(i, "source_roundtrip", check_source_roundtrip, component)
        record(i, "eval_determinism", check_eval_determinism, component)
        record(i, "json_roundtrip", check_json_roundtrip, component)
        record(i, "parse_determinism", check_parse_determinism, random_source(rng))
        record(i, "garbage_safety", check_garbage, random_garbage(rng=rng))

    total_passed = sum(p["passed"] for p in properties.values())
    total_failed = sum(p["failed"] for p in properties.values())
    total_checks = total_passed + total_failed

    return {
        "seed": seed,
        "rounds": rounds,
        "properties": properties,
        "counterexamples": counterexamples[:50],
        "summary": {
            "total_checks": total_checks,
            "passed": total_passed,
            "failed": total_failed,
            "pass_rate": f"{total_passed/max(total_checks,1)*100:.1f}%",
        },
    }


if __name__ == "__main__":
    rounds = int(sys.argv[1]) if len(sys.argv) > 1 else 1000
    seed = int(sys.argv[2]) if len(sys.argv) > 2 else None
    report = run_fuzz(rounds, seed)
    print(json.dumps(report, indent=2, default=str))
    sys.exit(0 if report["summary"]["failed"] == 0 else 1)
