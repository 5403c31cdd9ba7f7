"""Sample benchmarks.

Run with ``frelon run examples/bench_01.py`` or directly with
``python examples/bench_01.py``.
"""

from __future__ import annotations

import hashlib
import json
import math

from frelon import Suite

SAMPLE_CONTENT = "".join(str(i) for i in range(1024 * 1024)).encode()


def make_nested_object(depth: int) -> object:
    if depth == 0:
        return "value"
    return {f"key{i}": make_nested_object(depth - 1) for i in range(depth)}


suite = Suite()


@suite.benchmark("empty_loop")
def empty_loop(n, timer):
    for _ in range(n):
        pass


@suite.benchmark("sqrt")
def sqrt(n, timer):
    for _ in range(n):
        math.sqrt(42)


@suite.benchmark("md5")
def md5(n, timer):
    for _ in range(n):
        hashlib.md5(SAMPLE_CONTENT).hexdigest()


@suite.benchmark("sha1")
def sha1(n, timer):
    new = hashlib.sha1
    timer.start()
    for _ in range(n):
        new(SAMPLE_CONTENT).hexdigest()


@suite.benchmark("sha512")
def sha512(n, timer):
    for _ in range(n):
        hashlib.sha512(SAMPLE_CONTENT).hexdigest()


def _json_dumps(depth: int):
    def body(n, timer):
        obj = make_nested_object(depth)
        timer.start()
        for _ in range(n):
            json.dumps(obj)

    return body


suite.register("json_dumps-4", _json_dumps(4))
suite.register("json_dumps-6", _json_dumps(6))


if __name__ == "__main__":
    suite.run()
