"""
Benchmark Sample Source

Times real host primitives over a ladder of input sizes. Cost is wall
time in nanoseconds from time.perf_counter_ns; each (size, iteration)
pair yields one sample, emitted in non-decreasing size order.

Operations whose cost does not depend on input size are measured at a
single size of 0 and come out of the fitter as constant models.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Union
import hashlib
import json
import os
import random
import time
import structlog

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, ed25519

from costmodel.types import Sample
from metering.config import DEFAULT_SIZES
from metering.operations import CostType, operation_id

from .checked import U256, CHECKED_OPS, checked_binop
from .source import SampleSource, SampleSourceError, UnsupportedOperationError

logger = structlog.get_logger()


@dataclass
class Benchmark:
    """
    How to measure one operation.

    setup builds the input for a size outside the timed region;
    run is the timed call.
    """
    setup: Callable[[int], Any]
    run: Callable[[Any], Any]
    fixed_size: bool = False


def _sha256_setup(size: int) -> bytes:
    return os.urandom(size)


def _ed25519_verify_setup(size: int) -> tuple:
    key = ed25519.Ed25519PrivateKey.generate()
    message = os.urandom(size)
    return (key.public_key(), key.sign(message), message)


def _ed25519_pubkey_setup(size: int) -> bytes:
    return os.urandom(32)


def _ecdsa_sign_setup(size: int) -> tuple:
    return (ec.generate_private_key(ec.SECP256K1()), os.urandom(size))


def _mem_pair_setup(size: int) -> tuple:
    data = os.urandom(size)
    return (data, bytearray(data))


def _val_list_setup(size: int) -> List[int]:
    rng = random.Random(size)
    return [rng.getrandbits(32) for _ in range(size)]


def _num_op_setup(size: int) -> tuple:
    rng = random.Random(size)
    half = U256.bits // 2
    return (rng.getrandbits(half), rng.getrandbits(half))


BENCHMARKS: Dict[str, Benchmark] = {
    CostType.COMPUTE_SHA256_HASH.value: Benchmark(
        setup=_sha256_setup,
        run=lambda data: hashlib.sha256(data).digest(),
    ),
    CostType.VERIFY_ED25519_SIG.value: Benchmark(
        setup=_ed25519_verify_setup,
        run=lambda s: s[0].verify(s[1], s[2]),
    ),
    CostType.COMPUTE_ED25519_PUBKEY.value: Benchmark(
        setup=_ed25519_pubkey_setup,
        run=lambda seed: ed25519.Ed25519PrivateKey.from_private_bytes(seed).public_key(),
        fixed_size=True,
    ),
    CostType.COMPUTE_ECDSA_SECP256K1_SIG.value: Benchmark(
        setup=_ecdsa_sign_setup,
        run=lambda s: s[0].sign(s[1], ec.ECDSA(hashes.SHA256())),
    ),
    CostType.HOST_MEM_ALLOC.value: Benchmark(
        setup=lambda size: size,
        run=bytearray,
    ),
    CostType.HOST_MEM_CPY.value: Benchmark(
        setup=_mem_pair_setup,
        run=lambda s: s[1].__setitem__(slice(None), s[0]),
    ),
    CostType.HOST_MEM_CMP.value: Benchmark(
        setup=_mem_pair_setup,
        run=lambda s: s[0] == s[1],
    ),
    CostType.VAL_SER.value: Benchmark(
        setup=_val_list_setup,
        run=json.dumps,
    ),
    CostType.VAL_DESER.value: Benchmark(
        setup=lambda size: json.dumps(_val_list_setup(size)),
        run=json.loads,
    ),
    CostType.PRNG_DRAW.value: Benchmark(
        setup=lambda size: (random.Random(size), size),
        run=lambda s: s[0].randbytes(s[1]),
    ),
    CostType.NUM_OP.value: Benchmark(
        setup=_num_op_setup,
        run=lambda s: checked_binop(U256, CHECKED_OPS["mul"], s[0], s[1]),
        fixed_size=True,
    ),
}


class BenchmarkSampleSource(SampleSource):
    """
    Sample source that measures host primitives in-process.

    Args:
        sizes: Input sizes to benchmark, sorted before use
        iterations: Timed runs per size
        clock: Nanosecond clock, injectable for tests
    """

    def __init__(
        self,
        sizes: Optional[Sequence[int]] = None,
        iterations: int = 5,
        clock: Callable[[], int] = time.perf_counter_ns,
        benchmarks: Optional[Dict[str, Benchmark]] = None,
    ):
        if iterations < 1:
            raise ValueError("iterations must be at least 1")
        self.sizes = sorted(sizes if sizes is not None else DEFAULT_SIZES)
        if not self.sizes or self.sizes[0] < 0:
            raise ValueError("sizes must be a non-empty list of non-negative integers")
        self.iterations = iterations
        self._clock = clock
        self._benchmarks = dict(benchmarks if benchmarks is not None else BENCHMARKS)

    def operations(self) -> List[str]:
        return list(self._benchmarks.keys())

    def collect(self, operation: Union[str, CostType]) -> List[Sample]:
        op = operation_id(operation)
        benchmark = self._benchmarks.get(op)
        if benchmark is None:
            raise UnsupportedOperationError(op)

        sizes = [0] if benchmark.fixed_size else self.sizes
        samples: List[Sample] = []

        for size in sizes:
            try:
                state = benchmark.setup(size)
                for _ in range(self.iterations):
                    start = self._clock()
                    benchmark.run(state)
                    elapsed = self._clock() - start
                    samples.append(Sample(size=size, cost=max(elapsed, 0)))
            except Exception as e:
                raise SampleSourceError(f"Benchmark for {op} failed at size {size}: {e}") from e

        logger.info(
            "operation_benchmarked",
            operation=op,
            samples=len(samples),
            sizes=len(sizes),
            iterations=self.iterations,
        )
        return samples
